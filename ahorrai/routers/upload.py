import logging
import os

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from ..core.security import get_current_user
from ..models.profile import Profile
from ..services.storage import ObjectStorage, get_storage

logger = logging.getLogger(__name__)

ROUTE = "/api/upload-avatar"

router = APIRouter(tags=["upload"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(ROUTE)
async def upload_avatar(
    request: Request,
    storage: ObjectStorage = Depends(get_storage),
    current_user: Profile = Depends(get_current_user),
):
    """Sube el avatar a ``{userId}/{filename}`` y devuelve su URL pública."""
    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException) as e:
        logger.warning("Avatar upload: could not parse form: %s", e)
        return _error(500, "Error parsing form")

    file = form.get("file")
    user_id = form.get("userId")
    if not isinstance(file, UploadFile) or not user_id or not isinstance(user_id, str):
        return _error(400, "Missing file or userId")
    if user_id != str(current_user.id):
        return _error(403, "Forbidden")

    # Keys never carry directories from the client filename
    filename = os.path.basename((file.filename or "").replace("\\", "/"))
    if not filename:
        return _error(400, "Missing file or userId")

    key = f"{user_id}/{filename}"
    body = await file.read()
    try:
        url = await run_in_threadpool(storage.upload, key, body, file.content_type)
    except (BotoCoreError, ClientError) as e:
        logger.error("Avatar upload failed for %s: %s", key, e)
        return _error(500, "Upload failed")
    return {"url": url}


@router.api_route(ROUTE, methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def upload_avatar_method_not_allowed():
    return JSONResponse(status_code=405, content={"error": "Method not allowed"}, headers={"Allow": "POST"})
