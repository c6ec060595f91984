import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security.utils import get_authorization_scheme_param

from .config import settings
from .core.errors import GENERIC_ERROR_MESSAGE, DataAccessError, NotFoundError, ValidationFailed
from .core.navigation import LOGIN_ROUTE
from .core.security import token_from_request, user_id_from_token
from .database import init_db
from .routers import auth as auth_router
from .routers import budgets as budgets_router
from .routers import categories as categories_router
from .routers import dashboard as dashboard_router
from .routers import expense_details as expense_details_router
from .routers import expenses as expenses_router
from .routers import management as management_router
from .routers import manual_entry as manual_entry_router
from .routers import price_compare as price_compare_router
from .routers import profile as profile_router
from .routers import receipts as receipts_router
from .routers import upload as upload_router

logger = logging.getLogger(__name__)

PUBLIC_PATHS = {
    LOGIN_ROUTE,
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/docs/oauth2-redirect",
    "/favicon.ico",
    "/manifest.json",
    "/robots.txt",
    "/site.webmanifest",
}
PUBLIC_PREFIXES = ("/auth/", "/static/")


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def _bearer(request: Request):
    scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
    return param if scheme.lower() == "bearer" else None


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="AhorrAI – Backend", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def require_session(request: Request, call_next):
        # Sin sesión válida todo redirige al login, salvo rutas públicas
        if request.method == "OPTIONS" or is_public_path(request.url.path):
            return await call_next(request)
        if user_id_from_token(token_from_request(request, _bearer(request))) is None:
            return RedirectResponse(LOGIN_ROUTE, status_code=status.HTTP_303_SEE_OTHER)
        return await call_next(request)

    @app.exception_handler(ValidationFailed)
    async def validation_failed_handler(request: Request, exc: ValidationFailed):
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"errors": exc.errors})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": f"{exc.table} not found"})

    @app.exception_handler(DataAccessError)
    async def data_access_handler(request: Request, exc: DataAccessError):
        logger.error("Data access failed on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": GENERIC_ERROR_MESSAGE})

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Something went wrong", "retry": True},
        )

    @app.on_event("startup")
    def on_startup():
        init_db()

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router.router)
    app.include_router(auth_router.pages)
    app.include_router(profile_router.router)
    app.include_router(categories_router.router)
    app.include_router(budgets_router.router)
    app.include_router(expenses_router.router)
    app.include_router(dashboard_router.router)
    app.include_router(manual_entry_router.router)
    app.include_router(receipts_router.router)
    app.include_router(management_router.router)
    app.include_router(expense_details_router.router)
    app.include_router(price_compare_router.router)
    app.include_router(upload_router.router)

    return app


app = create_app()
