import hashlib
import hmac
import os
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose.exceptions import ExpiredSignatureError, JWTError
from sqlmodel import Session

from ..data import profiles as profiles_data
from ..database import get_session
from ..models.profile import Profile
from .errors import NotFoundError
from .jwt import decode_access_token


ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 100_000
SALT_BYTES = 16

ACCESS_TOKEN_COOKIE = "access_token"


def _pbkdf2_hash(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, ITERATIONS)


def hash_password(password: str) -> str:
    salt = os.urandom(SALT_BYTES)
    digest = _pbkdf2_hash(password, salt)
    return f"{ALGORITHM}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, salt_hex, hash_hex = stored.strip().split("$")
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    return hmac.compare_digest(_pbkdf2_hash(password, salt), expected)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def token_from_request(request: Request, bearer: Optional[str] = None) -> Optional[str]:
    """Session cookie first, then the Authorization header."""
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or bearer


def user_id_from_token(token: Optional[str]) -> Optional[uuid.UUID]:
    """Returns the subject of a valid token, None for anything else."""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
        return uuid.UUID(str(payload.get("sub")))
    except (JWTError, ValueError):
        return None


def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> Profile:
    def _raise_invalid(detail: str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = token_from_request(request, bearer)
    if not token:
        _raise_invalid("Not authenticated")

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        _raise_invalid("Token expired")
    except JWTError:
        _raise_invalid("Invalid token")

    sub = payload.get("sub")
    if sub is None:
        _raise_invalid("Invalid token: missing subject")
    try:
        user_id = uuid.UUID(str(sub))
    except ValueError:
        _raise_invalid("Invalid token: bad subject format")

    try:
        user = profiles_data.fetch_profile(session, user_id)
    except NotFoundError:
        _raise_invalid("User not found")
    if user.deleted_at is not None:
        _raise_invalid("User not found")
    return user
