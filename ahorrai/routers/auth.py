import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import EmailStr
from sqlmodel import Field, Session, SQLModel

from ..config import settings
from ..core.jwt import create_access_token
from ..core.navigation import DASHBOARD_ROUTE
from ..core.security import (
    ACCESS_TOKEN_COOKIE,
    get_current_user,
    hash_password,
    token_from_request,
    user_id_from_token,
    verify_password,
)
from ..data import profiles as profiles_data
from ..database import get_session
from ..models.profile import Profile


router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)

pages = APIRouter(tags=["pages"])

SUPPORTED_CURRENCIES = {"USD", "CLP", "CAD", "COP", "MXN", "EUR"}


class RegisterIn(SQLModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: Optional[str] = Field(default=None, max_length=120)
    default_currency: str = Field(default=settings.default_currency, min_length=3, max_length=3, schema_extra={"pattern": "^[A-Z]{3}$"})


class ProfileRead(SQLModel):
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    default_currency: str
    created_at: datetime
    updated_at: datetime


class LoginIn(SQLModel):
    email: EmailStr
    password: str


class TokenOut(SQLModel):
    access_token: str
    token_type: str


def _reject_spaces(password: str) -> None:
    if any(c.isspace() for c in password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La contraseña no debe contener espacios",
        )


def _authenticate(session: Session, email: str, password: str) -> Profile:
    _reject_spaces(password)
    user = profiles_data.fetch_profile_by_email(session, email)
    if user is None or user.deleted_at is not None or not verify_password(password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return user


@router.post(
    "/register",
    response_model=ProfileRead,
    status_code=status.HTTP_201_CREATED,
)
def register_user(
    payload: RegisterIn,
    session: Session = Depends(get_session),
):
    _reject_spaces(payload.password)
    email_norm = payload.email.strip().lower()
    if profiles_data.fetch_profile_by_email(session, email_norm) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    currency = payload.default_currency.strip().upper()
    if currency not in SUPPORTED_CURRENCIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid default_currency",
        )

    return profiles_data.create_profile(
        session,
        {
            "email": email_norm,
            "hashed_password": hash_password(payload.password),
            "full_name": payload.full_name,
            "default_currency": currency,
        },
    )


@router.post(
    "/login",
    response_model=ProfileRead,
    status_code=status.HTTP_200_OK,
)
def login(payload: LoginIn, response: Response, session: Session = Depends(get_session)):
    user = _authenticate(session, payload.email, payload.password)
    token = create_access_token({"sub": str(user.id), "email": user.email})

    # HttpOnly so the token never reaches JS; cross-site deployments need SameSite=None + Secure
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )
    return user


@router.get(
    "/me",
    response_model=ProfileRead,
    status_code=status.HTTP_200_OK,
)
def me(current_user: Profile = Depends(get_current_user)):
    return current_user


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
)
def logout(response: Response):
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, path="/")
    return None


@router.post(
    "/token",
    response_model=TokenOut,
    status_code=status.HTTP_200_OK,
)
def token(form_data: OAuth2PasswordRequestForm = Depends(), session: Session = Depends(get_session)):
    # OAuth2PasswordRequestForm usa 'username' como el campo de email
    user = _authenticate(session, form_data.username, form_data.password)
    access_token = create_access_token({"sub": str(user.id), "email": user.email})
    return TokenOut(access_token=access_token, token_type="bearer")


@pages.get("/login")
def login_page(request: Request):
    authenticated = user_id_from_token(token_from_request(request)) is not None
    return {
        "title": "AhorrAI",
        "authenticated": authenticated,
        "redirect": DASHBOARD_ROUTE if authenticated else None,
        "actions": {
            "sign_in": "/auth/login",
            "sign_up": "/auth/register",
        },
    }
