from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel

from ..core.security import get_current_user
from ..data import profiles as profiles_data
from ..database import get_session
from ..models.profile import Profile
from .auth import SUPPORTED_CURRENCIES, ProfileRead


router = APIRouter(
    prefix="/profile",
    tags=["profile"],
)


class ProfileUpdate(SQLModel):
    full_name: Optional[str] = Field(default=None, max_length=120)
    avatar_url: Optional[str] = Field(default=None, max_length=1024)
    default_currency: Optional[str] = Field(default=None, min_length=3, max_length=3, schema_extra={"pattern": "^[A-Z]{3}$"})


@router.get("", response_model=ProfileRead)
def get_profile(current_user: Profile = Depends(get_current_user)):
    return current_user


@router.patch("", response_model=ProfileRead)
def update_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    if updates.get("default_currency") and updates["default_currency"] not in SUPPORTED_CURRENCIES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid default_currency")
    return profiles_data.update_profile(session, current_user.id, updates)
