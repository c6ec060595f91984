import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from ..core.errors import NotFoundError
from ..models.profile import Profile
from .base import apply_updates, backend_call


def fetch_profile(session: Session, user_id: uuid.UUID) -> Profile:
    with backend_call(session, "fetch profile"):
        profile = session.get(Profile, user_id)
    if profile is None:
        raise NotFoundError("profiles", user_id)
    return profile


def fetch_profile_by_email(session: Session, email: str) -> Optional[Profile]:
    stmt = select(Profile).where(Profile.email == email.strip().lower())
    with backend_call(session, "fetch profile"):
        return session.exec(stmt).first()


def create_profile(session: Session, payload: dict) -> Profile:
    profile = Profile(**payload)
    with backend_call(session, "create profile"):
        session.add(profile)
        session.commit()
        session.refresh(profile)
    return profile


def update_profile(session: Session, user_id: uuid.UUID, updates: dict) -> Profile:
    profile = fetch_profile(session, user_id)
    if apply_updates(profile, updates):
        profile.updated_at = datetime.utcnow()
        with backend_call(session, "update profile"):
            session.add(profile)
            session.commit()
            session.refresh(profile)
    return profile
