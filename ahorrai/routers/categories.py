import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel

from ..core.errors import NotFoundError
from ..core.icons import FALLBACK_ICON, is_category_icon
from ..core.security import get_current_user
from ..data import categories as categories_data
from ..database import get_session
from ..models.category import Category
from ..models.profile import Profile


router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)

_COLOR_RE = "^#[0-9A-Fa-f]{6}$"

# Columns that may be changed but not cleared
_REQUIRED_ON_UPDATE = {
    "name": "El nombre es requerido",
    "icon": "El icono es requerido",
    "color": "El color es requerido",
}


class CategoryBase(SQLModel):
    name: str = Field(min_length=1, max_length=50)
    icon: str = Field(default="Package", max_length=40)
    color: str = Field(default="#3B82F6", schema_extra={"pattern": _COLOR_RE})
    description: Optional[str] = Field(default=None, max_length=255)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    icon: Optional[str] = Field(default=None, max_length=40)
    color: Optional[str] = Field(default=None, schema_extra={"pattern": _COLOR_RE})
    description: Optional[str] = Field(default=None, max_length=255)


class CategoryRead(CategoryBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime


def _normalise_icon(data: dict) -> dict:
    # Anything that is not a category icon is stored as the fallback
    if data.get("icon") is not None and not is_category_icon(data["icon"]):
        data["icon"] = FALLBACK_ICON
    return data


def require_owned_category(session: Session, category_id: uuid.UUID, user: Profile) -> Category:
    """Expenses and budgets may only point at the caller's own categories."""
    try:
        return categories_data.fetch_category(session, category_id, user_id=user.id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Categoría no válida")


def get_owned_category_or_404(session: Session, category_id: uuid.UUID, user: Profile) -> Category:
    try:
        return categories_data.fetch_category(session, category_id, user_id=user.id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")


@router.get("", response_model=List[CategoryRead])
def list_categories(
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    return categories_data.fetch_categories(session, current_user.id)


@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    return categories_data.create_category(session, current_user.id, _normalise_icon(payload.model_dump()))


@router.patch("/{category_id}", response_model=CategoryRead)
def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    """Single-screen edit of a category."""
    get_owned_category_or_404(session, category_id, current_user)
    updates = _normalise_icon(payload.model_dump(exclude_unset=True))
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    for field, message in _REQUIRED_ON_UPDATE.items():
        if field in updates and updates[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return categories_data.update_category(session, category_id, updates)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    """Deletes a category that nothing references.

    Categories still used by expenses or budgets are refused with 409; the
    caller has to move or delete those first.
    """
    get_owned_category_or_404(session, category_id, current_user)
    expenses = categories_data.count_expenses_for_category(session, category_id)
    budgets = categories_data.count_budgets_for_category(session, category_id)
    if expenses or budgets:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "La categoría tiene gastos o presupuestos asociados",
                "expenses": expenses,
                "budgets": budgets,
            },
        )
    categories_data.delete_category(session, category_id)
    return None
