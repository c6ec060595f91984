import uuid
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel

from ..core.dates import get_today
from ..core.errors import NotFoundError
from ..core.icons import resolve_icon
from ..core.security import get_current_user
from ..data import categories as categories_data
from ..data import expenses as expenses_data
from ..database import get_session
from ..models.expense import Expense
from ..models.profile import Profile
from ..services.dashboard import UNCATEGORIZED
from ..services.expense_forms import ensure_valid_expense_form, split_expense
from .categories import require_owned_category

router = APIRouter(
    prefix="/expenses",
    tags=["expenses"],
)

# ─────────────────────────────
#   SCHEMAS (Pydantic/SQLModel)
# ─────────────────────────────

# Required fields are optional here on purpose: the form validator reports
# them with field-level messages instead of a schema error.
class ExpenseForm(SQLModel):
    amount: Optional[float] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3, schema_extra={"pattern": "^[A-Z]{3}$"})
    category_id: Optional[uuid.UUID] = None
    merchant: Optional[str] = Field(default=None, max_length=120)
    expense_date: Optional[date] = None
    payment_method: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    receipt_url: Optional[str] = None
    status: str = "completed"


class ExpenseUpdate(SQLModel):
    amount: Optional[float] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3, schema_extra={"pattern": "^[A-Z]{3}$"})
    category_id: Optional[uuid.UUID] = None
    merchant: Optional[str] = Field(default=None, max_length=120)
    expense_date: Optional[date] = None
    payment_method: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    receipt_url: Optional[str] = None
    status: Optional[str] = None


class ExpenseRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    category_id: uuid.UUID
    amount: float
    currency: str
    merchant: str
    expense_date: date
    payment_method: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    receipt_url: Optional[str] = None
    status: str
    activity_log: List[dict] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class SplitPart(SQLModel):
    category_id: uuid.UUID
    percentage: Optional[float] = None
    amount: Optional[float] = None


class SplitIn(SQLModel):
    method: str = "percentage"
    splits: List[SplitPart]


# ─────────────────────────────
#   HELPERS
# ─────────────────────────────

def get_owned_expense(session: Session, expense_id: uuid.UUID, user: Profile) -> Expense:
    try:
        return expenses_data.fetch_expense(session, expense_id, user_id=user.id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")


def create_expense_from_form(session: Session, user: Profile, form: ExpenseForm, today: date) -> Expense:
    """Validates a submitted expense form and stores it with one create call."""
    data = form.model_dump()
    ensure_valid_expense_form(data, today=today)
    require_owned_category(session, form.category_id, user)

    data["merchant"] = form.merchant.strip()
    data["expense_date"] = form.expense_date or today
    data["currency"] = form.currency or user.default_currency
    return expenses_data.create_expense(session, user.id, data)


def update_expense_from_form(
    session: Session, user: Profile, expense_id: uuid.UUID, form: ExpenseUpdate, today: date
) -> Expense:
    get_owned_expense(session, expense_id, user)
    updates = form.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    ensure_valid_expense_form(updates, today=today, partial=True)
    if "category_id" in updates:
        require_owned_category(session, updates["category_id"], user)
    if "merchant" in updates:
        updates["merchant"] = updates["merchant"].strip()
    for key in ("tags", "currency", "expense_date"):
        if key in updates and updates[key] is None:
            updates.pop(key)
    return expenses_data.update_expense(session, expense_id, updates)


def expense_detail(session: Session, expense: Expense) -> dict:
    """Expense with its category embedded, as the detail screen shows it."""
    try:
        category = categories_data.fetch_category(session, expense.category_id)
        category_view = {
            "id": str(category.id),
            "name": category.name,
            "icon": resolve_icon(category.icon),
            "color": category.color,
        }
    except NotFoundError:
        category_view = {"id": None, **UNCATEGORIZED}

    out = ExpenseRead.model_validate(expense, from_attributes=True).model_dump(mode="json")
    out["category"] = category_view
    return out


# ─────────────────────────────
#   ENDPOINTS
# ─────────────────────────────

@router.get("", response_model=List[ExpenseRead])
def list_expenses(
    since: Optional[date] = None,
    limit: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    """Gastos del usuario autenticado, más recientes primero."""
    return expenses_data.fetch_expenses(session, current_user.id, since=since, limit=limit)


@router.post("", response_model=ExpenseRead, status_code=status.HTTP_201_CREATED)
def create_expense(
    form: ExpenseForm,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    return create_expense_from_form(session, current_user, form, today)


@router.get("/{expense_id}", response_model=ExpenseRead)
def get_expense(
    expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    return get_owned_expense(session, expense_id, current_user)


@router.patch("/{expense_id}", response_model=ExpenseRead)
def update_expense(
    expense_id: uuid.UUID,
    form: ExpenseUpdate,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    return update_expense_from_form(session, current_user, expense_id, form, today)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    """Soft delete: marca deleted_at en vez de borrar el registro."""
    get_owned_expense(session, expense_id, current_user)
    expenses_data.delete_expense(session, expense_id)
    return None


@router.post("/{expense_id}/split")
def split(
    expense_id: uuid.UUID,
    payload: SplitIn,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    """Preview of an expense divided across categories; nothing is stored."""
    expense = get_owned_expense(session, expense_id, current_user)
    for part in payload.splits:
        require_owned_category(session, part.category_id, current_user)
    parts = split_expense(expense.amount, payload.method, [p.model_dump() for p in payload.splits])
    return {"expense_id": str(expense.id), "total": expense.amount, "method": payload.method, "splits": parts}
