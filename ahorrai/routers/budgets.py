import uuid
from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel

from ..core.dates import get_today
from ..core.errors import NotFoundError
from ..core.security import get_current_user
from ..data import budgets as budgets_data
from ..database import get_session
from ..models.budget import Budget
from ..models.profile import Profile
from ..services.management import add_period
from .categories import require_owned_category


router = APIRouter(
    prefix="/budgets",
    tags=["budgets"],
)

BudgetPeriod = Literal["monthly", "yearly"]


class BudgetBase(SQLModel):
    category_id: uuid.UUID
    amount: float = Field(gt=0, schema_extra={"allow_inf_nan": False})
    period: BudgetPeriod = "monthly"
    start_date: date
    end_date: Optional[date] = None


class BudgetCreate(BudgetBase):
    pass


class BudgetUpdate(SQLModel):
    category_id: Optional[uuid.UUID] = None
    amount: Optional[float] = Field(default=None, gt=0, schema_extra={"allow_inf_nan": False})
    period: Optional[BudgetPeriod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class BudgetRead(BudgetBase):
    id: uuid.UUID
    user_id: uuid.UUID
    currency: str
    end_date: date
    active: bool = False
    created_at: datetime
    updated_at: datetime


def _read(budget: Budget, today: date) -> BudgetRead:
    return BudgetRead(**budget.model_dump(), active=budget.is_active(today))


def _check_window(start: date, end: date) -> None:
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La fecha de fin debe ser posterior a la de inicio",
        )


def _get_owned_budget(session: Session, budget_id: uuid.UUID, user: Profile) -> Budget:
    try:
        return budgets_data.fetch_budget(session, budget_id, user_id=user.id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")


@router.get("", response_model=List[BudgetRead])
def list_budgets(
    active: Optional[bool] = None,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    budgets = budgets_data.fetch_budgets(session, current_user.id)
    if active is not None:
        budgets = [b for b in budgets if b.is_active(today) == active]
    return [_read(b, today) for b in budgets]


@router.post("", response_model=BudgetRead, status_code=status.HTTP_201_CREATED)
def create_budget(
    payload: BudgetCreate,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    require_owned_category(session, payload.category_id, current_user)
    data = payload.model_dump()
    data["end_date"] = payload.end_date or add_period(payload.start_date, payload.period)
    _check_window(data["start_date"], data["end_date"])
    data["currency"] = current_user.default_currency
    return _read(budgets_data.create_budget(session, current_user.id, data), today)


@router.patch("/{budget_id}", response_model=BudgetRead)
def update_budget(
    budget_id: uuid.UUID,
    payload: BudgetUpdate,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    budget = _get_owned_budget(session, budget_id, current_user)
    updates = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    if "category_id" in updates:
        require_owned_category(session, updates["category_id"], current_user)
    _check_window(updates.get("start_date", budget.start_date), updates.get("end_date", budget.end_date))
    return _read(budgets_data.update_budget(session, budget_id, updates), today)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(
    budget_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    _get_owned_budget(session, budget_id, current_user)
    budgets_data.delete_budget(session, budget_id)
    return None
