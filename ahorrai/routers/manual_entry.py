import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..core.dates import get_today
from ..core.icons import resolve_icon
from ..core.navigation import DASHBOARD_ROUTE, chrome
from ..core.security import get_current_user
from ..data import categories as categories_data
from ..database import get_session
from ..models.profile import Profile
from ..services.expense_forms import PAYMENT_METHODS, duplicate_draft, suggest_merchants
from .expenses import ExpenseForm, ExpenseRead, create_expense_from_form, get_owned_expense


ROUTE = "/manual-expense-register"

router = APIRouter(
    prefix=ROUTE,
    tags=["pages"],
)


@router.get("")
def manual_entry_form(
    merchant_query: Optional[str] = None,
    duplicate: Optional[uuid.UUID] = None,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Opciones del formulario de registro manual.

    ``duplicate`` pre-fills the form from an existing expense, dated today.
    """
    categories = categories_data.fetch_categories(session, current_user.id)

    draft = {
        "amount": None,
        "category_id": None,
        "merchant": "",
        "expense_date": today.isoformat(),
        "payment_method": None,
        "description": "",
        "tags": [],
    }
    if duplicate is not None:
        draft = duplicate_draft(get_owned_expense(session, duplicate, current_user), today)

    return {
        **chrome(ROUTE, "Agregar gasto", show_back=True),
        "form": draft,
        "currency": current_user.default_currency,
        "categories": [
            {"id": str(c.id), "name": c.name, "icon": resolve_icon(c.icon), "color": c.color}
            for c in categories
        ],
        "payment_methods": list(PAYMENT_METHODS),
        "merchant_suggestions": suggest_merchants(merchant_query),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_manual_entry(
    form: ExpenseForm,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    expense = create_expense_from_form(session, current_user, form, today)
    return {
        "expense": ExpenseRead.model_validate(expense, from_attributes=True).model_dump(mode="json"),
        "redirect": DASHBOARD_ROUTE,
    }
