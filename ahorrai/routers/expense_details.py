import uuid
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..core.dates import get_today
from ..core.icons import resolve_icon
from ..core.navigation import DASHBOARD_ROUTE, chrome
from ..core.security import get_current_user
from ..data import categories as categories_data
from ..data import expenses as expenses_data
from ..database import get_session
from ..models.profile import Profile
from ..services.expense_forms import PAYMENT_METHODS
from ..services.sharing import share_payload
from .expenses import ExpenseUpdate, SplitIn, expense_detail, get_owned_expense, split, update_expense_from_form
from .manual_entry import ROUTE as MANUAL_ENTRY_ROUTE

ROUTE = "/expense-details-edit"

router = APIRouter(
    prefix=ROUTE,
    tags=["pages"],
)


@router.get("")
def expense_details(
    expense_id: uuid.UUID = Query(..., alias="id"),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    expense = get_owned_expense(session, expense_id, current_user)
    categories = categories_data.fetch_categories(session, current_user.id)
    return {
        **chrome(
            ROUTE,
            "Detalle del gasto",
            show_back=True,
            actions=[
                {"icon": "Edit", "label": "Editar"},
                {"icon": "Copy", "label": "Duplicar", "href": f"{MANUAL_ENTRY_ROUTE}?duplicate={expense.id}"},
                {"icon": "Share2", "label": "Compartir", "href": f"{ROUTE}/share?id={expense.id}"},
                {"icon": "Trash2", "label": "Eliminar"},
            ],
        ),
        "expense": expense_detail(session, expense),
        "categories": [
            {"id": str(c.id), "name": c.name, "icon": resolve_icon(c.icon), "color": c.color}
            for c in categories
        ],
        "payment_methods": list(PAYMENT_METHODS),
    }


@router.patch("")
def edit_expense(
    form: ExpenseUpdate,
    expense_id: uuid.UUID = Query(..., alias="id"),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    expense = update_expense_from_form(session, current_user, expense_id, form, today)
    return {"expense": expense_detail(session, expense)}


@router.delete("")
def delete_expense(
    expense_id: uuid.UUID = Query(..., alias="id"),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    """Borra el gasto (soft delete) y vuelve al dashboard."""
    get_owned_expense(session, expense_id, current_user)
    expenses_data.delete_expense(session, expense_id)
    return {"deleted": str(expense_id), "redirect": DASHBOARD_ROUTE}


@router.post("/split")
def split_preview(
    payload: SplitIn,
    expense_id: uuid.UUID = Query(..., alias="id"),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    return split(expense_id, payload, session=session, current_user=current_user)


@router.get("/share")
def share_expense(
    expense_id: uuid.UUID = Query(..., alias="id"),
    fmt: Literal["summary", "detailed", "receipt"] = Query("summary", alias="format"),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    """Texto para compartir el gasto, con enlaces de correo y SMS."""
    expense = get_owned_expense(session, expense_id, current_user)
    return share_payload(expense_detail(session, expense), fmt)
