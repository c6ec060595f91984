import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Field, Session, SQLModel

from ..core.dates import first_of_month, get_today
from ..core.icons import CATEGORY_ICONS, resolve_icon
from ..core.navigation import chrome
from ..core.security import get_current_user
from ..data import budgets as budgets_data
from ..data import categories as categories_data
from ..data import expenses as expenses_data
from ..database import get_session
from ..models.profile import Profile
from ..services.dashboard import category_cards
from ..services.management import (
    AVAILABLE_COLORS,
    DEFAULT_BUDGET,
    MANAGEMENT_TABS,
    TREND_PERIODS,
    WIZARD_STEPS,
    default_alert_settings,
    recommended_budget,
    spending_trends,
    wizard_to_records,
)
from .budgets import BudgetRead
from .categories import CategoryRead

logger = logging.getLogger(__name__)

ROUTE = "/categories-budget-management"

router = APIRouter(
    prefix=ROUTE,
    tags=["management"],
)


class CategoryWizardIn(SQLModel):
    name: str = ""
    icon: str = "Package"
    color: str = "#3B82F6"
    description: Optional[str] = Field(default=None, max_length=255)
    budget: Optional[float] = Field(default=None, schema_extra={"allow_inf_nan": False})
    period: str = "monthly"
    start_date: Optional[date] = None


def _budget_rows(session: Session, user: Profile, today: date) -> list:
    """Budgets with their category and what was spent inside each window."""
    budgets = budgets_data.fetch_budgets(session, user.id)
    if not budgets:
        return []
    categories = {c.id: c for c in categories_data.fetch_categories(session, user.id)}
    since = min(b.start_date for b in budgets)
    expenses = expenses_data.fetch_expenses(session, user.id, since=since)

    rows = []
    for b in budgets:
        spent = sum(
            e.amount for e in expenses
            if e.category_id == b.category_id and b.start_date <= e.expense_date <= b.end_date
        )
        category = categories.get(b.category_id)
        rows.append({
            "id": str(b.id),
            "category_id": str(b.category_id),
            "category": category.name if category else None,
            "icon": resolve_icon(category.icon if category else None),
            "color": category.color if category else None,
            "amount": b.amount,
            "currency": b.currency,
            "period": b.period,
            "start_date": b.start_date.isoformat(),
            "end_date": b.end_date.isoformat(),
            "active": b.is_active(today),
            "spent": round(spent, 2),
            "percentage": round(spent / b.amount * 100, 1) if b.amount > 0 else 0.0,
            "is_over_budget": spent > b.amount,
        })
    return rows


@router.get("")
def management_page(
    tab: str = "categories",
    period: str = "3months",
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Pantalla de categorías y presupuestos, una pestaña a la vez."""
    if tab not in MANAGEMENT_TABS:
        tab = "categories"

    page = {
        **chrome(
            ROUTE,
            "Categorías y Presupuestos",
            show_back=True,
            actions=[{"icon": "Plus", "label": "Nueva categoría", "href": f"{ROUTE}/wizard"}],
        ),
        "tab": tab,
        "tabs": list(MANAGEMENT_TABS),
    }

    if tab == "categories":
        categories = categories_data.fetch_categories(session, current_user.id)
        budgets = budgets_data.fetch_budgets(session, current_user.id)
        expenses = expenses_data.fetch_expenses(session, current_user.id, since=first_of_month(today, 1))
        page["categories"] = category_cards(expenses, categories, budgets, today)
    elif tab == "budget":
        page["budgets"] = _budget_rows(session, current_user, today)
    elif tab == "alerts":
        page["alerts"] = default_alert_settings(categories_data.fetch_categories(session, current_user.id))
    else:
        page["trends"] = spending_trends(period)
    return page


@router.get("/wizard")
def wizard_options(name: Optional[str] = None, current_user: Profile = Depends(get_current_user)):
    return {
        **chrome(ROUTE, "Nueva categoría", show_back=True),
        "steps": list(WIZARD_STEPS),
        "icons": list(CATEGORY_ICONS),
        "colors": list(AVAILABLE_COLORS),
        "periods": ["monthly", "yearly"],
        "trend_periods": TREND_PERIODS,
        "recommended_budget": recommended_budget(name) if name else DEFAULT_BUDGET,
    }


@router.get("/recommended-budget")
def get_recommended_budget(name: str = "", current_user: Profile = Depends(get_current_user)):
    return {"name": name, "amount": recommended_budget(name)}


@router.post("/wizard", status_code=status.HTTP_201_CREATED)
def complete_wizard(
    payload: CategoryWizardIn,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Creates the category and, when the last step set one, its budget.

    The two inserts are independent calls: a failed budget leaves the
    category in place.
    """
    category_data, budget_data = wizard_to_records(payload.model_dump(), today)
    category = categories_data.create_category(session, current_user.id, category_data)
    logger.info("Category %s created from wizard for user=%s", category.id, current_user.id)

    budget = None
    if budget_data is not None:
        budget_data["category_id"] = category.id
        budget_data["currency"] = current_user.default_currency
        created = budgets_data.create_budget(session, current_user.id, budget_data)
        budget = BudgetRead(**created.model_dump(), active=created.is_active(today))

    return {
        "category": CategoryRead.model_validate(category, from_attributes=True).model_dump(mode="json"),
        "budget": budget.model_dump(mode="json") if budget else None,
        "redirect": f"{ROUTE}?tab=categories",
    }
