import logging
from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from ..core.dates import first_of_month, get_today
from ..core.navigation import DASHBOARD_ROUTE, chrome
from ..core.security import get_current_user
from ..data import budgets as budgets_data
from ..data import categories as categories_data
from ..data import expenses as expenses_data
from ..database import get_session
from ..models.profile import Profile
from ..services.dashboard import build_dashboard

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

# Monthly trend window, current month included
TREND_MONTHS = 6


@router.get("/")
def home(current_user: Profile = Depends(get_current_user)):
    return RedirectResponse(DASHBOARD_ROUTE, status_code=303)


@router.get(DASHBOARD_ROUTE)
def financial_dashboard(
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Month-to-date summary, weekly and monthly trends, category breakdown
    and latest transactions of the signed-in user."""
    categories = categories_data.fetch_categories(session, current_user.id)
    budgets = budgets_data.fetch_budgets(session, current_user.id)
    expenses = expenses_data.fetch_expenses(
        session, current_user.id, since=first_of_month(today, TREND_MONTHS - 1)
    )
    logger.debug(
        "dashboard user=%s categories=%d budgets=%d expenses=%d",
        current_user.id, len(categories), len(budgets), len(expenses),
    )

    data = build_dashboard(expenses, categories, budgets, today, currency=current_user.default_currency)
    return {
        **chrome(
            DASHBOARD_ROUTE,
            "AhorrAI",
            actions=[
                {"icon": "Bell", "label": "Notificaciones"},
                {"icon": "Settings", "label": "Configuración", "href": "/categories-budget-management"},
            ],
        ),
        "user": {
            "id": str(current_user.id),
            "name": current_user.full_name or current_user.email,
            "avatar_url": current_user.avatar_url,
        },
        "quick_actions": [
            {"action": "scan", "href": "/scan-expense-ai-receipt-processing"},
            {"action": "manual", "href": "/manual-expense-register"},
        ],
        **data,
    }
