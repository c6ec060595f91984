"""Category/budget management screen: creation wizard, alert settings and
spending trends."""
import calendar
import math
import re
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..core.errors import ValidationFailed
from ..core.icons import CATEGORY_ICONS
from ..models.budget import BUDGET_PERIODS


MANAGEMENT_TABS = ("categories", "budget", "alerts", "trends")

WIZARD_STEPS = (
    {"step": 1, "key": "details", "title": "Detalles"},
    {"step": 2, "key": "appearance", "title": "Apariencia"},
    {"step": 3, "key": "budget", "title": "Presupuesto"},
)

AVAILABLE_COLORS = (
    "#3B82F6", "#10B981", "#F59E0B", "#EF4444", "#8B5CF6", "#06B6D4",
    "#84CC16", "#F97316", "#EC4899", "#6366F1", "#14B8A6",
)

DEFAULT_BUDGET = 500.0
RECOMMENDED_BUDGETS = {
    "Comida y Restaurantes": 800,
    "Transporte": 400,
    "Entretenimiento": 300,
    "Compras": 600,
    "Salud": 200,
    "Servicios": 250,
    "Educación": 500,
    "Viajes": 1000,
}

_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{6}")

DEFAULT_ALERT_THRESHOLD = 80

TREND_PERIODS = {
    "3months": "3 Meses",
    "6months": "6 Meses",
    "1year": "1 Año",
}

# Static sample series, one point per month
_TREND_SERIES = [
    {"month": "Feb", "Comida": 700, "Transporte": 350, "Entretenimiento": 240, "Compras": 500, "Salud": 100, "Servicios": 230},
    {"month": "Mar", "Comida": 690, "Transporte": 370, "Entretenimiento": 260, "Compras": 540, "Salud": 130, "Servicios": 235},
    {"month": "Abr", "Comida": 740, "Transporte": 355, "Entretenimiento": 230, "Compras": 560, "Salud": 95, "Servicios": 240},
    {"month": "May", "Comida": 760, "Transporte": 365, "Entretenimiento": 300, "Compras": 510, "Salud": 140, "Servicios": 228},
    {"month": "Jun", "Comida": 710, "Transporte": 340, "Entretenimiento": 270, "Compras": 590, "Salud": 105, "Servicios": 236},
    {"month": "Jul", "Comida": 730, "Transporte": 375, "Entretenimiento": 310, "Compras": 620, "Salud": 115, "Servicios": 242},
    {"month": "Ago", "Comida": 750, "Transporte": 360, "Entretenimiento": 320, "Compras": 520, "Salud": 150, "Servicios": 230},
    {"month": "Sep", "Comida": 780, "Transporte": 390, "Entretenimiento": 250, "Compras": 600, "Salud": 110, "Servicios": 240},
    {"month": "Oct", "Comida": 720, "Transporte": 380, "Entretenimiento": 220, "Compras": 580, "Salud": 120, "Servicios": 240},
    {"month": "Nov", "Comida": 720, "Transporte": 380, "Entretenimiento": 220, "Compras": 580, "Salud": 120, "Servicios": 240},
    {"month": "Dic", "Comida": 680, "Transporte": 410, "Entretenimiento": 280, "Compras": 650, "Salud": 90, "Servicios": 250},
    {"month": "Ene", "Comida": 650, "Transporte": 420, "Entretenimiento": 180, "Compras": 720, "Salud": 85, "Servicios": 245},
]
_TREND_LENGTHS = {"3months": 3, "6months": 6, "1year": 12}


def add_period(start: date, period: str) -> date:
    """End date of a budget period starting at ``start``.

    Month ends are clamped, so Jan 31 + 1 month is Feb 28/29.
    """
    if period == "yearly":
        year, month = start.year + 1, start.month
    else:
        year = start.year + (1 if start.month == 12 else 0)
        month = 1 if start.month == 12 else start.month + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def recommended_budget(name: str) -> float:
    """Suggested amount for a category based on a similar known name."""
    needle = (name or "").strip().lower()
    if not needle:
        return DEFAULT_BUDGET
    for known, amount in RECOMMENDED_BUDGETS.items():
        key = known.lower()
        if needle in key or key in needle:
            return float(amount)
    return DEFAULT_BUDGET


def validate_wizard(payload: dict) -> Dict[str, str]:
    errors = {}
    name = (payload.get("name") or "").strip()
    if not name:
        errors["name"] = "El nombre es requerido"
    elif len(name) > 50:
        errors["name"] = "El nombre no puede superar 50 caracteres"
    if payload.get("icon") not in CATEGORY_ICONS:
        errors["icon"] = "Icono no válido"
    if not _COLOR_RE.fullmatch(payload.get("color") or ""):
        errors["color"] = "Color no válido"
    budget = payload.get("budget")
    if budget is not None and (not math.isfinite(budget) or budget <= 0):
        errors["budget"] = "El presupuesto debe ser mayor a 0"
    if payload.get("period", "monthly") not in BUDGET_PERIODS:
        errors["period"] = "Periodo no válido"
    return errors


def wizard_to_records(payload: dict, today: Optional[date] = None):
    """Splits a completed wizard into the category and budget payloads.

    The budget payload is None when the wizard was saved without a budget.
    """
    errors = validate_wizard(payload)
    if errors:
        raise ValidationFailed(errors)

    category = {
        "name": payload["name"].strip(),
        "icon": payload["icon"],
        "color": payload["color"],
        "description": payload.get("description") or None,
    }
    if payload.get("budget") is None:
        return category, None

    period = payload.get("period") or "monthly"
    start = payload.get("start_date") or today or date.today()
    budget = {
        "amount": float(payload["budget"]),
        "period": period,
        "start_date": start,
        "end_date": add_period(start, period),
    }
    return category, budget


def default_alert_settings(categories: Iterable) -> dict:
    """Alert preferences shown on the alerts tab; kept in memory only."""
    return {
        "global_alerts": True,
        "weekly_summary": True,
        "monthly_report": False,
        "category_alerts": {
            str(c.id): {
                "name": c.name,
                "enabled": True,
                "threshold": DEFAULT_ALERT_THRESHOLD,
                "notifications": ["push"],
            }
            for c in categories
        },
    }


def spending_trends(period: str = "3months") -> dict:
    if period not in _TREND_LENGTHS:
        period = "3months"
    points = _TREND_SERIES[-_TREND_LENGTHS[period]:]
    series = [k for k in points[0] if k != "month"]

    stats: List[dict] = []
    for name in series:
        values = [p[name] for p in points]
        first, last = values[0], values[-1]
        stats.append({
            "category": name,
            "average": round(sum(values) / len(values), 2),
            "change": round((last - first) / first * 100, 1) if first else 0.0,
        })

    return {
        "period": period,
        "periods": [{"id": k, "label": v} for k, v in TREND_PERIODS.items()],
        "data": points,
        "stats": stats,
    }
