"""Dashboard aggregation.

Pure functions that turn the raw expense, category and budget collections of
one user into display-ready summaries. Nothing here touches the database;
``today`` is always passed in so the results are reproducible.
"""
import calendar
from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from ..core.icons import resolve_icon
from ..models.budget import Budget
from ..models.category import Category
from ..models.expense import Expense


WEEKDAY_LABELS = ("Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom")
MONTH_LABELS = ("Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic")

UNCATEGORIZED = {"name": "Sin categoría", "icon": "Tag", "color": "#cccccc"}
RECENT_LIMIT = 7


def _round(value: float, places: int = 2) -> float:
    # Half-up on the printed value, so 21.665 shows as 21.67
    step = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(step, rounding=ROUND_HALF_UP))


def _total(expenses: Iterable[Expense]) -> float:
    return sum(e.amount or 0 for e in expenses)


def _shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def active_budgets(budgets: Iterable[Budget], today: date) -> List[Budget]:
    return [b for b in budgets if b.start_date <= today <= b.end_date]


def month_expenses(expenses: Iterable[Expense], today: date) -> List[Expense]:
    return [
        e for e in expenses
        if e.expense_date.year == today.year and e.expense_date.month == today.month
    ]


def summarize_month(spent: float, budgeted: float, today: date, currency: str = "USD") -> dict:
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    is_over = spent > budgeted
    percentage = (spent / budgeted * 100) if budgeted > 0 else 0.0
    return {
        "spent": _round(spent),
        "budget": _round(budgeted),
        "remaining": _round(max(budgeted - spent, 0.0)),
        "overspend": _round(spent - budgeted) if is_over else 0.0,
        "percentage": _round(percentage),
        "is_over_budget": is_over,
        "currency": currency,
        "daily_average": _round(spent / today.day),
        "days_left": days_in_month - today.day,
    }


def weekly_spending(expenses: Iterable[Expense], today: date) -> List[dict]:
    """Spend per day for the trailing 7 days, oldest first."""
    start = today - timedelta(days=6)
    per_day: Dict[date, float] = defaultdict(float)
    for e in expenses:
        if start <= e.expense_date <= today:
            per_day[e.expense_date] += e.amount or 0
    days = [start + timedelta(days=i) for i in range(7)]
    return [
        {"label": WEEKDAY_LABELS[d.weekday()], "date": d.isoformat(), "amount": _round(per_day[d])}
        for d in days
    ]


def monthly_spending(expenses: Iterable[Expense], today: date, months: int = 6) -> List[dict]:
    per_month: Dict[tuple, float] = defaultdict(float)
    for e in expenses:
        per_month[(e.expense_date.year, e.expense_date.month)] += e.amount or 0
    out = []
    for delta in range(months - 1, -1, -1):
        year, month = _shift_month(today.year, today.month, -delta)
        out.append({
            "label": MONTH_LABELS[month - 1],
            "month": f"{year:04d}-{month:02d}",
            "amount": _round(per_month[(year, month)]),
        })
    return out


def _category_view(category: Optional[Category]) -> dict:
    if category is None:
        return dict(UNCATEGORIZED)
    return {
        "name": category.name,
        "icon": resolve_icon(category.icon),
        "color": category.color,
    }


def budget_by_category(budgets: Iterable[Budget], today: date) -> Dict:
    totals: Dict = defaultdict(float)
    for b in active_budgets(budgets, today):
        totals[b.category_id] += b.amount
    return totals


def category_breakdown(
    expenses: Sequence[Expense],
    categories: Iterable[Category],
    budgets: Iterable[Budget] = (),
    today: Optional[date] = None,
) -> List[dict]:
    """Share of spend per category, largest first.

    Percentages are rounded to one decimal, so their sum is 100 give or
    take the rounding. Empty input gives an empty list.
    """
    total = _total(expenses)
    if not expenses or total <= 0:
        return []

    by_id = {c.id: c for c in categories}
    budget_totals = budget_by_category(budgets, today) if today else {}

    groups: Dict = defaultdict(list)
    for e in expenses:
        key = e.category_id if e.category_id in by_id else None
        groups[key].append(e)

    rows = []
    for category_id, items in groups.items():
        amount = _total(items)
        row = _category_view(by_id.get(category_id))
        row.update({
            "category_id": str(category_id) if category_id else None,
            "amount": _round(amount),
            "percentage": _round(amount / total * 100, 1),
            "transactions": len(items),
            "average": _round(amount / len(items)),
            "budget": _round(budget_totals[category_id]) if category_id in budget_totals else None,
        })
        rows.append(row)

    rows.sort(key=lambda r: r["amount"], reverse=True)
    return rows


def recent_transactions(
    expenses: Iterable[Expense],
    categories: Iterable[Category],
    limit: int = RECENT_LIMIT,
) -> List[dict]:
    by_id = {c.id: c for c in categories}
    ordered = sorted(expenses, key=lambda e: (e.expense_date, e.created_at), reverse=True)
    out = []
    for e in ordered[:limit]:
        view = _category_view(by_id.get(e.category_id))
        out.append({
            "id": str(e.id),
            "merchant": e.merchant,
            "amount": e.amount,
            "category": view["name"],
            "category_icon": view["icon"],
            "status": e.status,
            "date": e.expense_date.isoformat(),
            "description": e.description,
        })
    return out


def category_cards(
    expenses: Sequence[Expense],
    categories: Iterable[Category],
    budgets: Iterable[Budget],
    today: date,
) -> List[dict]:
    """Per-category budget progress for the management screen."""
    this_month = month_expenses(expenses, today)
    prev_year, prev_month = _shift_month(today.year, today.month, -1)
    last_month = [
        e for e in expenses
        if e.expense_date.year == prev_year and e.expense_date.month == prev_month
    ]
    budget_totals = budget_by_category(budgets, today)

    cards = []
    for c in categories:
        items = [e for e in this_month if e.category_id == c.id]
        spent = _total(items)
        previous = _total(e for e in last_month if e.category_id == c.id)
        budget = budget_totals.get(c.id, 0.0)

        if previous > 0:
            trend_value = (spent - previous) / previous * 100
        else:
            trend_value = 0.0
        if abs(trend_value) < 1:
            trend = "stable"
        else:
            trend = "up" if trend_value > 0 else "down"

        last = max((e.expense_date for e in expenses if e.category_id == c.id), default=None)
        cards.append({
            "id": str(c.id),
            "name": c.name,
            "icon": resolve_icon(c.icon),
            "color": c.color,
            "budget": _round(budget),
            "spent": _round(spent),
            "percentage": _round(spent / budget * 100, 1) if budget > 0 else 0.0,
            "is_over_budget": budget > 0 and spent > budget,
            "trend": trend,
            "trend_value": _round(abs(trend_value), 1),
            "transactions": len(items),
            "last_transaction": last.isoformat() if last else None,
        })
    return cards


def build_dashboard(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
    budgets: Sequence[Budget],
    today: date,
    currency: str = "USD",
) -> dict:
    current = month_expenses(expenses, today)
    spent = _total(current)
    budgeted = sum(b.amount for b in active_budgets(budgets, today))
    return {
        "current_month": summarize_month(spent, budgeted, today, currency),
        "weekly_spending": weekly_spending(expenses, today),
        "monthly_spending": monthly_spending(expenses, today),
        "category_breakdown": category_breakdown(current, categories, budgets, today),
        "recent_transactions": recent_transactions(expenses, categories),
    }
