import uuid
from datetime import date, datetime
from typing import List, Optional

from sqlmodel import Session, select

from ..core.errors import NotFoundError
from ..models.expense import Expense
from .base import apply_updates, backend_call


def _activity(action: str, details: str) -> dict:
    return {
        "id": uuid.uuid4().hex,
        "action": action,
        "timestamp": datetime.utcnow().isoformat(),
        "details": details,
    }


def fetch_expenses(
    session: Session,
    user_id: uuid.UUID,
    since: Optional[date] = None,
    limit: Optional[int] = None,
) -> List[Expense]:
    """Live expenses of a user, newest first."""
    stmt = select(Expense).where(Expense.user_id == user_id, Expense.deleted_at.is_(None))
    if since is not None:
        stmt = stmt.where(Expense.expense_date >= since)
    stmt = stmt.order_by(Expense.expense_date.desc(), Expense.created_at.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    with backend_call(session, "fetch expenses"):
        return list(session.exec(stmt).all())


def fetch_expense(session: Session, expense_id: uuid.UUID, user_id: Optional[uuid.UUID] = None) -> Expense:
    with backend_call(session, "fetch expense"):
        expense = session.get(Expense, expense_id)
    if (
        expense is None
        or expense.deleted_at is not None
        or (user_id is not None and expense.user_id != user_id)
    ):
        raise NotFoundError("expenses", expense_id)
    return expense


def create_expense(session: Session, user_id: uuid.UUID, payload: dict) -> Expense:
    expense = Expense(user_id=user_id, **payload)
    expense.activity_log = [_activity("created", f"Gasto registrado en {expense.merchant}")]
    with backend_call(session, "create expense"):
        session.add(expense)
        session.commit()
        session.refresh(expense)
    return expense


def update_expense(session: Session, expense_id: uuid.UUID, updates: dict) -> Expense:
    expense = fetch_expense(session, expense_id)
    if not apply_updates(expense, updates):
        return expense

    now = datetime.utcnow()
    expense.updated_at = now
    # JSON columns are only flushed when reassigned
    expense.activity_log = list(expense.activity_log or []) + [
        _activity("updated", "Campos modificados: " + ", ".join(sorted(updates)))
    ]
    with backend_call(session, "update expense"):
        session.add(expense)
        session.commit()
        session.refresh(expense)
    return expense


def delete_expense(session: Session, expense_id: uuid.UUID) -> None:
    """Soft delete: the row stays but is hidden from every read."""
    expense = fetch_expense(session, expense_id)
    now = datetime.utcnow()
    expense.deleted_at = now
    expense.updated_at = now
    with backend_call(session, "delete expense"):
        session.add(expense)
        session.commit()
