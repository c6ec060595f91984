import uuid
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from ..core.errors import NotFoundError
from ..models.budget import Budget
from .base import apply_updates, backend_call


def fetch_budgets(session: Session, user_id: uuid.UUID) -> List[Budget]:
    stmt = (
        select(Budget)
        .where(Budget.user_id == user_id)
        .order_by(Budget.created_at.asc())
    )
    with backend_call(session, "fetch budgets"):
        return list(session.exec(stmt).all())


def fetch_budget(session: Session, budget_id: uuid.UUID, user_id: Optional[uuid.UUID] = None) -> Budget:
    with backend_call(session, "fetch budget"):
        budget = session.get(Budget, budget_id)
    if budget is None or (user_id is not None and budget.user_id != user_id):
        raise NotFoundError("budgets", budget_id)
    return budget


def create_budget(session: Session, user_id: uuid.UUID, payload: dict) -> Budget:
    budget = Budget(user_id=user_id, **payload)
    with backend_call(session, "create budget"):
        session.add(budget)
        session.commit()
        session.refresh(budget)
    return budget


def update_budget(session: Session, budget_id: uuid.UUID, updates: dict) -> Budget:
    budget = fetch_budget(session, budget_id)
    if apply_updates(budget, updates):
        budget.updated_at = datetime.utcnow()
        with backend_call(session, "update budget"):
            session.add(budget)
            session.commit()
            session.refresh(budget)
    return budget


def delete_budget(session: Session, budget_id: uuid.UUID) -> None:
    budget = fetch_budget(session, budget_id)
    with backend_call(session, "delete budget"):
        session.delete(budget)
        session.commit()
