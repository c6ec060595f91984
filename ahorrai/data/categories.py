import uuid
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ..core.errors import NotFoundError
from ..models.budget import Budget
from ..models.category import Category
from ..models.expense import Expense
from .base import apply_updates, backend_call


def fetch_categories(session: Session, user_id: uuid.UUID) -> List[Category]:
    stmt = (
        select(Category)
        .where(Category.user_id == user_id)
        .order_by(Category.created_at.asc())
    )
    with backend_call(session, "fetch categories"):
        return list(session.exec(stmt).all())


def fetch_category(session: Session, category_id: uuid.UUID, user_id: Optional[uuid.UUID] = None) -> Category:
    with backend_call(session, "fetch category"):
        category = session.get(Category, category_id)
    if category is None or (user_id is not None and category.user_id != user_id):
        raise NotFoundError("categories", category_id)
    return category


def create_category(session: Session, user_id: uuid.UUID, payload: dict) -> Category:
    category = Category(user_id=user_id, **payload)
    with backend_call(session, "create category"):
        session.add(category)
        session.commit()
        session.refresh(category)
    return category


def update_category(session: Session, category_id: uuid.UUID, updates: dict) -> Category:
    category = fetch_category(session, category_id)
    if apply_updates(category, updates):
        with backend_call(session, "update category"):
            session.add(category)
            session.commit()
            session.refresh(category)
    return category


def delete_category(session: Session, category_id: uuid.UUID) -> None:
    category = fetch_category(session, category_id)
    with backend_call(session, "delete category"):
        session.delete(category)
        session.commit()


def count_expenses_for_category(session: Session, category_id: uuid.UUID) -> int:
    # Soft-deleted rows still hold the foreign key, so they count too
    stmt = (
        select(func.count())
        .select_from(Expense)
        .where(Expense.category_id == category_id)
    )
    with backend_call(session, "count expenses"):
        return session.exec(stmt).one()


def count_budgets_for_category(session: Session, category_id: uuid.UUID) -> int:
    stmt = select(func.count()).select_from(Budget).where(Budget.category_id == category_id)
    with backend_call(session, "count budgets"):
        return session.exec(stmt).one()
