import uuid
from datetime import datetime, date
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


EXPENSE_STATUSES = ("completed", "pending", "failed")


class Expense(SQLModel, table=True):
    __tablename__ = "expenses"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)
    category_id: uuid.UUID = Field(foreign_key="categories.id", index=True)

    amount: float = Field(ge=0)
    currency: str = Field(default="USD", max_length=3)
    merchant: str = Field(max_length=120)
    expense_date: date = Field(default_factory=date.today, index=True)
    payment_method: Optional[str] = Field(default=None, max_length=30)

    description: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    receipt_url: Optional[str] = Field(default=None)

    # completed | pending | failed
    status: str = Field(default="completed", max_length=10)
    # [{id, action, timestamp, details}]
    activity_log: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    deleted_at: Optional[datetime] = Field(default=None)
