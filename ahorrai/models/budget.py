import uuid
from datetime import datetime, date

from sqlmodel import SQLModel, Field


BUDGET_PERIODS = ("monthly", "yearly")


class Budget(SQLModel, table=True):
    __tablename__ = "budgets"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)
    category_id: uuid.UUID = Field(foreign_key="categories.id", index=True)

    amount: float = Field(gt=0)
    currency: str = Field(default="USD", max_length=3)

    # monthly | yearly
    period: str = Field(default="monthly", max_length=10)
    start_date: date
    end_date: date

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def is_active(self, today: date) -> bool:
        return self.start_date <= today <= self.end_date
