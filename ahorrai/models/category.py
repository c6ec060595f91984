import uuid
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)

    name: str = Field(max_length=50)
    # Clave de icono, ver core/icons.py
    icon: str = Field(default="Package", max_length=40)
    # #RRGGBB
    color: str = Field(default="#3B82F6", max_length=7)
    description: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
