from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class ExpenseCreate(BaseModel):
    name: str = Field(min_length=1)
    amount: float = Field(gt=0)
    category: Optional[str] = "other"
    date: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("date")
    @classmethod
    def date_to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive input is taken as UTC already
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class ExpensePublic(BaseModel):
    id: int
    user_id: int
    name: str
    amount: float
    category: str
    date: str
    created_at: str
