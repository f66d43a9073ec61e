from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String

from fineflex.db.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Account holder with the income and savings goal used for monthly stats."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, nullable=False, default="User")
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)

    monthly_income = Column(Float, nullable=False, default=0)
    savings_goal = Column(Float, nullable=False, default=0)

    # Optional personal key for the AI service
    ai_api_key = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)


class Expense(Base):
    """
    A single spend entry owned by one user.

    Expenses are never edited in place and are not cascaded when a user goes
    away; LedgerStore.delete_user_expenses removes them explicitly.
    """

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(String, nullable=False, default="other")

    # When the spend happened (defaults to creation time)
    date = Column(DateTime, nullable=False, default=utcnow, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
