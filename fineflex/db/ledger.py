import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fineflex.db.tables import Expense, User, utcnow

logger = logging.getLogger(__name__)

USER_SETTINGS_FIELDS = ("monthly_income", "savings_goal", "ai_api_key")


class LedgerStore:
    """
    Users and their expenses, scoped by owner.

    Wraps one SQLAlchemy session; routers get a fresh store per request via
    fineflex.routers.deps.get_ledger. Reads return plain dicts. Failed writes
    are logged, rolled back and reported as None/False.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # Users

    def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Get user by id, including the password hash."""
        user = self.session.get(User, user_id)
        return _user_to_dict(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        user = self.session.query(User).filter(User.email == email).first()
        return _user_to_dict(user) if user else None

    def create_user(
        self,
        email: str,
        password_hash: str,
        username: Optional[str] = None,
        monthly_income: float = 0,
        savings_goal: float = 0,
    ) -> Optional[Dict[str, Any]]:
        """Insert a new user. Returns None if the email is taken or the write fails."""
        user = User(
            username=username or "User",
            email=email,
            password_hash=password_hash,
            monthly_income=monthly_income or 0,
            savings_goal=savings_goal or 0,
        )
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.warning(f"create_user: email already registered: {email}")
            return None
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"create_user failed: {e}")
            return None
        self.session.refresh(user)
        return _user_to_dict(user)

    def update_user_settings(self, user_id: int, updates: Dict[str, Any]) -> bool:
        """
        Apply a partial update of income, savings goal and/or API key.
        Unknown keys are ignored. Returns False if the user doesn't exist.
        """
        fields = {k: v for k, v in updates.items() if k in USER_SETTINGS_FIELDS}
        if not fields:
            return False

        user = self.session.get(User, user_id)
        if user is None:
            return False

        for key, value in fields.items():
            setattr(user, key, value)
        try:
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"update_user_settings failed: {e}")
            return False

    # Expenses

    def create_expense(
        self,
        user_id: int,
        name: str,
        amount: float,
        category: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> Optional[Dict[str, Any]]:
        now = utcnow()
        expense = Expense(
            user_id=user_id,
            name=name,
            amount=amount,
            category=(category or "").strip() or "other",
            date=date or now,
            created_at=now,
        )
        try:
            self.session.add(expense)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"create_expense failed: {e}")
            return None
        self.session.refresh(expense)
        return _expense_to_dict(expense)

    def get_expense(self, expense_id: int) -> Optional[Dict[str, Any]]:
        expense = self.session.get(Expense, expense_id)
        return _expense_to_dict(expense) if expense else None

    def list_expenses(self, user_id: int) -> List[Dict[str, Any]]:
        """All expenses of a user, newest first."""
        rows = (
            self.session.query(Expense)
            .filter(Expense.user_id == user_id)
            .order_by(Expense.date.desc(), Expense.id.desc())
            .all()
        )
        return [_expense_to_dict(row) for row in rows]

    def list_expenses_since(
        self,
        user_id: int,
        start: datetime,
        limit: Optional[int] = None,
        end: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        Expenses dated at or after `start` and, when given, at or before `end`
        (both naive UTC), newest first. The monthly views pass
        analyzer.month_start() and the current time here.
        """
        query = self.session.query(Expense).filter(Expense.user_id == user_id, Expense.date >= start)
        if end is not None:
            query = query.filter(Expense.date <= end)
        query = query.order_by(Expense.date.desc(), Expense.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return [_expense_to_dict(row) for row in query.all()]

    def delete_expense(self, user_id: int, expense_id: int) -> bool:
        """Delete one expense if it belongs to user_id."""
        try:
            deleted = (
                self.session.query(Expense)
                .filter(Expense.id == expense_id, Expense.user_id == user_id)
                .delete(synchronize_session=False)
            )
            self.session.commit()
            return deleted > 0
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"delete_expense failed: {e}")
            return False

    def delete_user_expenses(self, user_id: int) -> int:
        """Remove every expense owned by user_id. Returns the number deleted."""
        try:
            deleted = (
                self.session.query(Expense)
                .filter(Expense.user_id == user_id)
                .delete(synchronize_session=False)
            )
            self.session.commit()
            return deleted
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"delete_user_expenses failed: {e}")
            return 0

    def ping(self) -> bool:
        """Connectivity check used by /api/status."""
        try:
            self.session.query(User.id).limit(1).all()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Ledger ping failed: {e}")
            return False


def _user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "password_hash": user.password_hash,
        "monthly_income": user.monthly_income or 0,
        "savings_goal": user.savings_goal or 0,
        "ai_api_key": user.ai_api_key,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _expense_to_dict(expense: Expense) -> Dict[str, Any]:
    return {
        "id": expense.id,
        "user_id": expense.user_id,
        "name": expense.name,
        "amount": expense.amount,
        "category": expense.category,
        "date": expense.date.isoformat() if expense.date else None,
        "created_at": expense.created_at.isoformat() if expense.created_at else None,
    }
