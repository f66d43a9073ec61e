from fastapi import APIRouter, Depends, HTTPException, status

from fineflex.core.security import get_current_user_id
from fineflex.db.ledger import LedgerStore
from fineflex.db.tables import utcnow
from fineflex.models.stats import StatsResponse
from fineflex.routers.deps import get_aggregator, get_ledger
from fineflex.utils.analyzer import StatisticsAggregator, month_start

router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    user_id: int = Depends(get_current_user_id),
    ledger: LedgerStore = Depends(get_ledger),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
):
    """Income, spend and savings-goal progress for the current calendar month."""
    user = ledger.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    now = utcnow()
    expenses = ledger.list_expenses_since(user_id, month_start(now), end=now)
    snapshot = aggregator.summarize(user["monthly_income"], user["savings_goal"], expenses)
    return snapshot.to_dict()
