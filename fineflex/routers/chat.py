import logging

from fastapi import APIRouter, Depends, HTTPException, status

from fineflex.core.security import get_current_user_id
from fineflex.db.ledger import LedgerStore
from fineflex.db.tables import utcnow
from fineflex.models.chat import ChatRequest, ChatResponse
from fineflex.routers.deps import get_aggregator, get_chat_orchestrator, get_ledger
from fineflex.utils.analyzer import StatisticsAggregator, month_start
from fineflex.utils.chat import MAX_CONTEXT_EXPENSES, ChatOrchestrator

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    user_id: int = Depends(get_current_user_id),
    ledger: LedgerStore = Depends(get_ledger),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
):
    """
    Answer a money question using this month's figures.
    Falls back to rule-based advice when the AI service is unavailable.
    """
    # Blank checks only; the question is passed on exactly as typed
    message = request.message or ""
    if not message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    user = ledger.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    now = utcnow()
    month_expenses = ledger.list_expenses_since(user_id, month_start(now), end=now)
    snapshot = aggregator.summarize(user["monthly_income"], user["savings_goal"], month_expenses)

    logger.info(f"Chat request from user {user_id} ({len(month_expenses)} expenses this month)")
    reply = orchestrator.answer(
        message,
        snapshot,
        month_expenses[:MAX_CONTEXT_EXPENSES],
        api_key=user.get("ai_api_key"),
    )
    return ChatResponse(response=reply)
