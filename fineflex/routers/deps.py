"""
Shared request dependencies: the ledger store, the stats aggregator and the
chat orchestrator. Tests swap these out through app.dependency_overrides.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from fineflex.db.database import get_db
from fineflex.db.ledger import LedgerStore
from fineflex.utils.analyzer import StatisticsAggregator
from fineflex.utils.chat import ChatOrchestrator

aggregator = StatisticsAggregator()


def get_ledger(db: Session = Depends(get_db)) -> LedgerStore:
    return LedgerStore(db)


def get_aggregator() -> StatisticsAggregator:
    return aggregator


def get_chat_orchestrator() -> ChatOrchestrator:
    return ChatOrchestrator()
