"""
Health Check Router
Liveness plus a status check of the ledger and the AI configuration
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging

from fineflex.core.config import settings
from fineflex.db.ledger import LedgerStore
from fineflex.routers.deps import get_ledger

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "OK",
        "message": "Server is running",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
def service_status(ledger: LedgerStore = Depends(get_ledger)):
    """
    Check the collaborators the API depends on:
    - SQLite ledger (users and expenses tables)
    - Gemini (only whether a server key is configured; no call is made)
    """
    database_ok = ledger.ping()
    if not database_ok:
        logger.error("Ledger check failed")

    services = {
        "database": {
            "connected": database_ok,
            "driver": settings.DATABASE_URL.split(":", 1)[0],
        },
        "ai": {
            "configured": bool(settings.GEMINI_API_KEY),
            "model": settings.GEMINI_MODEL,
            "fallback": "rule-based advisor",
        },
    }
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services,
        "overall_status": "healthy" if database_ok else "degraded",
    }
