"""
Health check endpoints for liveness and Firestore readiness checks.
"""

from fastapi import APIRouter, HTTPException
import logging

from app.config.firebase import get_db
from app.core.settings import settings
from app.utils.firestore_helpers import ISSUES, count_query, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Liveness: 200 whenever the process is serving requests."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utcnow().isoformat(),
    }


@router.get("/db")
async def database_health():
    """
    Readiness: runs a count aggregation over the issues collection.

    This exercises the same query path the list endpoints rely on, so a
    missing index or revoked credential shows up here as a 503.
    """
    try:
        issues_count = count_query(get_db().collection(ISSUES))
    except Exception as e:
        logger.warning(f"[FIRESTORE] Health check failed: {e}")
        raise HTTPException(status_code=503, detail=f"Database connection failed: {e}")

    return {
        "status": "healthy",
        "database": "firestore",
        "connected": True,
        "issues": issues_count,
        "timestamp": utcnow().isoformat(),
    }
