# backend/csvsearch/router/health.py
from __future__ import annotations
import logging
from fastapi import APIRouter

from csvsearch.db.session import ping_db
from csvsearch.models.schemas import HealthResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger("csvsearch.health")


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness: the process is up."""
    return HealthResponse(status="ok")


@router.get("/db-ping")
def db_ping():
    """Simple DB connectivity test."""
    ok, message = ping_db()
    if not ok:
        logger.warning(f"⚠️ DB ping failed: {message}")
    return {"ok": ok, "message": message}
