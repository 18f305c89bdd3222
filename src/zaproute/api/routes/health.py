"""Health endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status
from sqlalchemy import text

from ...db.session import get_session_factory
from ...db.supabase import get_supabase_client

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check the tenant database connection and whether the notification outbox is configured."""
    notifications_configured = get_supabase_client() is not None
    try:
        with get_session_factory()() as session:
            session.execute(text("SELECT 1"))
            backend = session.get_bind().dialect.name
    except Exception as exc:
        logging.error(f"Database health check failed: {exc}")
        return {
            "connected": False,
            "notifications_configured": notifications_configured,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
    return {
        "connected": True,
        "backend": backend,
        "notifications_configured": notifications_configured,
        "message": f"Database connected ({backend}).",
    }
