from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check used by load balancers and monitoring.

    Does not touch the quote store or the auth provider.

    Returns:
        dict: ``{"status": "ok", "env": <APP_ENV>}``.
    """

    return {"status": "ok", "env": settings.app_env}
