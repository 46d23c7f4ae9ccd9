from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.quotes import router as quotes_router

__all__ = ["health_router", "quotes_router"]
