from __future__ import annotations

from bookexport.api.routes.export import router as export_router
from bookexport.api.routes.health import router as health_router

__all__ = ["export_router", "health_router"]
