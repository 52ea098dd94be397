"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers).
"""

from __future__ import annotations

from fastapi import FastAPI

from bookexport.api.routes import export_router, health_router
from bookexport.core.config import settings
from bookexport.core.exception_handlers import setup_exception_handlers
from bookexport.core.logging import configure_logging
from bookexport.core.middleware import request_id_middleware
from bookexport.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Book Export API",
        description=(
            "Exports books as EPUB 2 files: container, OPF package document, "
            "NCX table of contents, cover/title pages and one XHTML page per "
            "chapter. Exports are rate limited per client address."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        license_info={
            "name": "GNU General Public License v2 or later",
            "url": "https://www.gnu.org/licenses/gpl.html",
        },
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(export_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
