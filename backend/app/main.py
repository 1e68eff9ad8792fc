"""FastAPI application."""

from fastapi import FastAPI

from backend.app.api.errors import register_error_handlers
from backend.app.api.routes.catalog import router as catalog_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.api.routes.public import router as public_router
from backend.app.api.routes.reservations import router as reservations_router
from backend.app.api.routes.settings import router as settings_router
from backend.app.api.routes.tenant import router as tenant_router
from backend.app.config import get_settings
from backend.app.services import Services, build_services
from backend.app.utils.logging import setup_logging


def create_app(services: Services | None = None) -> FastAPI:
    """Build the application around a service graph.

    Args:
        services: Prebuilt services; built from settings when omitted
    """
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)

    app = FastAPI(title="Restaurant Core API", version="0.1.0")
    app.state.services = services or build_services(settings)
    register_error_handlers(app)

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(tenant_router)
    app.include_router(settings_router)
    app.include_router(reservations_router)
    app.include_router(catalog_router)
    app.include_router(public_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "Restaurant Core API", "version": "0.1.0"}

    return app


app = create_app()
