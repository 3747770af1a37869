import logging

from fastapi import FastAPI

from cellarpilot.api.calculations import router as calculations_router
from cellarpilot.api.fermentation import router as fermentation_router
from cellarpilot.api.health import router as health_router
from cellarpilot.api.observability import router as observability_router
from cellarpilot.core.config import settings
from cellarpilot.core.observability_middleware import ObservabilityMiddleware


def create_app() -> FastAPI:
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title=settings.app_name)
    app.add_middleware(ObservabilityMiddleware)

    app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(fermentation_router, prefix=settings.api_prefix)
    app.include_router(calculations_router, prefix=settings.api_prefix)
    if settings.metrics_enabled:
        app.include_router(observability_router, prefix=settings.api_prefix)
    return app


app = create_app()
