"""FastAPI application factory."""

from typing import Optional

from fastapi import FastAPI

from chainsentry import __version__
from chainsentry.api.middleware import RequestLoggingMiddleware
from chainsentry.config import get_settings
from chainsentry.metrics import MetricsExporter, MetricsRegistry
from chainsentry.status import StaticStatusProvider, StatusProvider


def create_app(
    registry: Optional[MetricsRegistry] = None,
    status_provider: Optional[StatusProvider] = None,
) -> FastAPI:
    """Create the HTTP app serving ``/healthz`` and ``/metrics``.

    Args:
        registry: Registry exported on ``/metrics`` (a fresh one if omitted)
        status_provider: Readiness source for ``/healthz`` (ready if omitted)
    """
    settings = get_settings()

    app = FastAPI(
        title="chainsentry",
        description="Health and metrics for blockchain API integrations",
        version=__version__,
        debug=settings.debug,
    )

    app.state.metrics = registry if registry is not None else MetricsRegistry()
    app.state.exporter = MetricsExporter(app.state.metrics)
    app.state.status_provider = status_provider or StaticStatusProvider(ready=True)

    app.add_middleware(RequestLoggingMiddleware)

    from chainsentry.api.routes import health, metrics

    app.include_router(health.router, tags=["Health"])
    app.include_router(metrics.router, tags=["Metrics"])

    return app
