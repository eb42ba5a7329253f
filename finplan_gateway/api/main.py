"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finplan_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finplan_gateway.api.v1 import accounts, cards, entries, loans, projection
from finplan_gateway.infrastructure.observability.logging import setup_logging
from finplan_gateway.infrastructure.database.models import Base
from finplan_gateway.infrastructure.database.session import engine
from finplan_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables before serving requests"""
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finplan Gateway",
        description="Personal-finance ledger scheduling and cash-flow projection service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(entries.router, prefix="/v1", tags=["entries"])
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(projection.router, prefix="/v1", tags=["projection"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])

    return app


app = create_app()
