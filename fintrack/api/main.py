"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fintrack.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fintrack.api.v1 import auth, dashboard, jobs, scoring, transactions
from fintrack.infrastructure.database.session import init_db
from fintrack.infrastructure.observability.logging import setup_logging
from fintrack.config import settings
from fintrack.worker.main import build_worker

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and start the in-process worker when configured"""
    if settings.create_tables_on_startup:
        init_db()

    worker = None
    if settings.run_embedded_worker:
        worker = build_worker()
        worker.start_in_thread()
        logging.info("Embedded worker started")

    yield

    if worker is not None:
        worker.stop()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="FinTrack Risk",
        description="Transaction intake, CSV ingestion and risk scoring service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(jobs.router, prefix="/v1", tags=["jobs"])
    app.include_router(scoring.router, prefix="/v1", tags=["scoring"])
    app.include_router(dashboard.router, prefix="/v1", tags=["dashboard"])

    return app


app = create_app()
