# FastAPI Application Entry Point: HTTP view adapter over a ClientSession
from fastapi import FastAPI

# Configuration and Observability
from case_tracking_service.app.config import settings
from case_tracking_service.app.observability import setup_opentelemetry, logger

# Initialize OpenTelemetry
setup_opentelemetry(service_name=settings.SERVICE_NAME_API)

# Import instrumentors after OTel SDK is initialized
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from case_tracking_service.app.session import build_client_session
from case_tracking_service.infrastructure.case_api_client import build_http_client
from case_tracking_service.infrastructure.signal_store import get_signal_store

# API Routers
from case_tracking_service.app.api.v1.endpoints import health as health_router
from case_tracking_service.app.api.v1.endpoints import snapshot as snapshot_router
from case_tracking_service.app.api.v1.endpoints import priority as priority_router
from case_tracking_service.app.api.v1.endpoints import cases as cases_router
from case_tracking_service.app.api.v1.endpoints import statistics as statistics_router

# --- FastAPI Application Instance ---
app = FastAPI(
    title="Case Tracking View Adapter",
    description="Serves a freshness-managed snapshot of judicial cases and forwards validated case actions to the case API.",
    version="0.1.0"
)

# --- Event Handlers for the HTTP client, the session & OTel Instrumentation ---
@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI application startup...")
    try:
        HTTPXClientInstrumentor().instrument()
        app.state.http_client = build_http_client()
        logger.info(f"HTTPX AsyncClient initialized with timeout {settings.DEFAULT_HTTP_TIMEOUT} and instrumented.")

        app.state.session = build_client_session(app.state.http_client)
        await app.state.session.start()
        logger.info(f"Client session {app.state.session.observer_id} ready.")
    except Exception as e:
        logger.error(f"Failed during startup: {e}", exc_info=True)
        raise

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI application shutdown...")

    if getattr(app.state, "session", None) is not None:
        await app.state.session.aclose()
    await get_signal_store().aclose()

    if getattr(app.state, "http_client", None) is not None:
        await app.state.http_client.aclose()
        logger.info("HTTPX AsyncClient closed.")

FastAPIInstrumentor.instrument_app(app)
logger.info("FastAPI instrumentation complete.")

# Include API Routers
app.include_router(health_router.router, prefix="/api/v1")
app.include_router(snapshot_router.router, prefix="/api/v1")
app.include_router(priority_router.router, prefix="/api/v1")
app.include_router(cases_router.router, prefix="/api/v1")
app.include_router(statistics_router.router, prefix="/api/v1")

logger.info("API routers included. Application setup complete.")

# To run: uvicorn case_tracking_service.app.main:app --port 8000
