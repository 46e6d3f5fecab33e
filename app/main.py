import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_v1_router
from app.collectors.registry import build_registry
from app.core.config import settings, validate_settings_for_production
from app.core.dependencies import get_recorder
from app.core.exceptions import AppError
from app.core.logging import setup_logging
from app.core.metrics import PrometheusMiddleware, metrics_response
from app.core.sentry import init_sentry
from app.db.factory import build_recorder
from app.db.recorder import RunRecorder

# Configure logging before anything else
setup_logging()
init_sentry()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    logger.info("Starting AI Visibility Tracker...")

    app.state.registry = build_registry(settings)
    app.state.recorder = build_recorder(settings)
    logger.info("Providers available: %s", ", ".join(app.state.registry.available()) or "none")

    yield

    # Shutdown
    await app.state.recorder.close()
    logger.info("AI Visibility Tracker shut down")


app = FastAPI(
    title="AI Visibility Tracker",
    description="Which brands do AI assistants mention for a category, and with what citations",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(AppError)
async def _app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.public_message()})


# Malformed bodies and query params get the same 400 envelope as service-level validation
@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"Invalid {field}: {first.get('msg')}" if field else f"Invalid request: {first.get('msg')}"
    else:
        message = "Invalid request"
    logger.info("Request validation failed on %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"success": False, "error": message})


# Log unhandled exceptions with the full traceback, return a generic message
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    message = "Internal server error" if settings.is_production else f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content={"success": False, "error": message})


# Request metrics
app.add_middleware(PrometheusMiddleware)

# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)


@app.get("/api/v1/health")
async def health(recorder: RunRecorder = Depends(get_recorder)):
    db_ok = await recorder.ping()
    return {
        "success": True,
        "status": "healthy",
        "database": "connected" if db_ok else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/metrics", include_in_schema=False)
async def prometheus_metrics():
    return metrics_response()
