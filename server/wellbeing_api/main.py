"""Wellbeing API - FastAPI application entry point."""
import logging
import sqlite3
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from wellbeing_engine import ScheduleNotFoundError

from .config import get_settings
from .dependencies import get_monitor
from .routes import alerts, insights, monitoring, schedules

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start background monitoring when configured and stop it on shutdown."""
    if settings.monitor_autostart:
        get_monitor().start_scheduler(settings.monitor_interval_hours)

    yield

    if settings.monitor_autostart:
        get_monitor().stop_scheduler()


async def _handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    """Return 400 for invalid ratings and arguments."""
    logger.info(f"[API] Validation error on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _handle_schedule_not_found(request: Request, exc: ScheduleNotFoundError) -> JSONResponse:
    """Return 404 for schedules that disappeared mid-request."""
    logger.info(f"[API] Not found on {request.url.path}: {exc.schedule_id}")
    return JSONResponse(status_code=404, content={"detail": f"Schedule not found: {exc.schedule_id}"})


async def _handle_storage_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
    logger.error(f"[API] Storage error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


app = FastAPI(
    title="Wellbeing API",
    description="Adaptive meditation scheduling and wellbeing monitoring",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.add_exception_handler(ValueError, _handle_value_error)
app.add_exception_handler(ScheduleNotFoundError, _handle_schedule_not_found)
app.add_exception_handler(sqlite3.Error, _handle_storage_error)

# Include routers
app.include_router(schedules.router)
app.include_router(alerts.router)
app.include_router(insights.router)
app.include_router(monitoring.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for the API."""
    return {"status": "healthy", "service": "wellbeing-api"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "server.wellbeing_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
