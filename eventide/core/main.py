"""
Eventide - Main FastAPI application.

Schedule-to-event materialization service.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

from eventide.core.config import settings
from eventide.core.memory.db import init_db
from eventide.core.api import schedules

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Lifespan event handlers
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    logger.info(
        "Eventide binding on %s:%s (from config/.env: API_HOST, API_PORT)",
        settings.api_host,
        settings.api_port,
    )

    if settings.schedule_run_in_process:
        try:
            from eventide.core.schedule.scheduler import start_scheduler
            await start_scheduler(schedules.get_schedule_service().store)
        except Exception as e:
            logger.warning("Could not start schedule processor: %s", e)

    yield

    try:
        from eventide.core.schedule.scheduler import stop_scheduler
        await stop_scheduler()
    except Exception as e:
        logger.warning("Schedule processor stop: %s", e)
    logger.info("Eventide shutting down")


# Create FastAPI app
app = FastAPI(
    title="Eventide",
    description="Schedule-to-event materialization service",
    version="1.0.0",
    lifespan=lifespan,
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests. The processing endpoint at DEBUG to reduce log spam."""
    path = request.url.path
    level = logger.debug if path == "/events/schedule-cron" else logger.info
    level("%s %s", request.method, path)
    response = await call_next(request)
    level("%s %s - %s", request.method, path, response.status_code)
    return response


# Error handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors(), "body": exc.body},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc) if settings.debug else None,
        },
    )


# Include routers
app.include_router(schedules.router)
app.include_router(schedules.events_router)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eventide.core.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
