# app/main.py
"""
FastAPI application for the job board reporting service.
"""

import asyncio
import contextlib
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.config import settings
from app.container import build_reporting_container
from app.db.helpers import DatabaseError
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.jobs.task_queue import InMemoryTaskQueue
from app.routes import health, reports
from app.services.reports.errors import (
    AggregationError,
    NotARecruiterError,
    StoreError,
    TaskQueueError,
)

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    container = build_reporting_container(settings)
    await container.startup()
    app.state.reporting = container

    # With the in-memory queue nothing outside this process can consume
    # tasks, so the API runs the worker pool itself.
    worker_task = None
    if isinstance(container.queue, InMemoryTaskQueue):
        worker_task = asyncio.create_task(container.worker_pool.run())
        logger.info("In-process report worker started")

    yield

    logger.info("Application shutting down")
    if worker_task:
        worker_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker_task

    await container.shutdown()
    logger.info("All services closed")


app = FastAPI(
    title="Job Board Reports",
    description="Weekly recruiter reports and application exports",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(reports.router)


@app.exception_handler(NotARecruiterError)
async def not_a_recruiter_handler(request: Request, exc: NotARecruiterError):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": "Unauthorized. Only recruiters can access reports."},
    )


@app.exception_handler(AggregationError)
@app.exception_handler(DatabaseError)
@app.exception_handler(TaskQueueError)
async def dependency_unavailable_handler(request: Request, exc: Exception):
    logger.error(
        "Reporting dependency unavailable",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Reporting backend temporarily unavailable"},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Report storage error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Report storage error"},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
