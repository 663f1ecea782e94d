"""
Calo FastAPI Application
Main entry point: middleware, exception handlers, routers and the lifespan that
initializes the database and runs the job scheduler.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import uvicorn
from contextlib import asynccontextmanager
import anyio
from typing import Optional

from api.routes import users, menus, completions, meals, notifications, recommendations, jobs, health

from domain.models import init_database

from app.config import settings

from api.middleware import RequestLoggingMiddleware, EXCEPTION_HANDLERS
from services.scheduler import scheduler

# Setup logging with configured level and format
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()), format=settings.log_format
)
_logger = logging.getLogger("calo.main")


async def _init_database_with_retries() -> None:
    last_exc: Optional[Exception] = None

    for attempt in range(1, settings.db_init_attempts + 1):
        try:
            await anyio.to_thread.run_sync(init_database)

            _logger.info("Database initialization succeeded")
            return
        except Exception as exc:
            last_exc = exc
            _logger.warning(
                "Database init attempt %d/%d failed: %s",
                attempt,
                settings.db_init_attempts,
                exc,
            )
            if attempt < settings.db_init_attempts:
                await anyio.sleep(settings.db_init_delay_sec)

    _logger.error("Database initialization failed after %d attempts", settings.db_init_attempts)
    raise last_exc


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup and shutdown.
    Initializes the database with retries, then runs the scheduler until shutdown.
    """
    _logger.info(f"Starting Calo in {settings.environment.value} mode")
    await _init_database_with_retries()

    if not settings.scheduler_enabled or settings.is_testing():
        _logger.info("Scheduler disabled")
        yield
        _logger.info("Shutting down Calo")
        return

    async with anyio.create_task_group() as tg:
        tg.start_soon(scheduler.run)
        try:
            yield
        finally:
            _logger.info("Shutting down Calo")
            tg.cancel_scope.cancel()


app = FastAPI(
    title=settings.api_title,
    version=settings.app_version,
    description=settings.api_description,
    lifespan=lifespan,
    debug=settings.debug,
    openapi_url=(
        f"{settings.api_prefix}/openapi.json" if not settings.is_production() else None
    ),
    docs_url=f"{settings.api_prefix}/docs" if not settings.is_production() else None,
    redoc_url=f"{settings.api_prefix}/redoc" if not settings.is_production() else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.add_middleware(RequestLoggingMiddleware)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(users.router, prefix=settings.api_prefix)
app.include_router(menus.router, prefix=settings.api_prefix)
app.include_router(completions.router, prefix=settings.api_prefix)
app.include_router(meals.router, prefix=settings.api_prefix)
app.include_router(notifications.router, prefix=settings.api_prefix)
app.include_router(recommendations.router, prefix=settings.api_prefix)
app.include_router(jobs.router, prefix=settings.api_prefix)
app.include_router(health.router, prefix=settings.api_prefix)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development(),
        log_level=settings.log_level.lower(),
    )
