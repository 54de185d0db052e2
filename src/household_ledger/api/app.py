"""FastAPI application factory and dependency injection setup."""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from household_ledger.api.routes import (
    account_group_router,
    account_router,
    auth_router,
    category_router,
    health_router,
    household_router,
    invitation_router,
    mobile_router,
    transaction_router,
    transfer_router,
    user_router,
)
from household_ledger.config import get_settings
from household_ledger.container import get_container, reset_container
from household_ledger.exceptions import HouseholdLedgerError
from household_ledger.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and open the database on startup; release it on shutdown."""
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment.value,
    )

    container = get_container()
    _ = container.database  # Force database initialization

    logger.info("application_started")

    yield

    logger.info("application_stopping")
    reset_container()
    logger.info("application_stopped")


async def log_request_middleware(request: Request, call_next):
    """Middleware to add request context to logs."""
    request_id = str(uuid.uuid4())[:8]
    bind_context(request_id=request_id, path=request.url.path, method=request.method)

    try:
        response = await call_next(request)
        logger.debug(
            "request_completed",
            status_code=response.status_code,
        )
        return response
    finally:
        clear_context()


async def exception_handler(request: Request, exc: HouseholdLedgerError) -> JSONResponse:
    """Handle domain exceptions and return appropriate JSON responses."""
    logger.warning(
        "domain_exception",
        error_code=exc.error_code,
        message=exc.message,
        context=exc.context,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: Open the process-wide container on startup. Tests that
            inject their own container pass False.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant household finance ledger",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan if use_lifespan else None,
    )

    app.middleware("http")(log_request_middleware)
    app.add_exception_handler(HouseholdLedgerError, exception_handler)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(mobile_router)
    app.include_router(user_router)
    app.include_router(household_router)
    app.include_router(invitation_router)
    app.include_router(account_group_router)
    app.include_router(account_router)
    app.include_router(category_router)
    app.include_router(transaction_router)
    app.include_router(transfer_router)

    return app


# Create app instance for uvicorn
app = create_app()
