"""
Deal alert API.

FastAPI server exposing the scheduled DD-deadline alert run to an external
cron trigger.
"""

import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated

from dotenv import load_dotenv

# Load environment variables before other imports
load_dotenv()

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse

from alerts.base import DealStore, Mailer
from alerts.config import AlertSettings
from alerts.deadlines import run_deadline_check
from alerts.errors import AlertError, ConfigurationError, UnauthorizedError
from api.logging import get_logger, log_error, log_request
from api.models import AlertRunResponse, ErrorResponse, HealthResponse
from api.services.airtable import AirtableDealStore
from api.services.email import ResendMailer

logger = get_logger(__name__)

STATUS_BY_CATEGORY = {
    "unauthorized": 401,
    "configuration": 500,
    "query": 500,
    "delivery": 500,
}


def get_settings() -> AlertSettings:
    """Read settings for this request."""
    return AlertSettings.from_env()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def verify_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> AlertSettings:
    """Check the bearer credential against the configured cron secret.

    When no secret is configured the check is skipped. Returns the settings
    read for this request.
    """
    settings = get_settings()
    expected = settings.cron_secret
    if not expected:
        return settings

    if not authorization or not secrets.compare_digest(
        authorization.encode(), f"Bearer {expected}".encode()
    ):
        raise UnauthorizedError()

    return settings


def get_store(settings: AlertSettings) -> DealStore:
    return AirtableDealStore.from_settings(settings)


def get_mailer(settings: AlertSettings) -> Mailer:
    return ResendMailer.from_settings(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - report configuration on startup."""
    logger.info("Starting deal alert API...")

    try:
        cron_secret = get_settings().cron_secret
    except ConfigurationError as e:
        log_error(logger, "Invalid alert configuration", e)
        cron_secret = None

    if not cron_secret:
        logger.warning("CRON_SECRET not set - alert trigger is unauthenticated")

    yield

    logger.info("Shutting down deal alert API...")


app = FastAPI(
    title="Deal Deadline Alerts",
    description="Scheduled due-diligence deadline alerts for the deal board",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(AlertError)
async def alert_error_handler(request: Request, exc: AlertError) -> JSONResponse:
    """Render alert errors as structured JSON."""
    status_code = STATUS_BY_CATEGORY.get(exc.category, 500)
    if status_code >= 500:
        log_error(logger, "Alert run aborted", exc, category=exc.category, path=request.url.path)
    else:
        logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")

    body = ErrorResponse(error=str(exc), category=exc.category, detail=exc.detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health():
    """Health check endpoint."""
    return HealthResponse()


@app.api_route(
    "/cron/dd-alerts",
    methods=["GET", "POST"],
    response_model=AlertRunResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized - invalid or missing bearer secret"},
        500: {"model": ErrorResponse, "description": "Configuration, query or delivery failure"},
    },
    tags=["Alerts"],
)
async def dd_alerts(
    settings: Annotated[AlertSettings, Depends(verify_cron_secret)],
    dry_run: Annotated[
        bool,
        Query(description="Compute alerts without sending email"),
    ] = False,
):
    """
    Run the DD deadline alert check.

    This endpoint:
    1. Loads deals with a DD deadline between today and today+2
    2. Keeps those with 48 hours or less remaining
    3. Emails each deal's owner, or the admins for unassigned deals
    4. Returns the deals found and the alerts sent
    """
    settings.require_credentials()

    store = get_store(settings)
    mailer = get_mailer(settings)

    result = await run_deadline_check(store, mailer, settings, now=utc_now(), dry_run=dry_run)

    log_request(
        logger,
        "DD alert run complete",
        deals_found=result.deals_found,
        emails_sent=result.emails_sent,
        failed=len(result.failed),
        dry_run=dry_run,
    )
    return AlertRunResponse.from_result(result)


# Run with: uvicorn api.main:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
