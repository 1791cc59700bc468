"""
Pydantic models for the deal alert API responses.
"""

from typing import Literal

from pydantic import BaseModel, Field

from alerts.models import AlertRunResult


class HealthResponse(BaseModel):
    """Response from GET /health."""

    status: str = "ok"
    version: str = "1.0.0"


class ErrorResponse(BaseModel):
    """Error response for an aborted or rejected run."""

    error: str
    category: Literal["unauthorized", "configuration", "query", "delivery", "internal"]
    detail: str | None = None


class SentAlert(BaseModel):
    """A deal alert and the addresses it went to."""

    deal_id: str
    recipients: list[str]


class FailedAlert(BaseModel):
    """A deal alert that could not be delivered (continue policy only)."""

    deal_id: str
    recipients: list[str]
    error: str


class AlertRunResponse(BaseModel):
    """Response from /cron/dd-alerts."""

    ok: bool = True
    deals_found: int = Field(description="Deals within the alert window and urgency threshold")
    emails_sent: int = Field(description="Alerts sent (or planned, on a dry run)")
    sent: list[SentAlert] = Field(default=[])
    failed: list[FailedAlert] = Field(default=[])
    skipped: list[str] = Field(default=[], description="Deal ids with no resolvable recipients")
    dry_run: bool = False

    @classmethod
    def from_result(cls, result: AlertRunResult) -> "AlertRunResponse":
        return cls(
            deals_found=result.deals_found,
            emails_sent=result.emails_sent,
            sent=[SentAlert(deal_id=s.deal_id, recipients=s.recipients) for s in result.sent],
            failed=[
                FailedAlert(deal_id=f.deal_id, recipients=f.recipients, error=f.error)
                for f in result.failed
            ],
            skipped=result.skipped,
            dry_run=result.dry_run,
        )
