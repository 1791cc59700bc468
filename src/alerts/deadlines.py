"""
Deadline alert service for deal due-diligence monitoring.

Finds deals whose DD deadline is today, tomorrow or the day after, keeps the
ones with 48 hours or less remaining, and emails each deal's owner (or the
admins, when nobody owns it).

Usage:
    PYTHONPATH=src python -m alerts.deadlines
    PYTHONPATH=src python -m alerts.deadlines --dry-run
    PYTHONPATH=src python -m alerts.deadlines --now 2025-01-01T08:00:00+00:00
"""

import argparse
import asyncio
import html
import math
import sys
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from alerts.base import DealStore, Mailer
from alerts.config import (
    LOOKAHEAD_DAYS,
    URGENCY_THRESHOLD_HOURS,
    AlertSettings,
    DeliveryPolicy,
)
from alerts.errors import AlertError, DeliveryError
from alerts.models import (
    AlertRunResult,
    Deal,
    FailedNotification,
    SentNotification,
    Unassigned,
)
from alerts.recipients import EmailResolver, admin_emails, recipients_for
from api.logging import get_logger, log_error, log_request

logger = get_logger(__name__)


@dataclass
class AlertEmail:
    """A rendered alert, ready to send."""

    subject: str
    html: str


def _as_utc(now: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def lookahead_window(now: datetime) -> tuple[date, date]:
    """Calendar dates [today, today + LOOKAHEAD_DAYS], with today taken in UTC."""
    today = _as_utc(now).date()
    return today, today + timedelta(days=LOOKAHEAD_DAYS)


def in_window(deal: Deal, start: date, end: date) -> bool:
    return start <= deal.dd_deadline <= end


def end_of_day(d: date, tz: tzinfo) -> datetime:
    """The last second of a calendar day (23:59:59) in the given timezone."""
    return datetime.combine(d, time(23, 59, 59), tzinfo=tz)


def hours_left(deadline: date, now: datetime, tz: tzinfo = timezone.utc) -> int:
    """
    Whole hours from now until the end of the deadline day.

    Rounded half up and never negative; a passed deadline reads as 0.
    """
    delta = end_of_day(deadline, tz) - _as_utc(now)
    hours = delta.total_seconds() / 3600
    return max(0, math.floor(hours + 0.5))


def is_urgent(deal: Deal, now: datetime, tz: tzinfo = timezone.utc) -> bool:
    return hours_left(deal.dd_deadline, now, tz) <= URGENCY_THRESHOLD_HOURS


def rep_display_name(deal: Deal, resolver: EmailResolver) -> str:
    """Name shown as the assigned rep in the alert."""
    if isinstance(deal.assignment, Unassigned) or not deal.assigned_rep_id:
        return "Unassigned"
    return resolver.display_name(deal.assigned_rep_id) or "Assigned Rep"


def render_alert(
    deal: Deal,
    rep_name: str,
    hours: int,
    dashboard_url: str | None = None,
) -> AlertEmail:
    """Render the subject and HTML body for a deal's deadline alert."""
    esc = html.escape

    if dashboard_url:
        action = (
            f'<p>Open the <a href="{esc(dashboard_url, quote=True)}">deal dashboard</a> '
            f"and take action.</p>"
        )
    else:
        action = "<p>Open the deal dashboard and take action.</p>"

    body = "\n".join(
        [
            f"<p><strong>Deal:</strong> {esc(deal.address)}</p>",
            f"<p><strong>Acq Manager:</strong> {esc(deal.acq_manager_name or 'Unknown')}</p>",
            f"<p><strong>Assigned Rep:</strong> {esc(rep_name)}</p>",
            f"<p><strong>DD Deadline:</strong> {deal.dd_deadline.isoformat()}</p>",
            f"<p><strong>Time Remaining:</strong> ~{hours} hours</p>",
            action,
        ]
    )

    return AlertEmail(subject=f"DD Deadline Alert: {deal.address}", html=body)


def find_due_deals(
    store: DealStore,
    now: datetime,
    tz: tzinfo,
    enforce_urgency: bool = True,
) -> list[Deal]:
    """
    Load the deals that should be alerted on right now.

    The window filter is re-applied to the store results.
    """
    start, end = lookahead_window(now)
    candidates = [deal for deal in store.list_deals_due(start, end) if in_window(deal, start, end)]
    log_request(logger, "Deals in lookahead window", start=start, end=end, count=len(candidates))

    if not enforce_urgency:
        return candidates

    due = [deal for deal in candidates if is_urgent(deal, now, tz)]
    if len(due) != len(candidates):
        logger.info(
            f"{len(candidates) - len(due)} deal(s) have more than "
            f"{URGENCY_THRESHOLD_HOURS}h left, not alerting yet"
        )
    return due


async def run_deadline_check(
    store: DealStore,
    mailer: Mailer,
    settings: AlertSettings,
    now: datetime | None = None,
    dry_run: bool = False,
) -> AlertRunResult:
    """
    Run one deadline check and send alerts.

    Args:
        store: Record store to read deals and users from
        mailer: Email delivery service
        settings: Runtime settings (admin fallback list, policy, timezone)
        now: Override the current time (for testing)
        dry_run: Render and log alerts without sending them

    Returns:
        AlertRunResult with counts and the (deal, recipients) pairs sent

    Raises:
        QueryError: If a store query fails (nothing is sent)
        DeliveryError: If a send fails under the fail_fast policy; alerts
            already sent in this run stay sent
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    tz = settings.tz
    result = AlertRunResult(dry_run=dry_run)

    logger.info(f"Checking DD deadlines at {now.isoformat()}{' (dry run)' if dry_run else ''}")

    due = find_due_deals(store, now, tz, settings.enforce_urgency_threshold)
    result.deals_found = len(due)

    if not due:
        logger.info("No deals need alerts")
        return result

    admin_ids = store.list_admin_user_ids()
    profiles = store.list_user_profiles()

    resolver = EmailResolver(store.get_user_email, profiles)
    admins = admin_emails(resolver, admin_ids, settings.admin_emails)
    logger.info(f"Resolved {len(admins)} admin recipient(s)")

    for deal in due:
        recipients = recipients_for(deal, resolver, admins)

        if not recipients:
            logger.warning(f"No recipients for deal {deal.id} ({deal.address}), skipping")
            result.skipped.append(deal.id)
            continue

        hours = hours_left(deal.dd_deadline, now, tz)
        email = render_alert(deal, rep_display_name(deal, resolver), hours, settings.dashboard_url)

        if dry_run:
            log_request(logger, "Would send alert", deal_id=deal.id, recipients=", ".join(recipients))
            result.sent.append(SentNotification(deal_id=deal.id, recipients=recipients))
            continue

        try:
            message_id = await mailer.send(recipients, email.subject, email.html)
        except DeliveryError as e:
            e.deal_id = e.deal_id or deal.id
            log_error(logger, "Alert delivery failed", e, deal_id=deal.id, sent_so_far=len(result.sent))
            if settings.delivery_policy == DeliveryPolicy.FAIL_FAST:
                raise
            result.failed.append(
                FailedNotification(deal_id=deal.id, recipients=recipients, error=str(e))
            )
            continue

        log_request(
            logger,
            "Alert sent",
            deal_id=deal.id,
            recipients=len(recipients),
            hours_left=hours,
            message_id=message_id,
        )
        result.sent.append(SentNotification(deal_id=deal.id, recipients=recipients))

    logger.info(
        f"Deadline check complete: {result.deals_found} found, {result.emails_sent} sent, "
        f"{len(result.failed)} failed, {len(result.skipped)} skipped"
    )
    return result


def _parse_now(value: str) -> datetime:
    """Parse --now as an ISO datetime or a bare date (midnight UTC)."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        parsed = datetime.combine(date.fromisoformat(value), time.min)
    return _as_utc(parsed)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Check for upcoming DD deadlines and send email alerts"
    )
    parser.add_argument(
        "--now",
        type=str,
        help="Run as if the current time were this ISO date or datetime",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List alerts without sending emails",
    )
    args = parser.parse_args()

    now = None
    if args.now:
        try:
            now = _parse_now(args.now)
        except ValueError:
            print(f"Invalid --now value: {args.now}. Use YYYY-MM-DD or an ISO datetime.")
            sys.exit(1)

    # Deferred so the core stays importable without the service adapters
    from api.services.airtable import AirtableDealStore
    from api.services.email import ResendMailer

    try:
        settings = AlertSettings.from_env()
        settings.require_credentials()
        store = AirtableDealStore.from_settings(settings)
        mailer = ResendMailer.from_settings(settings)
        result = asyncio.run(run_deadline_check(store, mailer, settings, now=now, dry_run=args.dry_run))
    except AlertError as e:
        print(f"Deadline check failed ({e.category}): {e}")
        sys.exit(1)

    print("\nSummary:")
    print(f"  Deals found: {result.deals_found}")
    print(f"  {'Alerts planned' if result.dry_run else 'Emails sent'}: {result.emails_sent}")
    for sent in result.sent:
        print(f"    - {sent.deal_id}: {', '.join(sent.recipients)}")
    if result.skipped:
        print(f"  Skipped (no recipients): {', '.join(result.skipped)}")
    if result.failed:
        print(f"  Failed: {len(result.failed)}")
        for failed in result.failed:
            print(f"    - {failed.deal_id}: {failed.error}")
        sys.exit(1)


if __name__ == "__main__":
    main()
