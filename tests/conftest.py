"""
Pytest fixtures for the deal alert service.
"""

import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set test environment before importing app
os.environ["AIRTABLE_API_KEY"] = "test_key"
os.environ["AIRTABLE_BASE_ID"] = "test_base"
os.environ["RESEND_API_KEY"] = "re_test"
os.environ.pop("CRON_SECRET", None)
os.environ.pop("ADMIN_ALERT_EMAILS", None)

from alerts.base import DealStore, Mailer
from alerts.config import AlertSettings
from alerts.errors import DeliveryError, QueryError
from alerts.models import Deal, UserProfile, assignment_from_record

import api.main as api_main


# 2025-01-01 00:00 UTC: today=2025-01-01, window ends 2025-01-03
NOW = datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)


class FakeDealStore(DealStore):
    """In-memory store. Returns every deal it holds, whatever range is asked."""

    def __init__(
        self,
        deals: list[Deal] | None = None,
        admin_ids: list[str] | None = None,
        profiles: list[UserProfile] | None = None,
        directory: dict[str, str] | None = None,
        fail_query: str | None = None,
    ):
        self.deals = deals or []
        self.admin_ids = admin_ids or []
        self.profiles = profiles or []
        self.directory = directory or {}
        self.fail_query = fail_query
        self.calls: list[tuple] = []

    def list_deals_due(self, start: date, end: date) -> list[Deal]:
        self.calls.append(("deals", start, end))
        if self.fail_query == "deals":
            raise QueryError("deals", "connection reset")
        return list(self.deals)

    def list_admin_user_ids(self) -> list[str]:
        self.calls.append(("admin_roles",))
        if self.fail_query == "admin_roles":
            raise QueryError("admin_roles", "permission denied")
        return list(self.admin_ids)

    def list_user_profiles(self) -> list[UserProfile]:
        self.calls.append(("user_profiles",))
        if self.fail_query == "user_profiles":
            raise QueryError("user_profiles", "timeout")
        return list(self.profiles)

    def get_user_email(self, user_id: str) -> str | None:
        self.calls.append(("user_email", user_id))
        return self.directory.get(user_id)


class FakeMailer(Mailer):
    """Records sends; fails on the listed 1-based call numbers."""

    def __init__(self, fail_on: tuple[int, ...] = ()):
        self.fail_on = fail_on
        self.attempts = 0
        self.messages: list[dict] = []

    async def send(self, to: list[str], subject: str, html: str) -> str:
        self.attempts += 1
        if self.attempts in self.fail_on:
            raise DeliveryError("Resend failed: rate limit exceeded")
        self.messages.append({"to": to, "subject": subject, "html": html})
        return f"msg_{self.attempts}"


def make_deal(
    deal_id: str = "rec1",
    deadline: date = date(2025, 1, 2),
    status: str = "Not Assigned",
    rep_id: str | None = None,
    created_by: str = "user_creator",
    address: str = "123 Main St",
    acq_manager: str = "Dana",
) -> Deal:
    return Deal(
        id=deal_id,
        address=address,
        dd_deadline=deadline,
        assignment=assignment_from_record(status, rep_id, created_by),
        created_by=created_by,
        acq_manager_name=acq_manager,
        assigned_rep_id=rep_id,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def deal_factory():
    return make_deal


@pytest.fixture
def store_factory():
    return FakeDealStore


@pytest.fixture
def mailer_factory():
    return FakeMailer


@pytest.fixture
def settings() -> AlertSettings:
    """Settings with credentials and no static admin fallback."""
    return AlertSettings(
        airtable_api_key="test_key",
        airtable_base_id="test_base",
        resend_api_key="re_test",
    )


@pytest.fixture
def client():
    """
    Test client with mocked collaborators.

    Yields (client, store, mailer); tests mutate the fake store's contents.
    The clock is pinned to NOW.
    """
    store = FakeDealStore()
    mailer = FakeMailer()
    with patch.object(api_main, "get_store", return_value=store):
        with patch.object(api_main, "get_mailer", return_value=mailer):
            with patch.object(api_main, "utc_now", return_value=NOW):
                yield TestClient(api_main.app), store, mailer
