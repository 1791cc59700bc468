"""
Configuration for the deal deadline alert service.

All settings come from environment variables (a local .env file is loaded
with python-dotenv). Settings are read when a run starts, not at import.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from alerts.errors import ConfigurationError


# =============================================================================
# Alert Window
# =============================================================================

LOOKAHEAD_DAYS = 2  # today through today+2, inclusive
URGENCY_THRESHOLD_HOURS = 48


# =============================================================================
# Delivery
# =============================================================================

DEFAULT_FROM_EMAIL = "onboarding@resend.dev"
RESEND_API_URL = "https://api.resend.com"
RESEND_TIMEOUT_SECONDS = 10.0


# =============================================================================
# Airtable Tables
# =============================================================================

DEFAULT_DEALS_TABLE = "Deals"
DEFAULT_ROLES_TABLE = "User Roles"
DEFAULT_PROFILES_TABLE = "User Profiles"
DEFAULT_USERS_TABLE = "Users"


class DeliveryPolicy(str, Enum):
    """What a run does after a send fails."""

    FAIL_FAST = "fail_fast"
    CONTINUE = "continue"


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_email_list(raw: str | None) -> list[str]:
    """Split a comma-separated address list, dropping blanks."""
    if not raw:
        return []
    return [email.strip() for email in raw.split(",") if email.strip()]


@dataclass
class AlertSettings:
    """Runtime settings for the alert service."""

    cron_secret: str | None = None
    airtable_api_key: str | None = None
    airtable_base_id: str | None = None
    resend_api_key: str | None = None
    from_email: str = DEFAULT_FROM_EMAIL
    admin_emails: list[str] = field(default_factory=list)
    delivery_policy: DeliveryPolicy = DeliveryPolicy.FAIL_FAST
    timezone: str = "UTC"
    enforce_urgency_threshold: bool = True
    dashboard_url: str | None = None

    deals_table: str = DEFAULT_DEALS_TABLE
    roles_table: str = DEFAULT_ROLES_TABLE
    profiles_table: str = DEFAULT_PROFILES_TABLE
    users_table: str = DEFAULT_USERS_TABLE

    def __post_init__(self):
        """Validate enum and timezone values."""
        if not isinstance(self.delivery_policy, DeliveryPolicy):
            try:
                self.delivery_policy = DeliveryPolicy(self.delivery_policy)
            except ValueError:
                allowed = ", ".join(p.value for p in DeliveryPolicy)
                raise ConfigurationError(
                    f"Invalid ALERT_DELIVERY_POLICY '{self.delivery_policy}'. Allowed: {allowed}"
                )
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"Invalid ALERT_TIMEZONE '{self.timezone}'")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls) -> "AlertSettings":
        """Build settings from the process environment."""
        load_dotenv()

        return cls(
            cron_secret=os.getenv("CRON_SECRET") or None,
            airtable_api_key=os.getenv("AIRTABLE_API_KEY") or None,
            airtable_base_id=os.getenv("AIRTABLE_BASE_ID") or None,
            resend_api_key=os.getenv("RESEND_API_KEY") or None,
            from_email=os.getenv("ALERT_FROM_EMAIL") or DEFAULT_FROM_EMAIL,
            admin_emails=parse_email_list(os.getenv("ADMIN_ALERT_EMAILS")),
            delivery_policy=os.getenv("ALERT_DELIVERY_POLICY") or DeliveryPolicy.FAIL_FAST,
            timezone=os.getenv("ALERT_TIMEZONE") or "UTC",
            enforce_urgency_threshold=_parse_bool(os.getenv("ENFORCE_URGENCY_THRESHOLD"), True),
            dashboard_url=os.getenv("DASHBOARD_URL") or None,
            deals_table=os.getenv("AIRTABLE_DEALS_TABLE") or DEFAULT_DEALS_TABLE,
            roles_table=os.getenv("AIRTABLE_ROLES_TABLE") or DEFAULT_ROLES_TABLE,
            profiles_table=os.getenv("AIRTABLE_PROFILES_TABLE") or DEFAULT_PROFILES_TABLE,
            users_table=os.getenv("AIRTABLE_USERS_TABLE") or DEFAULT_USERS_TABLE,
        )

    def require_credentials(self) -> None:
        """Raise ConfigurationError naming every missing credential."""
        required = {
            "AIRTABLE_API_KEY": self.airtable_api_key,
            "AIRTABLE_BASE_ID": self.airtable_base_id,
            "RESEND_API_KEY": self.resend_api_key,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )
