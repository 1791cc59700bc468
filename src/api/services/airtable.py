"""
Airtable-backed record store for deals and the user directory.
"""

from datetime import date, datetime

from pyairtable import Api, Table

from alerts.base import DealStore
from alerts.config import AlertSettings
from alerts.errors import QueryError
from alerts.models import Deal, UserProfile, assignment_from_record
from api.logging import get_logger, log_error

logger = get_logger(__name__)


# Fields projected from the Deals table
DEAL_FIELDS = [
    "address",
    "dd_deadline",
    "assignment_status",
    "assigned_rep_user_id",
    "created_by",
    "acq_manager_first_name",
]


def _quote(value: str) -> str:
    """Quote a string literal for an Airtable formula."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def deadline_range_formula(start: date, end: date, field: str = "dd_deadline") -> str:
    """Formula matching records whose date field is within [start, end]."""
    return (
        f"AND("
        f"NOT(IS_BEFORE({{{field}}}, {_quote(start.isoformat())})), "
        f"NOT(IS_AFTER({{{field}}}, {_quote(end.isoformat())}))"
        f")"
    )


def parse_date(date_str: str | None) -> date | None:
    """Parse an ISO date (or the date part of an ISO datetime)."""
    if not date_str:
        return None
    try:
        return datetime.strptime(date_str[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def record_to_deal(record: dict) -> Deal | None:
    """Convert an Airtable Deals record, or None if its deadline is unusable."""
    fields = record.get("fields", {})
    deadline = parse_date(fields.get("dd_deadline"))
    if deadline is None:
        logger.warning(f"Deal {record['id']} has invalid DD deadline {fields.get('dd_deadline')!r}")
        return None

    created_by = fields.get("created_by") or ""
    rep_id = fields.get("assigned_rep_user_id") or None

    return Deal(
        id=record["id"],
        address=fields.get("address", ""),
        dd_deadline=deadline,
        assignment=assignment_from_record(fields.get("assignment_status"), rep_id, created_by),
        created_by=created_by,
        acq_manager_name=fields.get("acq_manager_first_name", ""),
        assigned_rep_id=rep_id,
    )


class AirtableDealStore(DealStore):
    """Reads deals, admin roles, profiles and user emails from Airtable."""

    def __init__(
        self,
        api_key: str,
        base_id: str,
        deals_table: str = "Deals",
        roles_table: str = "User Roles",
        profiles_table: str = "User Profiles",
        users_table: str = "Users",
    ):
        if not api_key:
            raise ValueError("AIRTABLE_API_KEY not set")
        if not base_id:
            raise ValueError("AIRTABLE_BASE_ID not set")

        self.api = Api(api_key)
        self.base_id = base_id
        self.deals: Table = self.api.table(base_id, deals_table)
        self.roles: Table = self.api.table(base_id, roles_table)
        self.profiles: Table = self.api.table(base_id, profiles_table)
        self.users: Table = self.api.table(base_id, users_table)

    @classmethod
    def from_settings(cls, settings: AlertSettings) -> "AirtableDealStore":
        return cls(
            api_key=settings.airtable_api_key,
            base_id=settings.airtable_base_id,
            deals_table=settings.deals_table,
            roles_table=settings.roles_table,
            profiles_table=settings.profiles_table,
            users_table=settings.users_table,
        )

    def list_deals_due(self, start: date, end: date) -> list[Deal]:
        try:
            records = self.deals.all(
                formula=deadline_range_formula(start, end),
                fields=DEAL_FIELDS,
            )
        except Exception as e:
            raise QueryError("deals", f"{type(e).__name__}: {e}") from e

        deals = []
        for record in records:
            deal = record_to_deal(record)
            if deal is not None:
                deals.append(deal)
        return deals

    def list_admin_user_ids(self) -> list[str]:
        try:
            records = self.roles.all(formula="{role} = 'admin'", fields=["user_id"])
        except Exception as e:
            raise QueryError("admin_roles", f"{type(e).__name__}: {e}") from e

        return [r["fields"]["user_id"] for r in records if r.get("fields", {}).get("user_id")]

    def list_user_profiles(self) -> list[UserProfile]:
        try:
            records = self.profiles.all(fields=["user_id", "email", "first_name"])
        except Exception as e:
            raise QueryError("user_profiles", f"{type(e).__name__}: {e}") from e

        profiles = []
        for record in records:
            fields = record.get("fields", {})
            if not fields.get("user_id"):
                continue
            profiles.append(
                UserProfile(
                    user_id=fields["user_id"],
                    email=fields.get("email") or None,
                    first_name=fields.get("first_name") or None,
                )
            )
        return profiles

    def get_user_email(self, user_id: str) -> str | None:
        """Look a user up in the Users directory; failures count as no email."""
        try:
            record = self.users.first(formula=f"{{user_id}} = {_quote(user_id)}", fields=["email"])
        except Exception as e:
            log_error(logger, "User lookup failed", e, user_id=user_id)
            return None

        if not record:
            return None
        return record.get("fields", {}).get("email") or None
