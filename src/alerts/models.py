"""
Data types for deal deadline alerts.
"""

from dataclasses import dataclass, field
from datetime import date


NOT_ASSIGNED = "Not Assigned"
ASSIGNED = "Assigned"


@dataclass(frozen=True)
class Unassigned:
    """Deal has no responsible rep; alerts go to the admin roster."""


@dataclass(frozen=True)
class AssignedTo:
    """Deal is owned by a user who receives its alerts."""

    user_id: str


Assignment = Unassigned | AssignedTo


def assignment_from_record(
    status: str | None,
    assigned_rep_id: str | None,
    created_by: str,
) -> Assignment:
    """
    Build the assignment variant from the stored status and rep fields.

    An "Assigned" deal with no rep id falls back to its creator.
    """
    if status == NOT_ASSIGNED:
        return Unassigned()
    return AssignedTo(assigned_rep_id or created_by)


@dataclass
class Deal:
    """The alert-relevant subset of a deal record."""

    id: str
    address: str
    dd_deadline: date
    assignment: Assignment
    created_by: str
    acq_manager_name: str = ""
    assigned_rep_id: str | None = None


@dataclass
class UserProfile:
    """A user profile row: id, email and display name."""

    user_id: str
    email: str | None = None
    first_name: str | None = None


@dataclass
class SentNotification:
    deal_id: str
    recipients: list[str]


@dataclass
class FailedNotification:
    deal_id: str
    recipients: list[str]
    error: str


@dataclass
class AlertRunResult:
    """Summary of one alert run."""

    deals_found: int = 0
    sent: list[SentNotification] = field(default_factory=list)
    failed: list[FailedNotification] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # deal ids with no recipients
    dry_run: bool = False

    @property
    def emails_sent(self) -> int:
        return len(self.sent)
