"""
Recipient resolution for deadline alerts.

An EmailResolver lives for exactly one run: it is seeded from the user
profiles loaded at the start of the run and caches every directory lookup,
including misses, so each user id costs at most one lookup per run.
"""

from typing import Callable, Iterable

from alerts.models import AssignedTo, Deal, Unassigned, UserProfile
from api.logging import get_logger

logger = get_logger(__name__)


class EmailResolver:
    """Run-scoped user id -> email cache in front of a directory lookup."""

    def __init__(
        self,
        lookup: Callable[[str], str | None],
        profiles: Iterable[UserProfile] = (),
    ):
        self._lookup = lookup
        self._cache: dict[str, str | None] = {}
        self._names: dict[str, str | None] = {}
        self.lookups = 0

        for profile in profiles:
            self._cache[profile.user_id] = profile.email or None
            self._names[profile.user_id] = profile.first_name

    def resolve(self, user_id: str) -> str | None:
        """Return the user's email, performing at most one lookup per id."""
        if user_id in self._cache:
            return self._cache[user_id]

        self.lookups += 1
        email = self._lookup(user_id) or None
        self._cache[user_id] = email
        if email is None:
            logger.info(f"No email found for user {user_id}")
        return email

    def display_name(self, user_id: str) -> str | None:
        """First name from the user's profile, if one was loaded."""
        return self._names.get(user_id)


def admin_emails(
    resolver: EmailResolver,
    admin_user_ids: Iterable[str],
    fallback: Iterable[str] = (),
) -> list[str]:
    """
    Build the admin recipient set.

    Roster emails come first (in roster order), then the static fallback
    addresses; duplicates keep their first position.
    """
    emails: list[str] = []
    for user_id in admin_user_ids:
        email = resolver.resolve(user_id)
        if email:
            emails.append(email)
    emails.extend(fallback)
    return list(dict.fromkeys(emails))


def recipients_for(deal: Deal, resolver: EmailResolver, admins: list[str]) -> list[str]:
    """
    Pick who gets the alert for a deal.

    Unassigned deals go to the admins. Assigned deals go to the owner alone,
    or to the admins when the owner's email can't be resolved.
    """
    if isinstance(deal.assignment, Unassigned):
        return list(admins)
    if isinstance(deal.assignment, AssignedTo):
        email = resolver.resolve(deal.assignment.user_id)
        return [email] if email else list(admins)
    raise TypeError(f"Unknown assignment for deal {deal.id}: {deal.assignment!r}")
