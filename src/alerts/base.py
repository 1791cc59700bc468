"""Abstract collaborators for the alert run: the record store and the mailer."""

from abc import ABC, abstractmethod
from datetime import date

from alerts.models import Deal, UserProfile


class DealStore(ABC):
    """Read-only access to deals and the user directory.

    The three list queries raise QueryError on failure. get_user_email
    returns None when the user can't be resolved.
    """

    @abstractmethod
    def list_deals_due(self, start: date, end: date) -> list[Deal]:
        """Deals whose DD deadline falls in [start, end], both inclusive."""
        pass

    @abstractmethod
    def list_admin_user_ids(self) -> list[str]:
        """User ids holding the admin role."""
        pass

    @abstractmethod
    def list_user_profiles(self) -> list[UserProfile]:
        """All user profiles (id, email, first name)."""
        pass

    @abstractmethod
    def get_user_email(self, user_id: str) -> str | None:
        """Resolve a single user id to an email address."""
        pass


class Mailer(ABC):
    """Outbound email delivery."""

    @abstractmethod
    async def send(self, to: list[str], subject: str, html: str) -> str:
        """Send one message and return its provider id.

        Raises:
            DeliveryError: If the provider rejects the message or is unreachable.
        """
        pass
