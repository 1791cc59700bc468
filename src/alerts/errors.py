"""
Error taxonomy for deadline alert runs.

Every abort of a run surfaces as one of these, so callers (HTTP trigger, CLI)
can report a structured category without inspecting library exceptions.
"""


class AlertError(Exception):
    """Base class for errors that abort an alert run."""

    category = "internal"

    @property
    def detail(self) -> str | None:
        """Short machine-readable context for the error, if any."""
        return None


class UnauthorizedError(AlertError):
    """Raised when the trigger credential is missing or wrong."""

    category = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ConfigurationError(AlertError):
    """Raised when required settings are missing or invalid."""

    category = "configuration"

    def __init__(self, message: str, missing: list[str] | None = None):
        self.missing = missing or []
        super().__init__(message)

    @property
    def detail(self) -> str | None:
        return ", ".join(self.missing) or None


class QueryError(AlertError):
    """Raised when a record store query fails."""

    category = "query"

    def __init__(self, query: str, message: str):
        self.query = query
        super().__init__(f"Failed to query {query}: {message}")

    @property
    def detail(self) -> str | None:
        return self.query


class DeliveryError(AlertError):
    """Raised when the email service rejects or fails a send."""

    category = "delivery"

    def __init__(self, message: str, deal_id: str | None = None):
        self.deal_id = deal_id
        super().__init__(message)

    @property
    def detail(self) -> str | None:
        return self.deal_id
