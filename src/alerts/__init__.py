"""
Alerts module for deal DD deadline monitoring.

Standalone service that checks the deal store for upcoming due-diligence
deadlines and emails the responsible users.
"""

from alerts.deadlines import hours_left, lookahead_window, render_alert, run_deadline_check
from alerts.errors import AlertError, ConfigurationError, DeliveryError, QueryError, UnauthorizedError
from alerts.models import AssignedTo, Deal, Unassigned

__all__ = [
    "AlertError",
    "AssignedTo",
    "ConfigurationError",
    "Deal",
    "DeliveryError",
    "QueryError",
    "Unassigned",
    "UnauthorizedError",
    "hours_left",
    "lookahead_window",
    "render_alert",
    "run_deadline_check",
]
