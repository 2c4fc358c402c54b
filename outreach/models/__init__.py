# outreach/models/__init__.py
# Central import surface for record types and their persisted column layouts.

from .activity import ACTIVITY_COLUMNS, ActivityKind, ActivityLogEntry
from .assignment import ASSIGNMENT_COLUMNS, Assignment
from .contact import (
    CALL_OUTCOMES,
    CONTACT_COLUMNS,
    MESSAGING_OUTCOMES,
    QUEUE_OPEN_STATES,
    Contact,
    ContactInput,
    ContactOrigin,
    ContactState,
    parse_state,
)
from .historical import HISTORICAL_COLUMNS, OUTREACH_FIRST_COLUMN, HistoricalBaseRecord
from .user import USER_COLUMNS, User

__all__ = [
    "ACTIVITY_COLUMNS",
    "ActivityKind",
    "ActivityLogEntry",
    "ASSIGNMENT_COLUMNS",
    "Assignment",
    "CALL_OUTCOMES",
    "CONTACT_COLUMNS",
    "MESSAGING_OUTCOMES",
    "QUEUE_OPEN_STATES",
    "Contact",
    "ContactInput",
    "ContactOrigin",
    "ContactState",
    "parse_state",
    "HISTORICAL_COLUMNS",
    "OUTREACH_FIRST_COLUMN",
    "HistoricalBaseRecord",
    "USER_COLUMNS",
    "User",
]
