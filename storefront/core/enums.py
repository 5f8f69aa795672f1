"""Enumeration definitions for the storefront data-access layer."""

from enum import Enum


class TransactionState(str, Enum):
    """Lifecycle states of a transaction token."""

    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ABORTED = "aborted"
    ENDED = "ended"


class SortDirection(int, Enum):
    """Sort direction values accepted by the sort grammar."""

    ASC = 1
    DESC = -1
