"""Shared domain types for the adaptive exam package.

This package is the single source of truth for the string enums that cross the
boundary between the estimator core and the application that stores attempts.

Usage:
    from libs.domain_types import SessionStatus, StopReason
"""

import enum


class SessionStatus(str, enum.Enum):
    """Lifecycle state of an adaptive test session."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class StopReason(str, enum.Enum):
    """Why an adaptive test session finished."""

    MAX_ITEMS = "max_items"
    STABILIZED = "stabilized"
    SEM_TARGET = "sem_target"
    POOL_EXHAUSTED = "pool_exhausted"


class AttemptStatus(str, enum.Enum):
    """Status of a stored attempt."""

    ACTIVE = "active"
    COMPLETED = "completed"


__all__ = [
    "SessionStatus",
    "StopReason",
    "AttemptStatus",
]
