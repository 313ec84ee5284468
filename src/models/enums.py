"""Enums for model fields."""

from enum import Enum


class RoutineFrequency(str, Enum):
    """Cadence at which a routine is expected to be completed."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
