"""SQLAlchemy models."""

from src.models.routine import Routine
from src.models.user import User

__all__ = [
    "User",
    "Routine",
]
