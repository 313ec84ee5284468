"""Persistence adapter between routine rows and engine records."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.exceptions import NotFoundError, PersistenceError
from src.models.enums import RoutineFrequency
from src.models.routine import Routine
from src.services.streak_engine import RoutineRecord, RoutineStep

logger = logging.getLogger(__name__)


def _as_aware(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything leaving the store is UTC-aware."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _to_record(row: Routine) -> RoutineRecord:
    return RoutineRecord(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description or "",
        group=row.group or None,
        frequency=RoutineFrequency(row.frequency),
        steps=[
            RoutineStep(
                id=step["id"],
                title=step["title"],
                completed=bool(step.get("completed", False)),
                order=int(step.get("order", index)),
            )
            for index, step in enumerate(row.steps or [])
        ],
        completed_dates=list(row.completed_dates or []),
        streak=row.streak or 0,
        last_completed_at=_as_aware(row.last_completed_at),
        created_at=_as_aware(row.created_at),
        updated_at=_as_aware(row.updated_at),
    )


def _apply(row: Routine, record: RoutineRecord) -> None:
    row.title = record.title
    row.description = record.description or ""
    row.group = record.group or None
    row.frequency = RoutineFrequency(record.frequency).value
    row.steps = [step.to_dict() for step in record.steps]
    row.completed_dates = list(record.completed_dates)
    row.streak = record.streak
    if record.last_completed_at is not None:
        row.last_completed_at = record.last_completed_at.astimezone(UTC)
    else:
        row.last_completed_at = None


class RoutineStore:
    """Load and save routines; one commit per write."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Routine store failed to {action}: {e}")
            raise PersistenceError(f"Could not {action}") from e

    def create(self, record: RoutineRecord) -> RoutineRecord:
        """Insert a new routine and return it with its assigned id."""
        with self._guard("create routine"):
            now = datetime.now(UTC)
            row = Routine(owner_id=record.owner_id, created_at=now, updated_at=now)
            if record.id:
                row.id = record.id
            _apply(row, record)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return _to_record(row)

    def load(self, routine_id: str) -> RoutineRecord | None:
        """Fetch one routine, or None when the id does not resolve."""
        with self._guard("load routine"):
            row = self.db.get(Routine, routine_id)
            return _to_record(row) if row is not None else None

    def list_by_owner(self, owner_id: int) -> list[RoutineRecord]:
        """All routines of a user, newest first."""
        with self._guard("list routines"):
            rows = (
                self.db.query(Routine)
                .filter(Routine.owner_id == owner_id)
                .order_by(Routine.created_at.desc(), Routine.id)
                .all()
            )
            return [_to_record(row) for row in rows]

    def save(self, record: RoutineRecord) -> RoutineRecord:
        """Overwrite the stored routine with the record's mutable fields."""
        with self._guard("save routine"):
            row = self.db.get(Routine, record.id)
            if row is None:
                raise NotFoundError(f"Routine with ID {record.id} not found")
            _apply(row, record)
            row.updated_at = datetime.now(UTC)
            self.db.commit()
            self.db.refresh(row)
            return _to_record(row)

    def delete(self, routine_id: str) -> None:
        with self._guard("delete routine"):
            row = self.db.get(Routine, routine_id)
            if row is None:
                raise NotFoundError(f"Routine with ID {routine_id} not found")
            self.db.delete(row)
            self.db.commit()
