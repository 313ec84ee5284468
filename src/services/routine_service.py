"""Routine operations: ownership checks around load, one engine step, save."""

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, tzinfo

from src.exceptions import ForbiddenError, NotFoundError
from src.schemas.routine import RoutineCreate, RoutineUpdate
from src.services import streak_engine
from src.services.routine_store import RoutineStore
from src.services.streak_engine import RoutineRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class RoutineService:
    """Service for routine CRUD, step progress and streaks.

    Every mutating method loads the routine once, applies a single engine
    operation and saves once. There is no version check, so concurrent
    writers to the same routine race and the last save wins.
    """

    def __init__(self, store: RoutineStore, clock: Clock = utc_now, tz: tzinfo = UTC):
        self.store = store
        self.clock = clock
        self.tz = tz

    def today(self) -> date:
        """Current calendar day in the configured routine timezone."""
        return self.clock().astimezone(self.tz).date()

    def _load_owned(self, owner_id: int, routine_id: str) -> RoutineRecord:
        routine = self.store.load(routine_id)
        if routine is None:
            raise NotFoundError(f"Routine with ID {routine_id} not found")
        if routine.owner_id != owner_id:
            logger.warning(f"User {owner_id} denied access to routine {routine_id}")
            raise ForbiddenError("Access denied to this routine")
        return routine

    def create_routine(self, owner_id: int, data: RoutineCreate) -> RoutineRecord:
        record = RoutineRecord(
            id=None,
            owner_id=owner_id,
            title=data.title,
            description=data.description or "",
            group=data.group or None,
            frequency=data.frequency,
            steps=streak_engine.build_steps([step.model_dump() for step in data.steps]),
        )
        routine = self.store.create(record)
        logger.info(f"Routine created: {routine.id} for user: {owner_id}")
        return routine

    def list_routines(self, owner_id: int) -> list[RoutineRecord]:
        """All of a user's routines with streaks recounted for today."""
        today = self.today()
        return [
            streak_engine.refresh_streak(routine, today)
            for routine in self.store.list_by_owner(owner_id)
        ]

    def get_routine(self, owner_id: int, routine_id: str) -> RoutineRecord:
        routine = self._load_owned(owner_id, routine_id)
        return streak_engine.refresh_streak(routine, self.today())

    def update_routine(self, owner_id: int, routine_id: str, data: RoutineUpdate) -> RoutineRecord:
        """Apply a partial metadata update; ``steps`` replaces the whole list."""
        routine = self._load_owned(owner_id, routine_id)
        today = self.today()
        changes = data.model_dump(exclude_unset=True)

        if changes.get("title") is not None:
            routine.title = changes["title"]
        if "description" in changes:
            routine.description = changes["description"] or ""
        if "group" in changes:
            routine.group = changes["group"] or None
        if changes.get("steps") is not None:
            streak_engine.replace_steps(routine, changes["steps"])
        if changes.get("frequency") is not None and changes["frequency"] != routine.frequency:
            logger.info(
                f"Routine {routine_id} frequency {routine.frequency.value} -> "
                f"{changes['frequency'].value}, recounting streak"
            )
            streak_engine.change_frequency(routine, changes["frequency"], today)

        routine = self.store.save(routine)
        logger.info(f"Routine updated: {routine_id} for user: {owner_id}")
        return streak_engine.refresh_streak(routine, today)

    def toggle_step(self, owner_id: int, routine_id: str, step_id: str) -> RoutineRecord:
        routine = self._load_owned(owner_id, routine_id)
        streak_engine.toggle_step(routine, step_id)
        routine = self.store.save(routine)
        logger.info(f"Toggled step {step_id} for routine: {routine_id}")
        return streak_engine.refresh_streak(routine, self.today())

    def complete_routine(self, owner_id: int, routine_id: str) -> RoutineRecord:
        """Record today's completion. Raises InvalidStateError if already done today."""
        routine = self._load_owned(owner_id, routine_id)
        now = self.clock()
        today = now.astimezone(self.tz).date()
        streak_engine.complete_routine(routine, today, now)
        routine = self.store.save(routine)
        logger.info(
            f"Routine completed: {routine_id} for user: {owner_id} (streak {routine.streak})"
        )
        return streak_engine.refresh_streak(routine, today)

    def reset_steps(self, owner_id: int, routine_id: str) -> RoutineRecord:
        routine = self._load_owned(owner_id, routine_id)
        streak_engine.reset_steps(routine)
        routine = self.store.save(routine)
        logger.info(f"Reset steps for routine: {routine_id}")
        return streak_engine.refresh_streak(routine, self.today())

    def delete_routine(self, owner_id: int, routine_id: str) -> None:
        self._load_owned(owner_id, routine_id)
        self.store.delete(routine_id)
        logger.info(f"Routine deleted: {routine_id} for user: {owner_id}")

    def list_groups(self, owner_id: int) -> list[str]:
        return streak_engine.get_groups(self.store.list_by_owner(owner_id))
