"""Routine completion and streak computation.

Everything in this module is pure: it never reads the clock or touches the
database. Callers pass ``today`` (a calendar date in the configured routine
timezone) and ``now`` (an aware instant) explicitly, and persist the mutated
``RoutineRecord`` themselves.

Streak rules, for every cadence:

* completion dates are folded into period starts (the day, the ISO week's
  Monday, or the first of the month), so several completions inside one
  period count once;
* the streak survives while the latest completed period is the current one
  or the one just before it (the grace window);
* counting walks backward one period at a time and stops at the first gap.
"""

import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from src.exceptions import InvalidStateError, NotFoundError
from src.models.enums import RoutineFrequency


@dataclass
class RoutineStep:
    """One checklist item of a routine."""

    id: str
    title: str
    completed: bool = False
    order: int = 0

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "completed": self.completed, "order": self.order}


@dataclass
class RoutineRecord:
    """In-memory routine the engine operates on. No DB concerns."""

    id: str | None
    owner_id: int
    title: str
    frequency: RoutineFrequency
    description: str = ""
    group: str | None = None
    steps: list[RoutineStep] = field(default_factory=list)
    completed_dates: list[str] = field(default_factory=list)
    streak: int = 0
    last_completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    # Derived for display, never persisted
    completed_today: bool = False


def format_day(day: date) -> str:
    """Render a calendar date the way completion dates are stored."""
    return day.isoformat()


def parse_day(value: str) -> date:
    """Parse a stored ``YYYY-MM-DD`` completion date."""
    return date.fromisoformat(value)


def _month_index(day: date) -> int:
    return day.year * 12 + day.month - 1


def period_start(day: date, frequency: RoutineFrequency) -> date:
    """First calendar day of the period containing ``day``."""
    if frequency == RoutineFrequency.DAILY:
        return day
    if frequency == RoutineFrequency.WEEKLY:
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def shift_period(start: date, frequency: RoutineFrequency, periods: int) -> date:
    """Move a period start ``periods`` periods into the past."""
    if frequency == RoutineFrequency.DAILY:
        return start - timedelta(days=periods)
    if frequency == RoutineFrequency.WEEKLY:
        return start - timedelta(weeks=periods)
    index = _month_index(start) - periods
    return date(index // 12, index % 12 + 1, 1)


def periods_between(later: date, earlier: date, frequency: RoutineFrequency) -> int:
    """Whole periods separating the periods of two dates."""
    later_start = period_start(later, frequency)
    earlier_start = period_start(earlier, frequency)
    if frequency == RoutineFrequency.MONTHLY:
        return _month_index(later_start) - _month_index(earlier_start)
    days = (later_start - earlier_start).days
    if frequency == RoutineFrequency.WEEKLY:
        return days // 7
    return days


def compute_streak(
    completed_dates: Iterable[str],
    frequency: RoutineFrequency | str,
    today: date,
) -> int:
    """Count consecutive completed periods ending at the current or previous period.

    Dates later than ``today`` are ignored.
    """
    frequency = RoutineFrequency(frequency)
    days = [parse_day(value) for value in completed_dates]
    periods = sorted(
        {period_start(day, frequency) for day in days if day <= today},
        reverse=True,
    )
    if not periods:
        return 0

    current = period_start(today, frequency)
    gap = periods_between(current, periods[0], frequency)
    if gap > 1:
        return 0

    # A completion in the previous period keeps the streak alive until
    # the current period is over.
    expected = shift_period(current, frequency, gap)
    streak = 0
    for start in periods:
        if start != expected:
            break
        streak += 1
        expected = shift_period(expected, frequency, 1)

    return streak


def is_completed_on(routine: RoutineRecord, today: date) -> bool:
    return format_day(today) in routine.completed_dates


def refresh_streak(routine: RoutineRecord, today: date) -> RoutineRecord:
    """Recompute the cached streak so lapsed streaks read as broken."""
    routine.streak = compute_streak(routine.completed_dates, routine.frequency, today)
    routine.completed_today = is_completed_on(routine, today)
    return routine


def new_step(title: str, order: int, step_id: str | None = None, completed: bool = False) -> RoutineStep:
    return RoutineStep(id=step_id or str(uuid.uuid4()), title=title, completed=completed, order=order)


def build_steps(steps: Sequence[Mapping]) -> list[RoutineStep]:
    """Create fresh, incomplete steps for a new routine.

    A missing ``order`` falls back to the position; the result is sorted by
    order, and ``sorted`` keeps insertion order for ties.
    """
    created = [
        new_step(step["title"], step["order"] if step.get("order") is not None else index)
        for index, step in enumerate(steps)
    ]
    return sorted(created, key=lambda step: step.order)


def replace_steps(routine: RoutineRecord, steps: Sequence[Mapping]) -> RoutineRecord:
    """Replace the whole step list; ``order`` is re-derived from position."""
    routine.steps = [
        new_step(
            step["title"],
            index,
            step_id=step.get("id"),
            completed=bool(step.get("completed", False)),
        )
        for index, step in enumerate(steps)
    ]
    return routine


def change_frequency(
    routine: RoutineRecord, frequency: RoutineFrequency, today: date
) -> RoutineRecord:
    """Switch cadence, keeping history and recounting it under the new cadence."""
    routine.frequency = RoutineFrequency(frequency)
    return refresh_streak(routine, today)


def toggle_step(routine: RoutineRecord, step_id: str) -> RoutineRecord:
    """Flip one step's completion flag. History and streak are untouched."""
    for step in routine.steps:
        if step.id == step_id:
            step.completed = not step.completed
            return routine
    raise NotFoundError(f"Step with ID {step_id} not found")


def reset_steps(routine: RoutineRecord) -> RoutineRecord:
    """Uncheck every step to start a new period's checklist."""
    for step in routine.steps:
        step.completed = False
    return routine


def complete_routine(routine: RoutineRecord, today: date, now: datetime) -> RoutineRecord:
    """Record a full completion for ``today``.

    Not idempotent: a second call on the same day raises InvalidStateError
    and leaves the routine unchanged.
    """
    day = format_day(today)
    if day in routine.completed_dates:
        raise InvalidStateError("Routine already completed today")

    for step in routine.steps:
        step.completed = True
    routine.completed_dates = [*routine.completed_dates, day]
    routine.streak = compute_streak(routine.completed_dates, routine.frequency, today)
    routine.last_completed_at = now
    routine.completed_today = True
    return routine


def get_groups(routines: Iterable[RoutineRecord]) -> list[str]:
    """Sorted distinct non-empty group labels."""
    return sorted({routine.group for routine in routines if routine.group})
