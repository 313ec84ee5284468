"""Tests for the routine persistence adapter."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from src.exceptions import NotFoundError, PersistenceError
from src.models.enums import RoutineFrequency
from src.models.user import User
from src.services.routine_store import RoutineStore
from src.services.streak_engine import RoutineRecord, RoutineStep


@pytest.fixture
def owner(db):
    user = User(email="owner@example.com", password_hash="x", name="Owner")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_record(owner_id: int) -> RoutineRecord:
    return RoutineRecord(
        id=None,
        owner_id=owner_id,
        title="Budget check",
        frequency=RoutineFrequency.MONTHLY,
        group="",
        steps=[RoutineStep(id="s1", title="Export statements", order=0)],
    )


class TestRoutineStore:
    """Round trips through a real session."""

    def test_create_assigns_id_and_defaults(self, db, owner):
        store = RoutineStore(db)

        routine = store.create(make_record(owner.id))

        assert routine.id
        assert routine.group is None
        assert routine.description == ""
        assert routine.completed_dates == []
        assert routine.streak == 0
        assert routine.created_at.tzinfo is not None
        assert routine.updated_at.tzinfo is not None

    def test_save_persists_steps_and_history(self, db, owner):
        store = RoutineStore(db)
        routine = store.create(make_record(owner.id))

        routine.steps[0].completed = True
        routine.completed_dates.append("2025-01-06")
        routine.streak = 1
        routine.last_completed_at = datetime(2025, 1, 6, 8, 0, tzinfo=UTC)
        store.save(routine)

        db.expire_all()
        loaded = store.load(routine.id)
        assert loaded.steps == [
            RoutineStep(id="s1", title="Export statements", completed=True, order=0)
        ]
        assert loaded.completed_dates == ["2025-01-06"]
        assert loaded.streak == 1
        assert loaded.last_completed_at == datetime(2025, 1, 6, 8, 0, tzinfo=UTC)
        assert loaded.frequency == RoutineFrequency.MONTHLY

    def test_save_normalizes_completion_time_to_utc(self, db, owner):
        store = RoutineStore(db)
        routine = store.create(make_record(owner.id))

        routine.last_completed_at = datetime(2025, 1, 6, 3, 0, tzinfo=ZoneInfo("America/New_York"))
        store.save(routine)

        db.expire_all()
        loaded = store.load(routine.id)
        assert loaded.last_completed_at == datetime(2025, 1, 6, 8, 0, tzinfo=UTC)
        assert loaded.last_completed_at.utcoffset() == timedelta(0)

    def test_load_missing_returns_none(self, db):
        assert RoutineStore(db).load("missing") is None

    def test_list_by_owner_only_returns_owned(self, db, owner):
        other = User(email="someone@example.com", password_hash="x")
        db.add(other)
        db.commit()
        store = RoutineStore(db)
        store.create(make_record(owner.id))
        store.create(make_record(other.id))

        routines = store.list_by_owner(owner.id)

        assert len(routines) == 1
        assert routines[0].owner_id == owner.id

    def test_delete(self, db, owner):
        store = RoutineStore(db)
        routine = store.create(make_record(owner.id))

        store.delete(routine.id)

        assert store.load(routine.id) is None
        with pytest.raises(NotFoundError):
            store.delete(routine.id)


class TestPersistenceFailures:
    """Database errors surface as PersistenceError after a rollback."""

    def test_load_failure(self):
        session = MagicMock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))

        with pytest.raises(PersistenceError) as exc_info:
            RoutineStore(session).load("r1")

        assert exc_info.value.status_code == 503
        assert isinstance(exc_info.value.__cause__, OperationalError)
        session.rollback.assert_called_once()

    def test_save_failure_does_not_swallow(self):
        session = MagicMock()
        session.commit.side_effect = OperationalError("UPDATE", {}, Exception("timeout"))
        record = make_record(1)
        record.id = "r1"

        with pytest.raises(PersistenceError):
            RoutineStore(session).save(record)

        session.rollback.assert_called_once()
