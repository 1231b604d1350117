from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from school_attendance.attendance.sessions import AttendanceSessionManager
from school_attendance.core.enums import SessionState
from school_attendance.core.exceptions import DuplicateSessionError, StoreUnavailableError, ValidationError

CREATED = datetime(2025, 10, 27, 8, 0, 0)


@pytest.fixture
def manager(attendance_repo):
    return AttendanceSessionManager(attendance_repo)


def test_get_session_by_date_returns_none_when_absent(manager):
    assert manager.get_session_by_date("C1", "2025-10-27") is None


def test_create_session_then_lookup_by_date(manager):
    created = manager.create_session("C1", "T1", "2025-10-27", "Intro", now=CREATED)

    found = manager.get_session_by_date("C1", "2025-10-27")

    assert found == created
    assert found.session_date == date(2025, 10, 27)
    assert found.teacher_id == "T1"
    assert manager.get_session_by_date("C1", "2025-10-28") is None
    assert manager.get_session_by_date("C2", "2025-10-27") is None


def test_create_session_rejects_second_session_for_same_day(manager, attendance_repo):
    manager.create_session("C1", "T1", "2025-10-27", "Intro", now=CREATED)

    with pytest.raises(DuplicateSessionError):
        manager.create_session("C1", "T2", "2025-10-27", "Otro tema", now=CREATED)

    assert len(attendance_repo.sessions) == 1


def test_create_session_requires_topic_and_teacher(manager):
    with pytest.raises(ValidationError):
        manager.create_session("C1", "T1", "2025-10-27", "   ")
    with pytest.raises(ValidationError):
        manager.create_session("C1", "", "2025-10-27", "Intro")


def test_edit_lock_is_monotonic(manager):
    session = manager.create_session("C1", "T1", "2025-10-27", "Intro", now=CREATED)

    checkpoints = [CREATED + timedelta(hours=h) for h in (0, 1, 23, 24)]
    assert all(manager.is_session_editable(session.session_id, now=t) for t in checkpoints)

    later = [CREATED + timedelta(hours=24, seconds=1), CREATED + timedelta(hours=25), CREATED + timedelta(days=30)]
    assert not any(manager.is_session_editable(session.session_id, now=t) for t in later)


def test_session_state_transitions(manager):
    session = manager.create_session("C1", "T1", "2025-10-27", "Intro", now=CREATED)

    assert manager.get_session_state("missing") == SessionState.NONEXISTENT
    assert manager.get_session_state(session.session_id, now=CREATED + timedelta(hours=2)) == SessionState.READY
    assert manager.get_session_state(session.session_id, now=CREATED + timedelta(hours=48)) == SessionState.LOCKED
    assert manager.edit_deadline(session) == CREATED + timedelta(hours=24)


def test_is_session_editable_fails_closed(manager, attendance_repo):
    session = manager.create_session("C1", "T1", "2025-10-27", "Intro", now=CREATED)

    assert manager.is_session_editable("does-not-exist", now=CREATED) is False

    attendance_repo.fail_reads = StoreUnavailableError("timeout")
    assert manager.is_session_editable(session.session_id, now=CREATED) is False


def test_custom_edit_window(attendance_repo):
    manager = AttendanceSessionManager(attendance_repo, edit_window_hours=2)
    session = manager.create_session("C1", "T1", "2025-10-27", "Intro", now=CREATED)

    assert manager.is_session_editable(session.session_id, now=CREATED + timedelta(hours=2))
    assert not manager.is_session_editable(session.session_id, now=CREATED + timedelta(hours=3))


def test_list_sessions_newest_first(manager):
    manager.create_session("C1", "T1", "2025-10-27", "Lunes", now=CREATED)
    manager.create_session("C1", "T1", "2025-10-29", "Miércoles", now=CREATED)
    manager.create_session("C1", "T1", "2025-10-28", "Martes", now=CREATED)

    assert [s.topic for s in manager.list_sessions("C1")] == ["Miércoles", "Martes", "Lunes"]


def test_aware_now_is_compared_on_local_wall_time(manager):
    session = manager.create_session("C1", "T1", "2025-10-27", "Intro", now=CREATED)

    within = (CREATED + timedelta(hours=1)).astimezone(timezone.utc)
    past = (CREATED + timedelta(hours=25)).astimezone(timezone.utc)

    assert manager.is_session_editable(session.session_id, now=within) is True
    assert manager.is_session_editable(session.session_id, now=past) is False


def test_aware_created_at_against_naive_now(manager, attendance_repo):
    created = CREATED.astimezone(timezone(timedelta(hours=-5)))
    session = attendance_repo.add_raw_session(
        course_id="C1", session_date=date(2025, 10, 27), topic="Intro", statuses={}, created_at=created
    )

    assert manager.is_session_editable(session.session_id, now=CREATED + timedelta(hours=2)) is True
    assert manager.is_session_editable(session.session_id, now=CREATED + timedelta(days=2)) is False


def test_is_session_editable_fails_closed_on_unexpected_errors(manager, attendance_repo):
    session = manager.create_session("C1", "T1", "2025-10-27", "Intro", now=CREATED)

    attendance_repo.fail_reads = TypeError("Unsupported MySQL DATE value type")

    assert manager.is_session_editable(session.session_id, now=CREATED) is False
