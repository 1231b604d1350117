from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..common.dateutils import now_local, parse_local_date
from ..common.validators import require_identifier, require_non_empty
from ..core.constants import EDIT_WINDOW_HOURS
from ..core.enums import SessionState
from ..core.exceptions import DuplicateSessionError
from .model import AttendanceSession
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _same_awareness(a: datetime, b: datetime) -> tuple[datetime, datetime]:
    """Bring an aware and a naive timestamp onto naive local wall time."""

    if (a.tzinfo is None) == (b.tzinfo is None):
        return a, b
    if a.tzinfo is not None:
        a = a.astimezone().replace(tzinfo=None)
    if b.tzinfo is not None:
        b = b.astimezone().replace(tzinfo=None)
    return a, b


class AttendanceSessionManager:
    """One attendance session per (course, date), editable for a fixed window.

    Sessions are append-only: there is no update or delete. Once the edit
    window has passed a session stays locked for good.
    """

    def __init__(self, attendance: AttendanceRepository, *, edit_window_hours: int = EDIT_WINDOW_HOURS):
        self._attendance = attendance
        self._edit_window = timedelta(hours=int(edit_window_hours))

    def get_session_by_date(self, course_id: str, date_label: str) -> Optional[AttendanceSession]:
        return self._attendance.get_session_by_date(
            require_identifier(course_id, "Curso"),
            parse_local_date(date_label),
        )

    def list_sessions(self, course_id: str) -> Sequence[AttendanceSession]:
        return self._attendance.list_sessions(require_identifier(course_id, "Curso"))

    def edit_deadline(self, session: AttendanceSession) -> datetime:
        return session.created_at + self._edit_window

    def is_editable(self, session: AttendanceSession, *, now: datetime | None = None) -> bool:
        now, created_at = _same_awareness(now or now_local(), session.created_at)
        return now - created_at <= self._edit_window

    def is_session_editable(self, session_id: str, *, now: datetime | None = None) -> bool:
        """Fails closed: a missing or unreadable session is reported as not editable."""

        try:
            session = self._attendance.get_session(session_id)
            return session is not None and self.is_editable(session, now=now)
        except Exception as e:
            logger.warning("Could not check session %s, treating as locked: %s", session_id, e)
            return False

    def get_session_state(self, session_id: str, *, now: datetime | None = None) -> SessionState:
        session = self._attendance.get_session(session_id)
        if session is None:
            return SessionState.NONEXISTENT
        return SessionState.READY if self.is_editable(session, now=now) else SessionState.LOCKED

    def create_session(
        self,
        course_id: str,
        teacher_id: str,
        date_label: str,
        topic: str,
        *,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Create an empty session for the day.

        The repository's unique (course_id, session_date) key has the final
        word; the lookup here only gives an early, friendlier error.
        """

        course_id = require_identifier(course_id, "Curso")
        teacher_id = require_identifier(teacher_id, "Docente")
        topic = require_non_empty(topic, "El tema de la clase")
        session_date = parse_local_date(date_label)

        self.ensure_no_session(course_id, session_date)
        session = self._attendance.create_session_with_records(
            course_id=course_id,
            teacher_id=teacher_id,
            session_date=session_date,
            topic=topic,
            created_at=now or now_local(),
            statuses={},
        )
        logger.info("Attendance session %s created for course %s on %s", session.session_id, course_id, session_date)
        return session

    def ensure_no_session(self, course_id: str, session_date) -> None:
        if self._attendance.get_session_by_date(course_id, session_date) is not None:
            logger.warning("Duplicate attendance session rejected for course %s on %s", course_id, session_date)
            raise DuplicateSessionError("Ya existe una sesión de asistencia para esta fecha")
