from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..common.dateutils import now_local, parse_local_date
from ..common.validators import require_identifier, require_non_empty
from ..core.enums import AttendanceStatus
from ..core.exceptions import EmptyBatchError, InvalidStatusError, ValidationError
from .model import AttendanceRecord, AttendanceSession, Student
from .repository import AttendanceRepository, SchoolDirectory
from .sessions import AttendanceSessionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    session: AttendanceSession
    saved: int
    dropped: dict[str, str] = field(default_factory=dict)


def normalize_statuses(status_map: Mapping[str, object]) -> tuple[dict[str, AttendanceStatus], dict[str, str]]:
    """Split a raw student_id -> token map into (valid, invalid) parts."""

    valid: dict[str, AttendanceStatus] = {}
    invalid: dict[str, str] = {}
    for student_id, raw in status_map.items():
        key = str(student_id).strip()
        try:
            valid[key] = AttendanceStatus.parse(raw)
        except InvalidStatusError:
            invalid[key] = str(raw)
    return valid, invalid


class AttendanceService:
    """Takes a day's attendance for a course.

    The whole batch is validated before anything is written, and the session
    is stored together with its records in one transaction, so a rejected
    submission never leaves an empty session behind.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: AttendanceSessionManager,
        directory: Optional[SchoolDirectory] = None,
        *,
        strict: bool = True,
    ):
        self._attendance = attendance
        self._sessions = sessions
        self._directory = directory
        self._strict = bool(strict)

    def save_attendance(
        self,
        course_id: str,
        date_label: str,
        topic: str,
        status_map: Mapping[str, object],
        *,
        teacher_id: Optional[str],
        now: datetime | None = None,
    ) -> SaveResult:
        if not teacher_id:
            raise ValidationError("No hay sesión activa. Inicia sesión nuevamente.")
        course_id = require_identifier(course_id, "Curso")
        topic = require_non_empty(topic, "El tema de la clase")
        if not status_map:
            raise ValidationError("Debes registrar la asistencia de al menos un alumno")
        session_date = parse_local_date(date_label)

        valid, invalid = normalize_statuses(status_map)
        if invalid:
            if self._strict:
                raise InvalidStatusError(
                    "Estados de asistencia no válidos para: " + ", ".join(sorted(invalid)),
                    invalid=invalid,
                )
            logger.warning("Dropping %d invalid statuses for course %s on %s: %s", len(invalid), course_id, session_date, invalid)
        if not valid:
            raise EmptyBatchError("Ningún estado de asistencia válido para guardar")

        self._sessions.ensure_no_session(course_id, session_date)
        session = self._attendance.create_session_with_records(
            course_id=course_id,
            teacher_id=str(teacher_id),
            session_date=session_date,
            topic=topic,
            created_at=now or now_local(),
            statuses=valid,
        )
        logger.info(
            "Attendance saved for course %s on %s: session=%s records=%d",
            course_id,
            session_date,
            session.session_id,
            len(valid),
        )
        return SaveResult(session=session, saved=len(valid), dropped=invalid)

    def get_session_records(self, session_id: str) -> Sequence[AttendanceRecord]:
        return self._attendance.list_session_records(require_identifier(session_id, "Sesión"))

    def get_students_by_course(self, course_id: str) -> Sequence[Student]:
        if self._directory is None:
            return []
        return self._directory.list_students_by_course(require_identifier(course_id, "Curso"))
