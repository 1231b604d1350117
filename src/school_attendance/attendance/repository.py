from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import (
    AttendanceRecord,
    AttendanceRecordDetail,
    AttendanceSession,
    Course,
    Student,
    WeeklyAttendanceRow,
)


class AttendanceRepository(Protocol):
    def get_session(self, session_id: str) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_session_by_date(self, course_id: str, session_date: date) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_sessions(self, course_id: str) -> Sequence[AttendanceSession]:
        """All sessions of a course, newest date first."""

        raise NotImplementedError

    def create_session_with_records(
        self,
        *,
        course_id: str,
        teacher_id: str,
        session_date: date,
        topic: str,
        created_at: datetime,
        statuses: Mapping[str, AttendanceStatus],
    ) -> AttendanceSession:
        """Insert one session and its records in a single transaction.

        ``statuses`` maps student_id -> status and may be empty (session only).
        Records copy course_id and date from the session. Raises
        DuplicateSessionError when (course_id, session_date) already exists;
        nothing is persisted in that case.
        """

        raise NotImplementedError

    def list_session_records(self, session_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_course_records(self, course_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_course_record_details(self, course_id: str) -> Sequence[AttendanceRecordDetail]:
        """Records joined with student name and session topic.

        Ordered by date ascending, then insertion order.
        """

        raise NotImplementedError

    def list_records_between(self, *, course_id: str, start: date, end: date) -> Sequence[WeeklyAttendanceRow]:
        """Records with start <= date <= end, joined with the student's name."""

        raise NotImplementedError


class SchoolDirectory(Protocol):
    """Read-only access to courses/students owned by the enrollment module."""

    def get_course(self, course_id: str) -> Optional[Course]:
        raise NotImplementedError

    def list_courses_by_teacher(self, teacher_id: str) -> Sequence[Course]:
        raise NotImplementedError

    def list_students_by_course(self, course_id: str) -> Sequence[Student]:
        """Students of a course ordered by full name."""

        raise NotImplementedError
