from __future__ import annotations

import itertools
import threading
from datetime import date, datetime
from typing import Mapping, Optional

import pytest

from school_attendance.attendance.model import (
    AttendanceRecord,
    AttendanceRecordDetail,
    AttendanceSession,
    Course,
    Student,
    WeeklyAttendanceRow,
)
from school_attendance.container import assemble
from school_attendance.core.enums import AttendanceStatus
from school_attendance.core.exceptions import DuplicateSessionError


class InMemoryDirectory:
    def __init__(self, courses=(), students=()):
        self.courses: dict[str, Course] = {c.course_id: c for c in courses}
        self.students: dict[str, Student] = {s.student_id: s for s in students}

    def get_course(self, course_id: str) -> Optional[Course]:
        return self.courses.get(course_id)

    def list_courses_by_teacher(self, teacher_id: str):
        return sorted((c for c in self.courses.values() if c.teacher_id == teacher_id), key=lambda c: c.name)

    def list_students_by_course(self, course_id: str):
        return sorted((s for s in self.students.values() if s.course_id == course_id), key=lambda s: s.full_name)


class InMemoryAttendance:
    """Mimics the MySQL schema: unique (course_id, session_date), one transaction per write."""

    def __init__(self, directory: InMemoryDirectory):
        self._directory = directory
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.sessions: dict[str, AttendanceSession] = {}
        self.records: list[AttendanceRecord] = []
        self.fail_reads = None

    def _check(self):
        if self.fail_reads is not None:
            raise self.fail_reads

    def get_session(self, session_id: str) -> Optional[AttendanceSession]:
        self._check()
        return self.sessions.get(session_id)

    def get_session_by_date(self, course_id: str, session_date: date) -> Optional[AttendanceSession]:
        self._check()
        for s in self.sessions.values():
            if s.course_id == course_id and s.session_date == session_date:
                return s
        return None

    def list_sessions(self, course_id: str):
        return sorted(
            (s for s in self.sessions.values() if s.course_id == course_id),
            key=lambda s: s.session_date,
            reverse=True,
        )

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
        with self._lock:
            if any(s.course_id == course_id and s.session_date == session_date for s in self.sessions.values()):
                raise DuplicateSessionError("Ya existe una sesión de asistencia para esta fecha")
            session = AttendanceSession(
                session_id=f"ses-{next(self._ids)}",
                course_id=course_id,
                teacher_id=teacher_id,
                session_date=session_date,
                topic=topic,
                created_at=created_at,
            )
            self.sessions[session.session_id] = session
            for student_id, status in statuses.items():
                self.records.append(
                    AttendanceRecord(
                        record_id=f"rec-{next(self._ids)}",
                        session_id=session.session_id,
                        course_id=session.course_id,
                        student_id=student_id,
                        record_date=session.session_date,
                        status=status,
                    )
                )
            return session

    def list_session_records(self, session_id: str):
        return [r for r in self.records if r.session_id == session_id]

    def list_course_records(self, course_id: str):
        return sorted((r for r in self.records if r.course_id == course_id), key=lambda r: r.record_date)

    def list_course_record_details(self, course_id: str):
        out = []
        for r in self.list_course_records(course_id):
            student = self._directory.students[r.student_id]
            out.append(
                AttendanceRecordDetail(
                    record_id=r.record_id,
                    session_id=r.session_id,
                    student_id=r.student_id,
                    full_name=student.full_name,
                    record_date=r.record_date,
                    status=r.status,
                    topic=self.sessions[r.session_id].topic,
                    dni=student.dni,
                )
            )
        return out

    def list_records_between(self, *, course_id: str, start: date, end: date):
        return [
            WeeklyAttendanceRow(
                student_id=r.student_id,
                full_name=self._directory.students[r.student_id].full_name,
                date=r.record_date.strftime("%Y-%m-%d"),
                status=r.status,
            )
            for r in self.records
            if r.course_id == course_id and start <= r.record_date <= end
        ]

    def add_raw_session(self, *, course_id: str, session_date: date, topic: str, statuses: dict, created_at=None):
        """Seed data bypassing the service (e.g. a Saturday session)."""
        return self.create_session_with_records(
            course_id=course_id,
            teacher_id="T1",
            session_date=session_date,
            topic=topic,
            created_at=created_at or datetime(2025, 10, 1, 8, 0),
            statuses={k: AttendanceStatus(v) for k, v in statuses.items()},
        )


@pytest.fixture
def directory():
    return InMemoryDirectory(
        courses=[
            Course(course_id="C1", name="Matemática", teacher_id="T1", grade="3", section="A"),
            Course(course_id="C2", name="Comunicación", teacher_id="T1", grade="3", section="B"),
            Course(course_id="C9", name="Arte", teacher_id="T2"),
        ],
        students=[
            Student(student_id="S1", full_name="S1 name", course_id="C1", dni="70000001"),
            Student(student_id="S2", full_name="S2 name", course_id="C1"),
            Student(student_id="S3", full_name="Ana, Pérez", course_id="C2"),
        ],
    )


@pytest.fixture
def attendance_repo(directory):
    return InMemoryAttendance(directory)


@pytest.fixture
def container(attendance_repo, directory):
    return assemble(attendance_repo, directory)
