from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateSessionError, StoreUnavailableError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_entry, normalize_mysql_date
from .model import (
    AttendanceRecord,
    AttendanceRecordDetail,
    AttendanceSession,
    Course,
    Student,
    WeeklyAttendanceRow,
)
from .repository import AttendanceRepository, SchoolDirectory

_SESSION_COLUMNS = "session_id, course_id, teacher_id, session_date, topic, created_at"
_RECORD_COLUMNS = "record_id, session_id, course_id, student_id, record_date, status"


def _new_id() -> str:
    return str(uuid.uuid4())


def _to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=str(r["session_id"]),
        course_id=str(r["course_id"]),
        teacher_id=str(r["teacher_id"]),
        session_date=normalize_mysql_date(r["session_date"]),
        topic=r.get("topic") or "",
        created_at=r["created_at"],
    )


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=str(r["record_id"]),
        session_id=str(r["session_id"]),
        course_id=str(r["course_id"]),
        student_id=str(r["student_id"]),
        record_date=normalize_mysql_date(r["record_date"]),
        status=AttendanceStatus(r["status"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_session(self, session_id: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE session_id=%s",
                (session_id,),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_session_by_date(self, course_id: str, session_date: date) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE course_id=%s AND session_date=%s",
                (course_id, session_date),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_sessions(self, course_id: str) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                WHERE course_id=%s
                ORDER BY session_date DESC
                """,
                (course_id,),
            )
            return [_to_session(r) for r in fetchall(cur)]

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
        session = AttendanceSession(
            session_id=_new_id(),
            course_id=course_id,
            teacher_id=teacher_id,
            session_date=session_date,
            topic=topic,
            created_at=created_at,
        )
        rows = [
            (_new_id(), session.session_id, session.course_id, student_id, session.session_date, status.value)
            for student_id, status in statuses.items()
        ]

        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"INSERT INTO attendance_sessions({_SESSION_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s)",
                    (
                        session.session_id,
                        session.course_id,
                        session.teacher_id,
                        session.session_date,
                        session.topic,
                        session.created_at,
                    ),
                )
                if rows:
                    cur.executemany(
                        f"INSERT INTO attendance_records({_RECORD_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s)",
                        rows,
                    )
        except mysql.connector.IntegrityError as e:
            if is_duplicate_entry(e) and "uq_session_course_date" in str(e):
                raise DuplicateSessionError("Ya existe una sesión de asistencia para esta fecha") from e
            raise StoreUnavailableError(f"Error de base de datos: {e}") from e
        return session

    def list_session_records(self, session_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE session_id=%s ORDER BY seq ASC",
                (session_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_course_records(self, course_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE course_id=%s ORDER BY record_date ASC, seq ASC",
                (course_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_course_record_details(self, course_id: str) -> Sequence[AttendanceRecordDetail]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    ar.record_id, ar.session_id, ar.student_id, ar.record_date, ar.status,
                    st.full_name, st.dni,
                    s.topic
                FROM attendance_records ar
                JOIN students st ON st.student_id = ar.student_id
                JOIN attendance_sessions s ON s.session_id = ar.session_id
                WHERE ar.course_id=%s
                ORDER BY ar.record_date ASC, ar.seq ASC
                """,
                (course_id,),
            )
            return [
                AttendanceRecordDetail(
                    record_id=str(r["record_id"]),
                    session_id=str(r["session_id"]),
                    student_id=str(r["student_id"]),
                    full_name=r["full_name"],
                    record_date=normalize_mysql_date(r["record_date"]),
                    status=AttendanceStatus(r["status"]),
                    topic=r.get("topic") or "",
                    dni=r.get("dni"),
                )
                for r in fetchall(cur)
            ]

    def list_records_between(self, *, course_id: str, start: date, end: date) -> Sequence[WeeklyAttendanceRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ar.student_id, st.full_name, ar.record_date, ar.status
                FROM attendance_records ar
                JOIN students st ON st.student_id = ar.student_id
                WHERE ar.course_id=%s AND ar.record_date BETWEEN %s AND %s
                """,
                (course_id, start, end),
            )
            return [
                WeeklyAttendanceRow(
                    student_id=str(r["student_id"]),
                    full_name=r["full_name"],
                    date=normalize_mysql_date(r["record_date"]).strftime("%Y-%m-%d"),
                    status=AttendanceStatus(r["status"]),
                )
                for r in fetchall(cur)
            ]


class MySQLSchoolDirectory(SchoolDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_course(r: dict) -> Course:
        return Course(
            course_id=str(r["course_id"]),
            name=r["name"],
            teacher_id=str(r["teacher_id"]) if r.get("teacher_id") else None,
            grade=r.get("grade"),
            section=r.get("section"),
            level=r.get("level"),
            area=r.get("area"),
            period=r.get("period"),
            year=int(r["year"]) if r.get("year") is not None else None,
        )

    def get_course(self, course_id: str) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT course_id, name, teacher_id, grade, section, level, area, period, year
                FROM courses WHERE course_id=%s
                """,
                (course_id,),
            )
            r = fetchone(cur)
            return self._to_course(r) if r else None

    def list_courses_by_teacher(self, teacher_id: str) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT course_id, name, teacher_id, grade, section, level, area, period, year
                FROM courses WHERE teacher_id=%s
                ORDER BY name ASC
                """,
                (teacher_id,),
            )
            return [self._to_course(r) for r in fetchall(cur)]

    def list_students_by_course(self, course_id: str) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT student_id, full_name, dni, course_id FROM students WHERE course_id=%s ORDER BY full_name ASC",
                (course_id,),
            )
            return [
                Student(
                    student_id=str(r["student_id"]),
                    full_name=r["full_name"],
                    course_id=str(r["course_id"]),
                    dni=r.get("dni"),
                )
                for r in fetchall(cur)
            ]
