from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class Student:
    """Alumno matriculado. Solo lectura para este módulo."""

    student_id: str
    full_name: str
    course_id: str
    dni: Optional[str] = None


@dataclass(frozen=True)
class Course:
    """Curso dictado por un docente. Solo lectura para este módulo."""

    course_id: str
    name: str
    teacher_id: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    level: Optional[str] = None
    area: Optional[str] = None
    period: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class AttendanceSession:
    """Una toma de asistencia de un curso en un día concreto."""

    session_id: str
    course_id: str
    teacher_id: str
    session_date: date
    topic: str
    created_at: datetime


@dataclass(frozen=True)
class AttendanceRecord:
    """Estado de un alumno dentro de una sesión.

    ``course_id`` and ``record_date`` always mirror the parent session.
    """

    record_id: str
    session_id: str
    course_id: str
    student_id: str
    record_date: date
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecordDetail:
    """Read-model: record joined with its student and session (history/export)."""

    record_id: str
    session_id: str
    student_id: str
    full_name: str
    record_date: date
    status: AttendanceStatus
    topic: str
    dni: Optional[str] = None


@dataclass(frozen=True)
class WeeklyAttendanceRow:
    student_id: str
    full_name: str
    date: str
    status: AttendanceStatus
