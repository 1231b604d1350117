from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..attendance.model import WeeklyAttendanceRow
from ..attendance.repository import AttendanceRepository, SchoolDirectory
from ..common.dateutils import get_week_days_range, get_weekday_name, parse_local_date
from ..common.validators import require_identifier
from ..core.constants import SCHOOL_WEEK_DAYS
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError

STATUSES = tuple(AttendanceStatus)
SCHOOL_WEEKDAY_NAMES = ["Lunes", "Martes", "Miércoles", "Jueves", "Viernes"]


def attendance_rate(presente: int, total: int) -> float:
    """Share of ``presente`` over all four statuses, in % with 1 decimal."""

    if total <= 0:
        return 0.0
    return round(presente / total * 100, 1)


@dataclass(frozen=True)
class AttendanceSummary:
    total: int
    presente: int
    falta: int
    tardanza: int
    justificado: int
    porcentajes: dict[str, float]

    @classmethod
    def from_counts(cls, counts: Counter) -> "AttendanceSummary":
        total = sum(counts[s] for s in STATUSES)
        porcentajes = {s.value: (counts[s] / total * 100 if total else 0.0) for s in STATUSES}
        return cls(
            total=total,
            presente=counts[AttendanceStatus.PRESENTE],
            falta=counts[AttendanceStatus.FALTA],
            tardanza=counts[AttendanceStatus.TARDANZA],
            justificado=counts[AttendanceStatus.JUSTIFICADO],
            porcentajes=porcentajes,
        )

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "presente": self.presente,
            "falta": self.falta,
            "tardanza": self.tardanza,
            "justificado": self.justificado,
            "porcentajes": dict(self.porcentajes),
        }


@dataclass(frozen=True)
class SessionRollup:
    session_id: str
    date: str
    topic: str
    total_presentes: int
    total_faltas: int
    total_tardanzas: int
    total_justificados: int

    @property
    def total(self) -> int:
        return self.total_presentes + self.total_faltas + self.total_tardanzas + self.total_justificados

    @property
    def attendance_rate(self) -> float:
        return attendance_rate(self.total_presentes, self.total)

    def as_dict(self) -> dict:
        return {
            "id": self.session_id,
            "date": self.date,
            "topic": self.topic,
            "total_presentes": self.total_presentes,
            "total_faltas": self.total_faltas,
            "total_tardanzas": self.total_tardanzas,
            "total_justificados": self.total_justificados,
            "attendance_rate": self.attendance_rate,
        }


@dataclass(frozen=True)
class HistoryStats:
    sesiones: int
    presente: int
    falta: int
    tardanza: int
    justificado: int
    total: int
    attendance_rate: float

    def as_dict(self) -> dict:
        return dict(self.__dict__)


@dataclass
class StudentWeekRow:
    student_id: str
    full_name: str
    records: dict[str, AttendanceStatus] = field(default_factory=dict)

    def counts(self) -> Counter:
        return Counter(self.records.values())

    def as_dict(self) -> dict:
        c = self.counts()
        return {
            "student_id": self.student_id,
            "full_name": self.full_name,
            "records": {day: status.value for day, status in self.records.items()},
            "totals": {s.value: c[s] for s in STATUSES},
        }


@dataclass(frozen=True)
class WeeklyMatrix:
    """Students x weekday (Lunes..Viernes) pivot of one week's records."""

    days: list[str]
    headers: dict[str, str]
    students: list[StudentWeekRow]
    totals: dict[str, int]
    attendance_rate: float

    def as_dict(self) -> dict:
        return {
            "days": list(self.days),
            "headers": dict(self.headers),
            "students": [s.as_dict() for s in self.students],
            "totals": dict(self.totals),
            "attendance_rate": self.attendance_rate,
        }


def build_weekly_matrix(rows: Iterable[WeeklyAttendanceRow]) -> WeeklyMatrix:
    """Pivot flat weekly rows into a student x weekday matrix.

    Only Monday..Friday take part; a record dated on a weekend is dropped.
    """

    grouped: dict[str, StudentWeekRow] = {}
    headers: dict[str, str] = {}

    for r in rows:
        d = parse_local_date(r.date)
        if d.weekday() >= SCHOOL_WEEK_DAYS:
            continue
        day_name = get_weekday_name(d)
        headers[day_name] = d.strftime("%d/%m")

        row = grouped.get(r.student_id)
        if row is None:
            row = StudentWeekRow(student_id=r.student_id, full_name=r.full_name)
            grouped[r.student_id] = row
        row.records[day_name] = r.status

    students = sorted(grouped.values(), key=lambda s: s.full_name.casefold())
    counts: Counter = Counter()
    for s in students:
        counts.update(s.counts())

    total = sum(counts[s] for s in STATUSES)
    totals = {s.value: counts[s] for s in STATUSES}
    totals["total"] = total
    return WeeklyMatrix(
        days=list(SCHOOL_WEEKDAY_NAMES),
        headers={day: headers[day] for day in SCHOOL_WEEKDAY_NAMES if day in headers},
        students=students,
        totals=totals,
        attendance_rate=attendance_rate(counts[AttendanceStatus.PRESENTE], total),
    )


def summarize_history(rollups: Sequence[SessionRollup]) -> HistoryStats:
    presente = sum(r.total_presentes for r in rollups)
    falta = sum(r.total_faltas for r in rollups)
    tardanza = sum(r.total_tardanzas for r in rollups)
    justificado = sum(r.total_justificados for r in rollups)
    total = presente + falta + tardanza + justificado
    return HistoryStats(
        sesiones=len(rollups),
        presente=presente,
        falta=falta,
        tardanza=tardanza,
        justificado=justificado,
        total=total,
        attendance_rate=attendance_rate(presente, total),
    )


def available_months(rollups: Sequence[SessionRollup]) -> list[str]:
    """Distinct ``YYYY-MM`` keys, newest first."""
    return sorted({r.date[:7] for r in rollups}, reverse=True)


def filter_history_by_month(rollups: Sequence[SessionRollup], month: Optional[str]) -> list[SessionRollup]:
    if not month or month == "all":
        return list(rollups)
    return [r for r in rollups if r.date[:7] == month]


class AttendanceReportService:
    """Read-only aggregation over raw attendance records.

    Nothing here is cached or stored: every figure is recomputed from the
    records on each call.
    """

    def __init__(self, attendance: AttendanceRepository, directory: Optional[SchoolDirectory] = None):
        self._attendance = attendance
        self._directory = directory

    def get_attendance_summary(self, course_id: str) -> AttendanceSummary:
        records = self._attendance.list_course_records(require_identifier(course_id, "Curso"))
        return AttendanceSummary.from_counts(Counter(r.status for r in records))

    def get_weekly_attendance(self, course_id: str, monday_label: str) -> list[WeeklyAttendanceRow]:
        days = get_week_days_range(monday_label)
        start, end = parse_local_date(days[0]), parse_local_date(days[-1])
        rows = self._attendance.list_records_between(
            course_id=require_identifier(course_id, "Curso"),
            start=start,
            end=end,
        )
        # The store filters by range already; keep the Mon..Fri bound explicit.
        return [r for r in rows if days[0] <= r.date <= days[-1]]

    def get_weekly_matrix(self, course_id: str, monday_label: str) -> WeeklyMatrix:
        return build_weekly_matrix(self.get_weekly_attendance(course_id, monday_label))

    def get_attendance_history(self, course_id: str) -> list[SessionRollup]:
        course_id = require_identifier(course_id, "Curso")
        sessions = self._attendance.list_sessions(course_id)

        counts_by_session: dict[str, Counter] = {s.session_id: Counter() for s in sessions}
        for r in self._attendance.list_course_records(course_id):
            bucket = counts_by_session.get(r.session_id)
            if bucket is not None:
                bucket[r.status] += 1

        ordered = sorted(sessions, key=lambda s: s.session_date, reverse=True)
        return [
            SessionRollup(
                session_id=s.session_id,
                date=s.session_date.strftime("%Y-%m-%d"),
                topic=s.topic,
                total_presentes=counts_by_session[s.session_id][AttendanceStatus.PRESENTE],
                total_faltas=counts_by_session[s.session_id][AttendanceStatus.FALTA],
                total_tardanzas=counts_by_session[s.session_id][AttendanceStatus.TARDANZA],
                total_justificados=counts_by_session[s.session_id][AttendanceStatus.JUSTIFICADO],
            )
            for s in ordered
        ]

    def get_summary_by_teacher(self, teacher_id: str) -> list[dict]:
        """Per-course summaries for every course the teacher owns."""

        if self._directory is None:
            raise NotFoundError("Directorio de cursos no configurado")
        out = []
        for course in self._directory.list_courses_by_teacher(require_identifier(teacher_id, "Docente")):
            summary = self.get_attendance_summary(course.course_id)
            out.append(
                {
                    "course_id": course.course_id,
                    "course_name": course.name,
                    "grade": course.grade,
                    "section": course.section,
                    **summary.as_dict(),
                    "total_presentes": summary.presente,
                    "total_faltas": summary.falta,
                    "total_tardanzas": summary.tardanza,
                    "total_justificados": summary.justificado,
                    "porcentaje_asistencia": attendance_rate(summary.presente, summary.total),
                }
            )
        return out

    def get_course_or_404(self, course_id: str):
        if self._directory is None:
            raise NotFoundError("Directorio de cursos no configurado")
        course = self._directory.get_course(require_identifier(course_id, "Curso"))
        if course is None:
            raise NotFoundError("Curso no encontrado")
        return course
