from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.dateutils import format_full_spanish_date
from ..common.validators import require_identifier
from ..core.constants import ATTENDANCE_CSV_HEADER, DEFAULT_CSV_ENCODING, HISTORY_CSV_HEADER
from ..core.exceptions import NoRecordsError
from .service import SessionRollup

logger = logging.getLogger(__name__)

CSV_MIMETYPE = "text/csv"


def quote(value: object) -> str:
    """Always double-quote a free-text field; embedded quotes are doubled."""
    return '"' + str(value if value is not None else "").replace('"', '""') + '"'


def _join_lines(header: Sequence[str], lines: Iterable[str]) -> str:
    return "\n".join([",".join(header), *lines])


class AttendanceCsvExporter:
    """Serializes course attendance to CSV.

    Student names and topics are always quoted (they may contain commas);
    dates and status tokens are written bare.
    """

    def __init__(self, attendance: AttendanceRepository, *, encoding: str = DEFAULT_CSV_ENCODING):
        self._attendance = attendance
        self._encoding = encoding

    def export_attendance_csv(self, course_id: str) -> bytes:
        course_id = require_identifier(course_id, "Curso")
        details = self._attendance.list_course_record_details(course_id)
        if not details:
            raise NoRecordsError("No hay registros de asistencia para exportar")

        ordered = sorted(details, key=lambda d: d.record_date)
        lines = (
            f"{d.record_date.strftime('%Y-%m-%d')},{quote(d.full_name)},{d.status.value},{quote(d.topic)}"
            for d in ordered
        )
        logger.info("Exporting %d attendance records for course %s", len(ordered), course_id)
        return _join_lines(ATTENDANCE_CSV_HEADER, lines).encode(self._encoding)

    def export_history_csv(self, rollups: Sequence[SessionRollup]) -> bytes:
        if not rollups:
            raise NoRecordsError("No hay sesiones de asistencia para exportar")

        lines = (
            ",".join(
                [
                    quote(format_full_spanish_date(r.date)),
                    quote(r.topic),
                    str(r.total_presentes),
                    str(r.total_faltas),
                    str(r.total_tardanzas),
                    str(r.total_justificados),
                ]
            )
            for r in rollups
        )
        return _join_lines(HISTORY_CSV_HEADER, lines).encode(self._encoding)
