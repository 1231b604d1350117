from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLSchoolDirectory
from .attendance.repository import AttendanceRepository, SchoolDirectory
from .attendance.service import AttendanceService
from .attendance.sessions import AttendanceSessionManager
from .core.constants import DEFAULT_CSV_ENCODING, EDIT_WINDOW_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .reports.export import AttendanceCsvExporter
from .reports.service import AttendanceReportService


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    directory: SchoolDirectory

    session_manager: AttendanceSessionManager
    attendance_service: AttendanceService
    report_service: AttendanceReportService
    csv_exporter: AttendanceCsvExporter

    conn: Optional[DatabaseConnection] = None


def assemble(
    attendance_repo: AttendanceRepository,
    directory: SchoolDirectory,
    *,
    conn: Optional[DatabaseConnection] = None,
    edit_window_hours: int = EDIT_WINDOW_HOURS,
    strict_status_validation: bool = True,
    csv_encoding: str = DEFAULT_CSV_ENCODING,
) -> Container:
    session_manager = AttendanceSessionManager(attendance_repo, edit_window_hours=edit_window_hours)
    attendance_service = AttendanceService(
        attendance_repo,
        session_manager,
        directory,
        strict=strict_status_validation,
    )
    report_service = AttendanceReportService(attendance_repo, directory)
    csv_exporter = AttendanceCsvExporter(attendance_repo, encoding=csv_encoding)

    return Container(
        attendance_repo=attendance_repo,
        directory=directory,
        session_manager=session_manager,
        attendance_service=attendance_service,
        report_service=report_service,
        csv_exporter=csv_exporter,
        conn=conn,
    )


def build_container(*, db_config: dict, settings: object = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        MySQLAttendanceRepository(conn),
        MySQLSchoolDirectory(conn),
        conn=conn,
        edit_window_hours=int(getattr(settings, "EDIT_WINDOW_HOURS", EDIT_WINDOW_HOURS)),
        strict_status_validation=bool(getattr(settings, "STRICT_STATUS_VALIDATION", True)),
        csv_encoding=str(getattr(settings, "CSV_ENCODING", DEFAULT_CSV_ENCODING)),
    )
