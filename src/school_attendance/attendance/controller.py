from __future__ import annotations

import io
import logging
from functools import wraps

from flask import Flask, jsonify, request, send_file, session

from ..common.dateutils import add_weeks, get_monday_of_current_week_local, get_week_days_range
from ..core.exceptions import (
    DomainError,
    DuplicateSessionError,
    EmptyBatchError,
    InvalidStatusError,
    NoRecordsError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from ..container import Container
from ..reports.export import CSV_MIMETYPE
from ..reports.service import available_months, build_weekly_matrix, filter_history_by_month, summarize_history

logger = logging.getLogger(__name__)

_STATUS_CODES = (
    (InvalidStatusError, 400),
    (ValidationError, 400),
    (NotFoundError, 404),
    (NoRecordsError, 404),
    (DuplicateSessionError, 409),
    (EmptyBatchError, 422),
    (StoreUnavailableError, 503),
)


def _error_response(e: DomainError):
    code = next((c for cls, c in _STATUS_CODES if isinstance(e, cls)), 400)
    body = {"success": False, "message": str(e)}
    if isinstance(e, InvalidStatusError) and e.invalid:
        body["invalid"] = e.invalid
    return jsonify(body), code


def _session_json(s, *, editable: bool | None = None) -> dict:
    out = {
        "id": s.session_id,
        "course_id": s.course_id,
        "teacher_id": s.teacher_id,
        "date": s.session_date.strftime("%Y-%m-%d"),
        "topic": s.topic,
        "created_at": s.created_at.isoformat(),
    }
    if editable is not None:
        out["editable"] = editable
    return out


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "No hay sesión activa. Inicia sesión nuevamente."}), 401
            return view(*args, **kwargs)

        return wrapper

    def domain_errors(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except DomainError as e:
                if isinstance(e, StoreUnavailableError):
                    logger.error("Store unavailable on %s: %s", request.path, e)
                return _error_response(e)

        return wrapper

    def _csv_response(payload: bytes, filename: str):
        # non-ASCII names go out as an RFC 5987 filename*
        return send_file(io.BytesIO(payload), mimetype=CSV_MIMETYPE, as_attachment=True, download_name=filename)

    def _course_slug(course_id: str) -> str:
        try:
            return container.report_service.get_course_or_404(course_id).name.replace(" ", "_")
        except NotFoundError:
            return "curso"

    @app.route("/api/courses/<course_id>/students", methods=["GET"], endpoint="course_students")
    @login_required
    @domain_errors
    def course_students(course_id: str):
        students = container.attendance_service.get_students_by_course(course_id)
        return jsonify(
            [{"id": s.student_id, "full_name": s.full_name, "dni": s.dni, "course_id": s.course_id} for s in students]
        )

    @app.route("/api/courses/<course_id>/sessions", methods=["GET"], endpoint="course_sessions")
    @login_required
    @domain_errors
    def course_sessions(course_id: str):
        date_label = request.args.get("date")
        manager = container.session_manager
        if not date_label:
            return jsonify([_session_json(s, editable=manager.is_editable(s)) for s in manager.list_sessions(course_id)])

        found = manager.get_session_by_date(course_id, date_label)
        if found is None:
            return jsonify({"session": None, "editable": False})
        editable = manager.is_editable(found)
        return jsonify({"session": _session_json(found), "editable": editable})

    @app.route("/api/sessions/<session_id>/editable", methods=["GET"], endpoint="session_editable")
    @login_required
    def session_editable(session_id: str):
        return jsonify({"session_id": session_id, "editable": container.session_manager.is_session_editable(session_id)})

    @app.route("/api/courses/<course_id>/attendance", methods=["POST"], endpoint="save_attendance")
    @login_required
    @domain_errors
    def save_attendance(course_id: str):
        data = request.get_json(silent=True) or {}
        records = data.get("records") or {}
        if not isinstance(records, dict):
            raise ValidationError("El campo 'records' debe ser un objeto {alumno: estado}")

        result = container.attendance_service.save_attendance(
            course_id,
            str(data.get("date") or ""),
            str(data.get("topic") or ""),
            records,
            teacher_id=session.get("user_id"),
        )
        return (
            jsonify(
                {
                    "success": True,
                    "message": "Asistencia guardada correctamente",
                    "session": _session_json(result.session, editable=True),
                    "saved": result.saved,
                    "dropped": result.dropped,
                }
            ),
            201,
        )

    @app.route("/api/courses/<course_id>/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    @login_required
    @domain_errors
    def attendance_summary(course_id: str):
        return jsonify(container.report_service.get_attendance_summary(course_id).as_dict())

    @app.route("/api/courses/<course_id>/attendance/week", methods=["GET"], endpoint="attendance_week")
    @login_required
    @domain_errors
    def attendance_week(course_id: str):
        monday = request.args.get("monday") or get_monday_of_current_week_local()
        offset = request.args.get("offset", type=int) or 0
        if offset:
            monday = add_weeks(monday, offset)

        rows = container.report_service.get_weekly_attendance(course_id, monday)
        matrix = build_weekly_matrix(rows)
        return jsonify(
            {
                "monday": monday,
                "days": get_week_days_range(monday),
                "records": [
                    {"student_id": r.student_id, "full_name": r.full_name, "date": r.date, "status": r.status.value}
                    for r in rows
                ],
                "matrix": matrix.as_dict(),
            }
        )

    @app.route("/api/courses/<course_id>/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    @domain_errors
    def attendance_history(course_id: str):
        history = container.report_service.get_attendance_history(course_id)
        filtered = filter_history_by_month(history, request.args.get("month"))
        return jsonify(
            {
                "sessions": [r.as_dict() for r in filtered],
                "stats": summarize_history(history).as_dict(),
                "months": available_months(history),
            }
        )

    @app.route("/api/courses/<course_id>/attendance.csv", methods=["GET"], endpoint="attendance_csv")
    @login_required
    @domain_errors
    def attendance_csv(course_id: str):
        payload = container.csv_exporter.export_attendance_csv(course_id)
        return _csv_response(payload, f"asistencia_{_course_slug(course_id)}.csv")

    @app.route("/api/courses/<course_id>/attendance/history.csv", methods=["GET"], endpoint="attendance_history_csv")
    @login_required
    @domain_errors
    def attendance_history_csv(course_id: str):
        history = filter_history_by_month(
            container.report_service.get_attendance_history(course_id),
            request.args.get("month"),
        )
        payload = container.csv_exporter.export_history_csv(history)
        return _csv_response(payload, f"historial-asistencia-{_course_slug(course_id)}.csv")

    @app.route("/api/teachers/me/attendance/summary", methods=["GET"], endpoint="teacher_summary")
    @login_required
    @domain_errors
    def teacher_summary():
        return jsonify(container.report_service.get_summary_by_teacher(str(session["user_id"])))
