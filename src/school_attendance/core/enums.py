from __future__ import annotations

from enum import Enum

from .exceptions import InvalidStatusError


class AttendanceStatus(str, Enum):
    """Estado de asistencia de un alumno, tal como se guarda en la base de datos."""

    PRESENTE = "presente"
    FALTA = "falta"
    TARDANZA = "tardanza"
    JUSTIFICADO = "justificado"

    @classmethod
    def parse(cls, value: object) -> "AttendanceStatus":
        """Normalize a raw token (trim + lowercase) and validate it.

        Raises InvalidStatusError for anything outside the closed set.
        """

        if isinstance(value, cls):
            return value
        token = str(value or "").strip().lower()
        try:
            return cls(token)
        except ValueError:
            raise InvalidStatusError(f"Estado de asistencia no válido: {value!r}")


class SessionState(str, Enum):
    """Ciclo de vida de una sesión: nonexistent -> ready -> locked."""

    NONEXISTENT = "nonexistent"
    READY = "ready"
    LOCKED = "locked"
