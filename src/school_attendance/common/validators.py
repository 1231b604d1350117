from __future__ import annotations

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} es obligatorio")
    return str(value).strip()


def require_identifier(value: object, field_name: str) -> str:
    """Ids are opaque (UUIDs in the hosted store); only emptiness is checked."""

    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} no válido")
    return str(value).strip()
