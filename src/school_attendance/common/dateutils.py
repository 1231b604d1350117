"""Local calendar-date helpers.

Attendance is a day-granularity concept: every label here is a plain
``YYYY-MM-DD`` calendar day with no time and no timezone. Values are never
routed through UTC, so a label cannot drift to the previous/next day.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union

from ..core.constants import DATE_FORMAT
from ..core.exceptions import ValidationError

DateInput = Union[date, datetime, str]

_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

WEEKDAY_NAMES = ["Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo"]
SHORT_WEEKDAY_NAMES = ["Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom"]
MONTH_NAMES = [
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
]
SHORT_MONTH_NAMES = ["ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sept", "oct", "nov", "dic"]


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mock it easily.
    """
    return datetime.now()


def today_local() -> date:
    return now_local().date()


# ---------- conversion & parsing ----------


def to_local_date_string(value: DateInput, tz: Optional[tzinfo] = None) -> str:
    """Return the ``YYYY-MM-DD`` label of the local calendar day of ``value``.

    - ``date``: returned as-is.
    - naive ``datetime``: already local wall time, its date is used.
    - aware ``datetime``: converted to ``tz`` (the runtime zone when None)
      before taking the date.
    - ``str``: the leading ``YYYY-MM-DD`` is taken verbatim, so
      ``"2025-10-28T00:00:00"`` stays on the 28th.
    """

    return to_local_date(value, tz).strftime(DATE_FORMAT)


def to_local_date(value: DateInput, tz: Optional[tzinfo] = None) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_local_date(value[:10])
    raise ValidationError(f"Fecha no válida: {value!r}")


def parse_local_date(label: str) -> date:
    """Parse ``YYYY-MM-DD`` into a calendar date (no UTC interpretation)."""

    m = _LABEL_RE.match((label or "").strip())
    if not m or len(label.strip()) != 10:
        raise ValidationError(f"Fecha no válida (YYYY-MM-DD): {label!r}")
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        raise ValidationError(f"Fecha no válida (YYYY-MM-DD): {label!r}")


def _as_date(value: DateInput) -> date:
    return parse_local_date(value) if isinstance(value, str) else to_local_date(value)


# ---------- Spanish formatting ----------


def get_weekday_name(value: DateInput) -> str:
    return WEEKDAY_NAMES[_as_date(value).weekday()]


def get_short_weekday_name(value: DateInput) -> str:
    return SHORT_WEEKDAY_NAMES[_as_date(value).weekday()]


def get_month_name(value: DateInput) -> str:
    return MONTH_NAMES[_as_date(value).month - 1]


def format_full_spanish_date(value: DateInput) -> str:
    """e.g. ``miércoles, 29 de octubre de 2025``"""
    d = _as_date(value)
    return f"{get_weekday_name(d).lower()}, {d.day} de {MONTH_NAMES[d.month - 1]} de {d.year}"


def format_spanish_date_no_year(value: DateInput) -> str:
    """e.g. ``Miércoles 29 de octubre``"""
    d = _as_date(value)
    return f"{get_weekday_name(d)} {d.day} de {MONTH_NAMES[d.month - 1]}"


def format_short_spanish_date(value: DateInput) -> str:
    return _as_date(value).strftime("%d/%m/%Y")


def format_day_month(value: DateInput) -> str:
    d = _as_date(value)
    return f"{d.day} {SHORT_MONTH_NAMES[d.month - 1]}"


# ---------- week ranges ----------


def get_monday_of_week(value: DateInput) -> str:
    d = _as_date(value)
    return to_local_date_string(d - timedelta(days=d.weekday()))


def get_monday_of_current_week_local(today: Optional[date] = None) -> str:
    """Monday of the current local week; on a Sunday that is 6 days earlier."""
    return get_monday_of_week(today or today_local())


def get_week_days_range(monday_label: str) -> list[str]:
    monday = parse_local_date(monday_label)
    return [to_local_date_string(monday + timedelta(days=i)) for i in range(5)]


def get_full_week_range(monday_label: str) -> list[str]:
    """Sunday before ``monday_label`` through the following Saturday."""
    sunday = parse_local_date(monday_label) - timedelta(days=1)
    return [to_local_date_string(sunday + timedelta(days=i)) for i in range(7)]


# ---------- checks ----------


def is_weekday(value: DateInput) -> bool:
    return _as_date(value).weekday() < 5


def is_weekend(value: DateInput) -> bool:
    return not is_weekday(value)


def is_today(value: DateInput, *, today: Optional[date] = None) -> bool:
    return _as_date(value) == (today or today_local())


def is_past(value: DateInput, *, today: Optional[date] = None) -> bool:
    return _as_date(value) < (today or today_local())


def is_future(value: DateInput, *, today: Optional[date] = None) -> bool:
    return _as_date(value) > (today or today_local())


def is_same_day(a: DateInput, b: DateInput) -> bool:
    return _as_date(a) == _as_date(b)


# ---------- arithmetic ----------


def days_between(a: DateInput, b: DateInput) -> int:
    return abs((_as_date(b) - _as_date(a)).days)


def add_days(value: DateInput, days: int) -> str:
    return to_local_date_string(_as_date(value) + timedelta(days=int(days)))


def add_weeks(value: DateInput, weeks: int) -> str:
    return add_days(value, int(weeks) * 7)


def add_months(value: DateInput, months: int) -> str:
    d = _as_date(value)
    index = d.month - 1 + int(months)
    year, month = d.year + index // 12, index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return to_local_date_string(date(year, month, day))


def get_first_day_of_month(value: DateInput) -> str:
    return to_local_date_string(_as_date(value).replace(day=1))


def get_last_day_of_month(value: DateInput) -> str:
    d = _as_date(value)
    return to_local_date_string(d.replace(day=calendar.monthrange(d.year, d.month)[1]))


def get_date_range(start: DateInput, end: DateInput) -> list[str]:
    first, last = _as_date(start), _as_date(end)
    return [to_local_date_string(first + timedelta(days=i)) for i in range((last - first).days + 1)]


def get_month_days(value: DateInput) -> list[str]:
    return get_date_range(get_first_day_of_month(value), get_last_day_of_month(value))


def count_weekdays(start: DateInput, end: DateInput) -> int:
    return sum(1 for label in get_date_range(start, end) if is_weekday(label))
