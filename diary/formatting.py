"""Display formatting for note timestamps and counts."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

_MONTHS: dict[str, tuple[str, ...]] = {
    "es": (
        "enero", "febrero", "marzo", "abril", "mayo", "junio",
        "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
    ),
    "en": (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
}


def format_timestamp(
    value: datetime, locale: str = "es", tz: Optional[tzinfo] = None
) -> str:
    """Long date with hours and minutes, converted to *tz*.

    ``es`` → "19 de octubre de 2026, 14:05"
    ``en`` → "October 19, 2026, 14:05"

    Without *tz* aware values are shown in the server process's local
    timezone. Naive datetimes are taken as already local.
    """
    if value.tzinfo is not None:
        value = value.astimezone(tz)
    months = _MONTHS.get(locale, _MONTHS["es"])
    month = months[value.month - 1]
    clock = f"{value.hour:02d}:{value.minute:02d}"
    if locale == "en":
        return f"{month} {value.day}, {value.year}, {clock}"
    return f"{value.day} de {month} de {value.year}, {clock}"


def count_label(count: int, locale: str = "es") -> str:
    """Footer text such as "1 nota" or "3 notas"."""
    if locale == "en":
        return f"{count} {'note' if count == 1 else 'notes'} in total"
    return f"{count} {'nota' if count == 1 else 'notas'} en total"
