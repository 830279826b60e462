"""Defensive parsing of dates, numbers and whole rows from the source export.

Nothing in this module raises on malformed input: bad values degrade to
``None`` and are reported through ``RawMovementRow.invalid_fields``.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from diesel_ledger.config import SETTINGS, Settings

from .models import ENTRADA, SALIDA, Direction, RawMovementRow

NUMERIC_FIELDS = (
    "litros_cantidad",
    "validacion",
    "horometro",
    "kilometraje",
    "inventario_inicial",
    "inventario",
    "cuenta_litros",
)

TEXT_FIELDS = (
    "planta",
    "almacen",
    "unidad",
    "horario",
    "creado",
    "clave_producto",
    "identificador",
    "responsable_unidad",
    "responsable_suministro",
)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\s*([ap])\.?\s*m\.?)?", re.IGNORECASE)
_UNIT_SUFFIX_RE = re.compile(r"\s*(?:lts?|l)\.?$", re.IGNORECASE)


def parse_ledger_date(value: object, settings: Settings = SETTINGS) -> date | None:
    """Parse ``DD/MM/YY`` or ``DD/MM/YYYY`` into a date, or return ``None``."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    parts = text.split("/")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(part.strip()) for part in parts)
    except ValueError:
        return None
    if year < 100:
        year += 2000 if year < settings.two_digit_year_pivot else 1900
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_number(value: object) -> Decimal | None:
    """Parse a spreadsheet number permissively; ``None`` when absent or invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return None
        return result if result.is_finite() else None
    s = str(value).strip()
    if not s or s.upper() in {"NAN", "NONE", "NULL", "-"}:
        return None
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    s = _UNIT_SUFFIX_RE.sub("", s)
    for ch in ["$", "€", " ", "\u00a0"]:
        s = s.replace(ch, "")
    if "," in s and "." in s:
        # The right-most separator is the decimal mark.
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    else:
        s = s.replace(",", ".")
    try:
        result = Decimal(s)
    except InvalidOperation:
        return None
    if not result.is_finite():
        return None
    return -result if negative else result


def normalize_time(value: object) -> str:
    """Return ``HH:MM:SS`` for a clock value, or an empty string.

    Twelve-hour values such as ``"2:00 p.m."`` or ``"12:15 AM"`` are moved
    onto the 24-hour clock so that same-day rows sort chronologically.
    """
    if value is None:
        return ""
    if isinstance(value, (datetime, time)):
        return value.strftime("%H:%M:%S")
    match = _TIME_RE.match(str(value).strip())
    if not match:
        return ""
    hours, minutes, seconds, meridiem = match.groups()
    hour = int(hours)
    if meridiem:
        hour %= 12
        if meridiem.lower() == "p":
            hour += 12
    return f"{hour:02d}:{minutes}:{seconds or '00'}"


def coerce_direction(value: object) -> tuple[Direction, bool]:
    """Map free text to ``Entrada``/``Salida``; the flag is True when it had to guess."""
    text = "" if value is None else str(value).strip()
    lowered = text.lower()
    if "entrada" in lowered:
        return ENTRADA, lowered != "entrada"
    if lowered == "salida":
        return SALIDA, False
    return SALIDA, True


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if value != value:
            return ""
        if value.is_integer():
            return str(int(value))
    text = str(value).strip()
    return "" if text.upper() == "NAN" else text


def _date_text(value: object) -> str:
    if isinstance(value, (datetime, date)):
        return value.strftime("%d/%m/%Y")
    return _text(value)


def coerce_raw_row(raw: Mapping[str, Any]) -> RawMovementRow:
    """Build a typed ``RawMovementRow`` from a loosely-typed mapping."""
    invalid: list[str] = []
    numbers: dict[str, Decimal | None] = {}
    for name in NUMERIC_FIELDS:
        value = raw.get(name)
        parsed = parse_number(value)
        if parsed is None and _text(value):
            invalid.append(name)
        numbers[name] = parsed

    texts = {name: _text(raw.get(name)) for name in TEXT_FIELDS}
    texts["horario"] = normalize_time(raw.get("horario")) or texts["horario"]
    tipo_original = _text(raw.get("tipo"))
    tipo, coerced = coerce_direction(tipo_original)

    return RawMovementRow(
        tipo=tipo,
        tipo_original=tipo_original,
        direction_coerced=coerced,
        fecha=_date_text(raw.get("fecha")),
        invalid_fields=tuple(invalid),
        **texts,
        **numbers,
    )
