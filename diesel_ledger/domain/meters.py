"""Per-asset meter delta computation and anomaly checks."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Sequence

from diesel_ledger.config import SETTINGS, Settings

from .models import MeterReading, MeterSeverity


@dataclass(frozen=True)
class MeterRule:
    name: str
    severity: MeterSeverity
    applies: Callable[[MeterReading, Settings], bool]
    message: Callable[[MeterReading], str]


def _gt(value: Decimal | None, limit: Decimal) -> bool:
    return value is not None and value > limit


METER_RULES: tuple[MeterRule, ...] = (
    MeterRule(
        name="horometer_backwards",
        severity="error",
        applies=lambda r, s: r.horometer_delta is not None and r.horometer_delta < 0,
        message=lambda r: f"Horometer went back {abs(r.horometer_delta):.1f} h (reset, tampering or capture error)",
    ),
    MeterRule(
        name="fuel_without_runtime",
        severity="warning",
        applies=lambda r, s: r.horometer_delta == 0 and r.fuel_consumed > 0,
        message=lambda r: f"{r.fuel_consumed:.1f} L dispensed but horometer did not move",
    ),
    MeterRule(
        name="impossible_daily_hours",
        severity="error",
        applies=lambda r, s: _gt(r.daily_hours_avg, s.max_daily_hours),
        message=lambda r: f"Impossible usage: {r.daily_hours_avg:.1f} h/day",
    ),
    MeterRule(
        name="high_daily_hours",
        severity="warning",
        applies=lambda r, s: _gt(r.daily_hours_avg, s.high_daily_hours)
        and not _gt(r.daily_hours_avg, s.max_daily_hours),
        message=lambda r: f"Very high usage: {r.daily_hours_avg:.1f} h/day",
    ),
    MeterRule(
        name="odometer_backwards",
        severity="error",
        applies=lambda r, s: r.kilometer_delta is not None and r.kilometer_delta < 0,
        message=lambda r: f"Odometer went back {abs(r.kilometer_delta):.0f} km",
    ),
    MeterRule(
        name="high_daily_km",
        severity="warning",
        applies=lambda r, s: _gt(r.daily_km_avg, s.high_daily_km),
        message=lambda r: f"High daily distance: {r.daily_km_avg:.0f} km/day",
    ),
    MeterRule(
        name="anomalous_efficiency",
        severity="warning",
        applies=lambda r, s: r.fuel_efficiency_per_hour is not None
        and (r.fuel_efficiency_per_hour < s.min_liters_per_hour or r.fuel_efficiency_per_hour > s.max_liters_per_hour),
        message=lambda r: f"Anomalous consumption rate: {r.fuel_efficiency_per_hour:.1f} L/h",
    ),
)


def group_by_asset(readings: Iterable[MeterReading]) -> Mapping[str, list[MeterReading]]:
    by_asset: dict[str, list[MeterReading]] = defaultdict(list)
    for reading in readings:
        by_asset[reading.asset_code].append(reading)
    return by_asset


def _ratio(numerator: Decimal, denominator: Decimal | None) -> Decimal | None:
    if denominator is None or denominator == 0:
        return None
    return numerator / denominator


def apply_deltas(reading: MeterReading, previous: MeterReading) -> None:
    if reading.horometer is not None and previous.horometer is not None:
        reading.horometer_delta = reading.horometer - previous.horometer
    if reading.kilometer is not None and previous.kilometer is not None:
        reading.kilometer_delta = reading.kilometer - previous.kilometer

    days = abs((reading.reading_date - previous.reading_date).days)
    reading.days_since_last = days
    if days > 0:
        if reading.horometer_delta is not None:
            reading.daily_hours_avg = reading.horometer_delta / days
        if reading.kilometer_delta is not None:
            reading.daily_km_avg = reading.kilometer_delta / days

    if reading.fuel_consumed > 0:
        reading.fuel_efficiency_per_hour = _ratio(reading.fuel_consumed, reading.horometer_delta)
        reading.fuel_efficiency_per_km = _ratio(reading.fuel_consumed, reading.kilometer_delta)


def validate_meter_reading(reading: MeterReading, settings: Settings = SETTINGS) -> None:
    """Run every rule against the reading; flags and messages accumulate."""
    for rule in METER_RULES:
        if not rule.applies(reading, settings):
            continue
        message = rule.message(reading)
        reading.validation_messages.append(message)
        reading.validation_issues.append((rule.severity, message))
        if rule.severity == "error":
            reading.has_errors = True
        else:
            reading.has_warnings = True


def compute_meter_deltas(readings: Sequence[MeterReading], settings: Settings = SETTINGS) -> None:
    """Fill deltas and flags in place.

    Readings must already be in chronological order; each asset is compared
    only against its own previous reading, and its first reading is never
    flagged.
    """
    for asset_readings in group_by_asset(readings).values():
        previous: MeterReading | None = None
        for reading in asset_readings:
            if previous is not None:
                apply_deltas(reading, previous)
                validate_meter_reading(reading, settings)
            previous = reading
