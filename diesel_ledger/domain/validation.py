"""Row-level data-quality checks and their rollup onto each row."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .models import EnrichedRow, MovementCategory, ValidationStatus


@dataclass(frozen=True)
class RowIssue:
    field: str
    message: str
    value: object
    row_number: int
    severity: ValidationStatus


@dataclass(frozen=True)
class RowValidationReport:
    errors: Sequence[RowIssue] = field(default_factory=tuple)
    warnings: Sequence[RowIssue] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def iter_all_issues(self) -> Iterable[RowIssue]:
        yield from self.errors
        yield from self.warnings


def check_row(row: EnrichedRow) -> list[RowIssue]:
    raw = row.raw
    number = row.original_row_number
    issues: list[RowIssue] = []

    def issue(field_name: str, message: str, value: object, severity: ValidationStatus) -> None:
        issues.append(RowIssue(field_name, message, value, number, severity))

    if not raw.planta.strip():
        issue("planta", "Plant code is required", raw.planta, "error")
    if raw.litros_cantidad is not None and raw.litros_cantidad < 0:
        issue("litros_cantidad", "Quantity in liters cannot be negative", raw.litros_cantidad, "error")
    if raw.direction_coerced:
        issue("tipo", f"Unrecognized movement type {raw.tipo_original!r}, treated as {raw.tipo}", raw.tipo_original, "warning")
    if row.parsed_date is None:
        issue("fecha", "Date could not be parsed; row sorted last", raw.fecha, "warning")
    for name in raw.invalid_fields:
        issue(name, f"Non-numeric value in {name} ignored", getattr(raw, name), "warning")
    if row.adjustment_reason == "unknown_pattern":
        issue("tipo", "Movement matches no known pattern; needs review", raw.tipo, "warning")
    return issues


def apply_row_validation(
    rows: Sequence[EnrichedRow],
    ignored_openings: Iterable[EnrichedRow] = (),
) -> RowValidationReport:
    """Set ``validation_status`` on every row and return the issues found.

    Meter reading errors and warnings are carried onto their parent row.
    """
    ignored = {id(row) for row in ignored_openings}
    errors: list[RowIssue] = []
    warnings: list[RowIssue] = []

    for row in rows:
        issues = check_row(row)
        if id(row) in ignored and row.movement_category is MovementCategory.INVENTORY_OPENING:
            issues.append(
                RowIssue(
                    "inventario_inicial",
                    "Duplicate opening inventory ignored; the first opening row is used",
                    row.raw.inventario_inicial,
                    row.original_row_number,
                    "warning",
                )
            )
        reading = row.meter_reading
        if reading is not None:
            for severity, message in reading.validation_issues:
                issues.append(RowIssue("meter_reading", message, reading.asset_code, row.original_row_number, severity))

        for item in issues:
            row.add_issue(item.severity, item.message)
            (errors if item.severity == "error" else warnings).append(item)

    return RowValidationReport(errors=tuple(errors), warnings=tuple(warnings))


def validate_rows(rows: Sequence[EnrichedRow]) -> RowValidationReport:
    """Inspect rows without touching their status."""
    errors: list[RowIssue] = []
    warnings: list[RowIssue] = []
    for row in rows:
        for item in check_row(row):
            (errors if item.severity == "error" else warnings).append(item)
    return RowValidationReport(errors=tuple(errors), warnings=tuple(warnings))
