"""Domain-level results of reconciling one import."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Literal, Mapping, Sequence

from .models import EnrichedRow, MeterConflict, MeterReading, MovementCategory

BatchStatus = Literal["pending", "ready", "processing", "completed", "error"]

ALLOWED_TRANSITIONS: Mapping[str, frozenset[str]] = {
    "pending": frozenset({"ready", "error"}),
    "ready": frozenset({"processing", "error"}),
    "processing": frozenset({"completed", "error"}),
    "completed": frozenset(),
    "error": frozenset(),
}


@dataclass(frozen=True)
class DateRange:
    start: date | None
    end: date | None

    @classmethod
    def from_dates(cls, dates: Iterable[date | None]) -> "DateRange":
        known = [d for d in dates if d is not None]
        if not known:
            return cls(start=None, end=None)
        return cls(start=min(known), end=max(known))


@dataclass(slots=True)
class PlantBatch:
    """All movements of one plant/warehouse pair in one import.

    Reconciliation figures are fixed at construction; only ``status`` and
    ``meter_conflicts`` change afterwards.
    """

    batch_id: str
    plant_code: str
    warehouse_number: str
    original_filename: str
    rows: Sequence[EnrichedRow]
    inventory_opening_row: EnrichedRow | None
    initial_inventory: Decimal
    total_litros_in: Decimal
    total_litros_out: Decimal
    final_inventory_provided: Decimal
    movement_counts: Mapping[MovementCategory, int]
    adjustments: int
    unique_assets: tuple[str, ...]
    unmapped_assets: tuple[str, ...]
    assets_with_meters: tuple[str, ...]
    meter_readings: Sequence[MeterReading]
    validation_warnings: int
    validation_errors: int
    date_range: DateRange
    ignored_opening_rows: tuple[EnrichedRow, ...] = ()
    meter_conflicts: list[MeterConflict] = field(default_factory=list)
    status: BatchStatus = "pending"

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    @property
    def final_inventory_computed(self) -> Decimal:
        return self.initial_inventory + self.total_litros_in - self.total_litros_out

    @property
    def net_change(self) -> Decimal:
        return self.total_litros_in - self.total_litros_out

    @property
    def inventory_discrepancy(self) -> Decimal:
        return abs(self.final_inventory_computed - self.final_inventory_provided)

    @property
    def fuel_receipts(self) -> int:
        return self.movement_counts.get(MovementCategory.FUEL_RECEIPT, 0)

    @property
    def asset_consumptions(self) -> int:
        return self.movement_counts.get(MovementCategory.ASSET_CONSUMPTION, 0)

    @property
    def unassigned_consumptions(self) -> int:
        return self.movement_counts.get(MovementCategory.UNASSIGNED_CONSUMPTION, 0)

    @property
    def rows_needing_review(self) -> tuple[EnrichedRow, ...]:
        return tuple(row for row in self.rows if row.adjustment_reason == "unknown_pattern")

    def has_issues(self) -> bool:
        return any([self.validation_errors, self.validation_warnings, self.inventory_discrepancy])

    def transition_to(self, status: BatchStatus) -> None:
        allowed = ALLOWED_TRANSITIONS.get(self.status, frozenset())
        if status not in allowed:
            raise ValueError(f"Cannot move batch {self.batch_id} from {self.status!r} to {status!r}")
        self.status = status
