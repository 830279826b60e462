"""Domain models for the diesel ledger import pipeline.

These dataclasses capture the typed shape of a fuel movement as it flows from
the source spreadsheet through classification, enrichment and meter analysis.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

ENTRADA = "Entrada"
SALIDA = "Salida"

Direction = Literal["Entrada", "Salida"]
ValidationStatus = Literal["valid", "warning", "error"]
MeterSeverity = Literal["warning", "error"]
AssetResolutionType = Literal["formal", "exception", "general", "unmapped"]


class MovementCategory(str, Enum):
    INVENTORY_OPENING = "inventory_opening"
    FUEL_RECEIPT = "fuel_receipt"
    INVENTORY_ADJUSTMENT = "inventory_adjustment"
    ASSET_CONSUMPTION = "asset_consumption"
    UNASSIGNED_CONSUMPTION = "unassigned_consumption"


@dataclass(frozen=True)
class RawMovementRow:
    """One typed line of the source export, exactly as read."""

    planta: str
    almacen: str
    tipo: Direction
    unidad: str = ""
    litros_cantidad: Decimal | None = None
    validacion: Decimal | None = None
    horometro: Decimal | None = None
    kilometraje: Decimal | None = None
    inventario_inicial: Decimal | None = None
    inventario: Decimal | None = None
    cuenta_litros: Decimal | None = None
    fecha: str = ""
    horario: str = ""
    creado: str = ""
    clave_producto: str = ""
    identificador: str = ""
    responsable_unidad: str = ""
    responsable_suministro: str = ""
    tipo_original: str = ""
    direction_coerced: bool = False
    invalid_fields: tuple[str, ...] = ()

    @property
    def has_unit(self) -> bool:
        return bool(self.unidad.strip())

    @property
    def liters(self) -> Decimal:
        return self.litros_cantidad if self.litros_cantidad is not None else Decimal("0")


@dataclass(frozen=True)
class Classification:
    category: MovementCategory
    is_adjustment: bool
    adjustment_reason: str | None
    possible_correction: bool = False


@dataclass(slots=True)
class MeterReading:
    """Horometer/odometer snapshot for an asset, completed by the meter analyzer."""

    asset_code: str
    reading_date: date
    reading_time: str | None
    horometer: Decimal | None
    kilometer: Decimal | None
    fuel_consumed: Decimal
    operator: str | None
    original_row_number: int
    source_batch_id: str

    horometer_delta: Decimal | None = None
    kilometer_delta: Decimal | None = None
    days_since_last: int | None = None
    daily_hours_avg: Decimal | None = None
    daily_km_avg: Decimal | None = None
    fuel_efficiency_per_hour: Decimal | None = None
    fuel_efficiency_per_km: Decimal | None = None

    has_warnings: bool = False
    has_errors: bool = False
    validation_messages: list[str] = field(default_factory=list)
    validation_issues: list[tuple[MeterSeverity, str]] = field(default_factory=list)


@dataclass(slots=True)
class EnrichedRow:
    """A raw row plus everything derived from it.

    Classification and meter fields are fixed at enrichment; the asset
    resolution fields are filled in later by the host's mapping step.
    """

    raw: RawMovementRow
    original_row_number: int
    parsed_date: date | None
    sort_key: str
    movement_category: MovementCategory
    is_likely_adjustment: bool
    adjustment_reason: str | None
    is_possible_correction: bool
    has_validation_discrepancy: bool
    validation_discrepancy_liters: Decimal
    requires_asset_mapping: bool
    meter_reading: MeterReading | None = None

    asset_id: str | None = None
    exception_asset_name: str | None = None
    asset_category: str | None = None
    resolved_asset_name: str | None = None
    resolved_asset_type: AssetResolutionType | None = None
    resolved_asset_id: str | None = None

    validation_status: ValidationStatus = "valid"
    validation_messages: list[str] = field(default_factory=list)

    @property
    def planta(self) -> str:
        return self.raw.planta

    @property
    def almacen(self) -> str:
        return self.raw.almacen

    @property
    def tipo(self) -> Direction:
        return self.raw.tipo

    @property
    def unidad(self) -> str:
        return self.raw.unidad

    @property
    def litros(self) -> Decimal:
        return self.raw.liters

    @property
    def has_meter_readings(self) -> bool:
        return self.raw.horometro is not None or self.raw.kilometraje is not None

    def add_issue(self, severity: ValidationStatus, message: str) -> None:
        self.validation_messages.append(message)
        if severity == "error" or self.validation_status == "error":
            self.validation_status = "error"
        elif severity == "warning":
            self.validation_status = "warning"


@dataclass(frozen=True)
class AssetMeterSnapshot:
    """Latest meter values the host holds for an asset."""

    asset_code: str
    asset_id: str | None
    current_horometer: Decimal | None
    current_kilometer: Decimal | None
    last_reading_date: date | None


ConflictResolution = Literal["pending", "use_diesel", "keep_checklist", "skip"]


@dataclass(frozen=True)
class MeterConflict:
    """Disagreement between an imported reading and the host's current meters."""

    asset_code: str
    asset_id: str | None
    diesel_horometer: Decimal | None
    diesel_kilometer: Decimal | None
    diesel_date: date
    diesel_row_number: int
    checklist_horometer: Decimal | None
    checklist_kilometer: Decimal | None
    checklist_date: date | None
    checklist_source: str
    horometer_diff: Decimal | None
    kilometer_diff: Decimal | None
    is_diesel_newer: bool
    is_diesel_higher: bool
    resolution: ConflictResolution = "pending"
    resolved_by: str | None = None
    resolved_at: datetime | None = None
