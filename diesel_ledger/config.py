"""Central configuration for the diesel ledger package."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# Source spreadsheet labels, keyed by internal field name.
COLUMN_LABELS = {
    "creado": "Creado",
    "planta": "Planta",
    "clave_producto": "CLAVE DE PRODUCTO",
    "almacen": "Almacen",
    "tipo": "Tipo",
    "unidad": "Unidad",
    "identificador": "Identificador",
    "fecha": "Fecha_",
    "horario": "Horario",
    "horometro": "Horómetro",
    "kilometraje": "Kilometraje",
    "litros_cantidad": "Litros (Cantidad)",
    "cuenta_litros": "Cuenta litros",
    "responsable_unidad": "Responsable de unidad",
    "responsable_suministro": "Responsable de suministro",
    "validacion": "Validación",
    "inventario_inicial": "INVENTARIO INICIAL",
    "inventario": "Inventario",
}

REQUIRED_COLUMNS = ("planta", "almacen", "tipo", "fecha", "litros_cantidad")


@dataclass(slots=True, frozen=True)
class Settings:
    # Classification thresholds; changing them breaks compatibility with historical imports.
    receipt_min_liters: Decimal = Decimal("1000")
    validation_tolerance_liters: Decimal = Decimal("5")
    round_quantity_modulus: Decimal = Decimal("100")
    row_discrepancy_liters: Decimal = Decimal("1")

    # Meter anomaly thresholds
    max_daily_hours: Decimal = Decimal("24")
    high_daily_hours: Decimal = Decimal("20")
    high_daily_km: Decimal = Decimal("500")
    min_liters_per_hour: Decimal = Decimal("0.5")
    max_liters_per_hour: Decimal = Decimal("50")

    # Meter reconciliation defaults
    conflict_default_action: str = "prompt"
    conflict_update_threshold_days: int = 7
    conflict_discrepancy_threshold: Decimal = Decimal("10")

    sheet_keyword: str = "diesel"
    sort_index_width: int = 6
    two_digit_year_pivot: int = 50
    column_labels: dict[str, str] = field(default_factory=lambda: dict(COLUMN_LABELS))
    required_columns: tuple[str, ...] = REQUIRED_COLUMNS


SETTINGS = Settings()
