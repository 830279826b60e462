"""Domain services grouping enriched rows into reconciled plant batches."""
from __future__ import annotations

import logging
from collections import Counter
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from diesel_ledger.config import SETTINGS, Settings

from .enrichment import enrich_rows
from .meters import compute_meter_deltas
from .models import ENTRADA, SALIDA, EnrichedRow, MovementCategory, RawMovementRow
from .results import DateRange, PlantBatch
from .validation import apply_row_validation

logger = logging.getLogger(__name__)

GroupKey = tuple[str, str]


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def group_rows(rows: Iterable[EnrichedRow]) -> Mapping[GroupKey, list[EnrichedRow]]:
    """Partition by (plant, warehouse), each group in chronological order."""
    groups: dict[GroupKey, list[EnrichedRow]] = {}
    for row in rows:
        groups.setdefault((row.planta, row.almacen), []).append(row)
    return {key: sorted(group, key=lambda r: r.sort_key) for key, group in groups.items()}


class PlantBatchReconciler:
    """Replays one plant/warehouse ledger and builds its ``PlantBatch``."""

    def __init__(self, settings: Settings = SETTINGS) -> None:
        self._settings = settings

    def reconcile(
        self,
        rows: Sequence[EnrichedRow],
        plant_code: str,
        warehouse_number: str,
        filename: str,
        import_id: str,
    ) -> PlantBatch:
        batch_id = f"{plant_code}-{warehouse_number}-{import_id}"

        openings = [r for r in rows if r.movement_category is MovementCategory.INVENTORY_OPENING]
        opening_row = openings[0] if openings else None
        ignored_openings = tuple(openings[1:])
        if ignored_openings:
            logger.warning(
                "Batch %s has %d opening rows; using row %d",
                batch_id,
                len(openings),
                opening_row.original_row_number,
            )
        initial = opening_row.raw.inventario_inicial if opening_row else None
        initial_inventory = initial if initial is not None else Decimal("0")

        litros_in = sum((r.litros for r in rows if r.tipo == ENTRADA and r.litros > 0), Decimal("0"))
        litros_out = sum((r.litros for r in rows if r.tipo == SALIDA), Decimal("0"))

        last_reported = rows[-1].raw.inventario if rows else None
        final_provided = last_reported if last_reported is not None else Decimal("0")

        readings = [r.meter_reading for r in rows if r.meter_reading is not None]
        compute_meter_deltas(readings, self._settings)
        apply_row_validation(rows, ignored_openings)

        statuses = Counter(r.validation_status for r in rows)
        counts = Counter(r.movement_category for r in rows)

        batch = PlantBatch(
            batch_id=batch_id,
            plant_code=plant_code,
            warehouse_number=warehouse_number,
            original_filename=filename,
            rows=tuple(rows),
            inventory_opening_row=opening_row,
            initial_inventory=initial_inventory,
            total_litros_in=litros_in,
            total_litros_out=litros_out,
            final_inventory_provided=final_provided,
            movement_counts={category: counts.get(category, 0) for category in MovementCategory},
            adjustments=sum(1 for r in rows if r.is_likely_adjustment),
            unique_assets=_unique(r.unidad for r in rows if r.unidad),
            unmapped_assets=_unique(r.unidad for r in rows if r.requires_asset_mapping and r.unidad),
            assets_with_meters=_unique(r.unidad for r in rows if r.has_meter_readings and r.unidad),
            meter_readings=tuple(readings),
            validation_warnings=statuses.get("warning", 0),
            validation_errors=statuses.get("error", 0),
            date_range=DateRange.from_dates(r.parsed_date for r in rows),
            ignored_opening_rows=ignored_openings,
        )
        if batch.inventory_discrepancy:
            logger.info(
                "Batch %s: computed inventory %s differs from provided %s by %s",
                batch_id,
                batch.final_inventory_computed,
                batch.final_inventory_provided,
                batch.inventory_discrepancy,
            )
        return batch


def group_into_plant_batches(
    rows: Sequence[EnrichedRow],
    filename: str,
    import_id: str,
    settings: Settings = SETTINGS,
) -> list[PlantBatch]:
    reconciler = PlantBatchReconciler(settings)
    batches = [
        reconciler.reconcile(group, plant, warehouse, filename, import_id)
        for (plant, warehouse), group in group_rows(rows).items()
    ]
    logger.debug("Grouped %d rows from %s into %d batches", len(rows), filename, len(batches))
    return batches


class DieselLedgerProcessor:
    """Runs the whole core pipeline over the rows of one import."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or SETTINGS

    def process(self, raws: Sequence[RawMovementRow], filename: str, import_id: str) -> list[PlantBatch]:
        enriched = enrich_rows(list(raws), import_id, self._settings)
        return group_into_plant_batches(enriched, filename, import_id, self._settings)
