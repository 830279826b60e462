"""Turn typed source rows into fully enriched rows."""
from __future__ import annotations

from datetime import date

from diesel_ledger.config import SETTINGS, Settings

from .classification import classify
from .models import EnrichedRow, MeterReading, MovementCategory, RawMovementRow
from .normalization import parse_ledger_date

UNPARSED_SORT_PREFIX = "9999"


def build_sort_key(parsed_date: date | None, time_text: str, index: int, settings: Settings = SETTINGS) -> str:
    """Lexicographically sortable key; rows without a date sort last in file order."""
    position = str(index).zfill(settings.sort_index_width)
    if parsed_date is None:
        return f"{UNPARSED_SORT_PREFIX}-{position}"
    return f"{parsed_date.isoformat()}-{time_text or '00:00:00'}-{position}"


def build_enriched_row(
    raw: RawMovementRow,
    index: int,
    batch_id: str,
    settings: Settings = SETTINGS,
) -> EnrichedRow:
    parsed_date = parse_ledger_date(raw.fecha, settings)
    classification = classify(raw, settings)

    liters = raw.liters
    validation = raw.validacion if raw.validacion is not None else 0
    discrepancy = abs(liters - validation)

    meter_reading = None
    if raw.has_unit and (raw.horometro is not None or raw.kilometraje is not None) and parsed_date:
        meter_reading = MeterReading(
            asset_code=raw.unidad.strip(),
            reading_date=parsed_date,
            reading_time=raw.horario or None,
            horometer=raw.horometro,
            kilometer=raw.kilometraje,
            fuel_consumed=liters,
            operator=raw.responsable_unidad or None,
            original_row_number=index + 1,
            source_batch_id=batch_id,
        )

    category = classification.category
    requires_mapping = (
        raw.has_unit and category is MovementCategory.ASSET_CONSUMPTION
    ) or category is MovementCategory.UNASSIGNED_CONSUMPTION

    return EnrichedRow(
        raw=raw,
        original_row_number=index + 1,
        parsed_date=parsed_date,
        sort_key=build_sort_key(parsed_date, raw.horario, index, settings),
        movement_category=category,
        is_likely_adjustment=classification.is_adjustment,
        adjustment_reason=classification.adjustment_reason,
        is_possible_correction=classification.possible_correction,
        has_validation_discrepancy=discrepancy > settings.row_discrepancy_liters,
        validation_discrepancy_liters=discrepancy,
        requires_asset_mapping=requires_mapping,
        meter_reading=meter_reading,
        resolved_asset_type="unmapped" if raw.has_unit else None,
    )


def enrich_rows(raws: list[RawMovementRow], batch_id: str, settings: Settings = SETTINGS) -> list[EnrichedRow]:
    return [build_enriched_row(raw, index, batch_id, settings) for index, raw in enumerate(raws)]
