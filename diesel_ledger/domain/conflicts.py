"""Compare imported meter readings with the meters the host already tracks."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal, Mapping

from diesel_ledger.config import SETTINGS

from .models import AssetMeterSnapshot, ConflictResolution, MeterConflict, MeterReading
from .results import PlantBatch

logger = logging.getLogger(__name__)

DefaultAction = Literal["prompt", "use_diesel_if_newer", "always_keep_checklist", "always_use_diesel"]


@dataclass(frozen=True)
class MeterReconciliationPreferences:
    default_action: DefaultAction = SETTINGS.conflict_default_action  # type: ignore[assignment]
    update_threshold_days: int = SETTINGS.conflict_update_threshold_days
    prompt_if_discrepancy_gt: Decimal = SETTINGS.conflict_discrepancy_threshold


def _diff(imported: Decimal | None, current: Decimal | None) -> Decimal | None:
    if imported is None or current is None:
        return None
    return imported - current


def build_conflict(
    reading: MeterReading,
    snapshot: AssetMeterSnapshot,
    preferences: MeterReconciliationPreferences,
) -> MeterConflict | None:
    """Return a pending conflict when the reading disagrees enough to ask the operator."""
    if preferences.default_action != "prompt":
        return None
    if snapshot.last_reading_date is None or snapshot.current_horometer is None:
        return None

    horometer_diff = _diff(reading.horometer, snapshot.current_horometer)
    kilometer_diff = _diff(reading.kilometer, snapshot.current_kilometer)
    threshold = preferences.prompt_if_discrepancy_gt
    if not any(diff is not None and abs(diff) > threshold for diff in (horometer_diff, kilometer_diff)):
        return None

    return MeterConflict(
        asset_code=reading.asset_code,
        asset_id=snapshot.asset_id,
        diesel_horometer=reading.horometer,
        diesel_kilometer=reading.kilometer,
        diesel_date=reading.reading_date,
        diesel_row_number=reading.original_row_number,
        checklist_horometer=snapshot.current_horometer,
        checklist_kilometer=snapshot.current_kilometer,
        checklist_date=snapshot.last_reading_date,
        checklist_source=f"Last updated {snapshot.last_reading_date.isoformat()}",
        horometer_diff=horometer_diff,
        kilometer_diff=kilometer_diff,
        is_diesel_newer=reading.reading_date > snapshot.last_reading_date,
        is_diesel_higher=reading.horometer is not None and reading.horometer > snapshot.current_horometer,
    )


def detect_meter_conflicts(
    batch: PlantBatch,
    snapshots: Mapping[str, AssetMeterSnapshot],
    preferences: MeterReconciliationPreferences | None = None,
    resolutions: Mapping[str, ConflictResolution] | None = None,
) -> list[MeterConflict]:
    """Collect conflicts for the batch and attach them to it."""
    preferences = preferences or MeterReconciliationPreferences()
    resolutions = resolutions or {}
    conflicts: list[MeterConflict] = []
    for reading in batch.meter_readings:
        if resolutions.get(reading.asset_code, "pending") != "pending":
            continue
        snapshot = snapshots.get(reading.asset_code.upper())
        if snapshot is None:
            logger.debug("No meter snapshot for %s; skipping conflict check", reading.asset_code)
            continue
        conflict = build_conflict(reading, snapshot, preferences)
        if conflict is not None:
            conflicts.append(conflict)
    batch.meter_conflicts = conflicts
    if conflicts:
        logger.info("Batch %s: %d meter conflicts need resolution", batch.batch_id, len(conflicts))
    return conflicts


def resolve_conflict(
    conflict: MeterConflict,
    resolution: ConflictResolution,
    resolved_by: str | None = None,
    resolved_at: datetime | None = None,
) -> MeterConflict:
    if resolution == "pending":
        raise ValueError("A conflict cannot be resolved back to 'pending'")
    return replace(
        conflict,
        resolution=resolution,
        resolved_by=resolved_by,
        resolved_at=resolved_at or datetime.now(timezone.utc),
    )


def should_update_meters(
    reading: MeterReading,
    snapshot: AssetMeterSnapshot,
    preferences: MeterReconciliationPreferences | None = None,
) -> bool:
    """Whether the host should overwrite its asset meters with this reading.

    Readings that raise a conflict under ``prompt`` wait for the operator.
    """
    preferences = preferences or MeterReconciliationPreferences()
    if preferences.default_action == "always_use_diesel":
        return True
    if preferences.default_action == "always_keep_checklist":
        return False
    if preferences.default_action == "prompt" and build_conflict(reading, snapshot, preferences) is not None:
        return False
    if snapshot.last_reading_date is None:
        return True
    return (reading.reading_date - snapshot.last_reading_date).days >= preferences.update_threshold_days
