from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from diesel_ledger.domain.conflicts import (
    MeterReconciliationPreferences,
    detect_meter_conflicts,
    resolve_conflict,
    should_update_meters,
)
from diesel_ledger.domain.models import AssetMeterSnapshot, MeterReading
from diesel_ledger.domain.normalization import coerce_raw_row
from diesel_ledger.domain.services import DieselLedgerProcessor


def make_snapshot(code="CR-21", horometer="1000", kilometer=None, last=date(2025, 2, 1)) -> AssetMeterSnapshot:
    return AssetMeterSnapshot(
        asset_code=code,
        asset_id="asset-uuid",
        current_horometer=None if horometer is None else Decimal(horometer),
        current_kilometer=None if kilometer is None else Decimal(kilometer),
        last_reading_date=last,
    )


def make_reading(horometer="1050", day=10) -> MeterReading:
    return MeterReading(
        asset_code="CR-21",
        reading_date=date(2025, 2, day),
        reading_time=None,
        horometer=Decimal(horometer),
        kilometer=None,
        fuel_consumed=Decimal("100"),
        operator=None,
        original_row_number=3,
        source_batch_id="b",
    )


def make_batch(horometer="1050"):
    raws = [
        coerce_raw_row(
            {
                "planta": "P1",
                "almacen": "1",
                "tipo": "Salida",
                "unidad": "cr-21",
                "fecha": "10/02/25",
                "litros_cantidad": "120",
                "validacion": "120",
                "horometro": horometer,
            }
        )
    ]
    return DieselLedgerProcessor().process(raws, "f.csv", "x")[0]


def test_conflict_raised_when_difference_exceeds_threshold():
    batch = make_batch("1050")

    conflicts = detect_meter_conflicts(batch, {"CR-21": make_snapshot()})

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.horometer_diff == 50
    assert conflict.is_diesel_newer
    assert conflict.is_diesel_higher
    assert conflict.resolution == "pending"
    assert batch.meter_conflicts == conflicts


def test_small_differences_and_unknown_assets_are_ignored():
    assert detect_meter_conflicts(make_batch("1005"), {"CR-21": make_snapshot()}) == []
    assert detect_meter_conflicts(make_batch("1500"), {"OTHER": make_snapshot("OTHER")}) == []


def test_snapshot_without_date_or_horometer_never_conflicts():
    assert detect_meter_conflicts(make_batch("1500"), {"CR-21": make_snapshot(last=None)}) == []
    assert detect_meter_conflicts(make_batch("1500"), {"CR-21": make_snapshot(horometer=None)}) == []


def test_prior_resolution_and_non_prompt_action_suppress_conflicts():
    snapshots = {"CR-21": make_snapshot()}

    assert detect_meter_conflicts(make_batch("1500"), snapshots, resolutions={"cr-21": "skip"}) == []
    prefs = MeterReconciliationPreferences(default_action="always_use_diesel")
    assert detect_meter_conflicts(make_batch("1500"), snapshots, preferences=prefs) == []


def test_resolve_conflict_returns_resolved_copy():
    conflict = detect_meter_conflicts(make_batch("1500"), {"CR-21": make_snapshot()})[0]
    when = datetime(2025, 2, 11, 9, 0)

    resolved = resolve_conflict(conflict, "use_diesel", resolved_by="ops", resolved_at=when)

    assert resolved.resolution == "use_diesel"
    assert resolved.resolved_by == "ops"
    assert resolved.resolved_at == when
    assert conflict.resolution == "pending"
    with pytest.raises(ValueError):
        resolve_conflict(conflict, "pending")


def test_should_update_meters_follows_preferences():
    snapshot = make_snapshot()
    close = make_reading("1005", day=10)

    assert should_update_meters(close, snapshot)
    assert not should_update_meters(make_reading("1005", day=5), snapshot)
    assert not should_update_meters(make_reading("1500"), snapshot)
    assert should_update_meters(make_reading("1500"), snapshot, MeterReconciliationPreferences("always_use_diesel"))
    assert not should_update_meters(close, snapshot, MeterReconciliationPreferences("always_keep_checklist"))
    assert should_update_meters(close, make_snapshot(last=None))


def test_pending_resolution_still_raises_conflict():
    conflicts = detect_meter_conflicts(make_batch("1500"), {"CR-21": make_snapshot()}, resolutions={"cr-21": "pending"})

    assert len(conflicts) == 1


def test_resolve_conflict_defaults_to_aware_utc_timestamp():
    conflict = detect_meter_conflicts(make_batch("1500"), {"CR-21": make_snapshot()})[0]

    resolved = resolve_conflict(conflict, "keep_checklist")

    assert resolved.resolved_at.tzinfo is timezone.utc
