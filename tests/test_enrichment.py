from datetime import date
from decimal import Decimal

from diesel_ledger.domain.enrichment import build_enriched_row, build_sort_key
from diesel_ledger.domain.models import MovementCategory
from diesel_ledger.domain.normalization import coerce_raw_row


def make_raw(**fields):
    base = {"planta": "P1", "almacen": "1", "tipo": "Salida", "fecha": "10/03/25", "horario": "08:00"}
    base.update(fields)
    return coerce_raw_row(base)


def test_sort_key_for_parsed_date():
    key = build_sort_key(date(2025, 3, 10), "08:00:00", 4)

    assert key == "2025-03-10-08:00:00-000004"


def test_unparsed_dates_sort_last_in_file_order():
    keys = [
        build_sort_key(None, "", 7),
        build_sort_key(date(2025, 12, 31), "23:59:00", 99),
        build_sort_key(None, "", 3),
        build_sort_key(None, "", 10),
    ]

    assert sorted(keys) == [
        "2025-12-31-23:59:00-000099",
        "9999-000003",
        "9999-000007",
        "9999-000010",
    ]


def test_consumption_row_gets_meter_reading_skeleton():
    raw = make_raw(unidad="CR-21", litros_cantidad="120", validacion="120", horometro="1500.5", responsable_unidad="Juan")

    row = build_enriched_row(raw, 4, "imp-1")

    assert row.original_row_number == 5
    assert row.parsed_date == date(2025, 3, 10)
    assert row.movement_category is MovementCategory.ASSET_CONSUMPTION
    assert row.requires_asset_mapping
    assert row.resolved_asset_type == "unmapped"
    reading = row.meter_reading
    assert reading is not None
    assert reading.asset_code == "CR-21"
    assert reading.horometer == Decimal("1500.5")
    assert reading.kilometer is None
    assert reading.fuel_consumed == Decimal("120")
    assert reading.operator == "Juan"
    assert reading.source_batch_id == "imp-1"
    assert reading.horometer_delta is None
    assert not reading.has_warnings and not reading.has_errors


def test_no_meter_reading_without_date_or_meters():
    undated = build_enriched_row(make_raw(unidad="CR-21", litros_cantidad="50", horometro="10", fecha="??"), 0, "b")
    no_meters = build_enriched_row(make_raw(unidad="CR-21", litros_cantidad="50"), 1, "b")
    no_unit = build_enriched_row(make_raw(litros_cantidad="50", horometro="10"), 2, "b")

    assert undated.meter_reading is None
    assert undated.sort_key == "9999-000000"
    assert no_meters.meter_reading is None
    assert no_unit.meter_reading is None


def test_mapping_flags():
    unassigned = build_enriched_row(make_raw(litros_cantidad="40"), 0, "b")
    receipt = build_enriched_row(make_raw(tipo="Entrada", litros_cantidad="8000"), 1, "b")

    assert unassigned.requires_asset_mapping
    assert unassigned.resolved_asset_type is None
    assert not receipt.requires_asset_mapping


def test_validation_discrepancy_magnitude():
    row = build_enriched_row(make_raw(unidad="U1", litros_cantidad="100", validacion="98.5"), 0, "b")
    close = build_enriched_row(make_raw(unidad="U1", litros_cantidad="100", validacion="99.5"), 1, "b")

    assert row.validation_discrepancy_liters == Decimal("1.5")
    assert row.has_validation_discrepancy
    assert not close.has_validation_discrepancy
