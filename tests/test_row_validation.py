from diesel_ledger.domain.enrichment import enrich_rows
from diesel_ledger.domain.meters import compute_meter_deltas
from diesel_ledger.domain.normalization import coerce_raw_row
from diesel_ledger.domain.validation import apply_row_validation, validate_rows


def make_raw(**fields):
    base = {"planta": "P1", "almacen": "1", "tipo": "Salida", "fecha": "01/02/25", "unidad": "U1", "validacion": "40"}
    base.update(fields)
    return coerce_raw_row(base)


def test_validate_rows_reports_without_changing_status():
    rows = enrich_rows(
        [
            make_raw(litros_cantidad="40"),
            make_raw(planta=" ", litros_cantidad="40", kilometraje="mucho"),
            make_raw(litros_cantidad="40", fecha="2025-02-01"),
        ],
        "b",
    )

    report = validate_rows(rows)

    assert not report.is_valid
    assert [(i.field, i.row_number) for i in report.errors] == [("planta", 2)]
    assert {(i.field, i.row_number) for i in report.warnings} == {("kilometraje", 2), ("fecha", 3)}
    assert len(list(report.iter_all_issues())) == 3
    assert all(row.validation_status == "valid" for row in rows)


def test_clean_rows_are_valid():
    report = validate_rows(enrich_rows([make_raw(litros_cantidad="40")], "b"))

    assert report.is_valid
    assert not report.warnings


def test_meter_messages_keep_their_own_severity():
    rows = enrich_rows(
        [
            make_raw(litros_cantidad="150", validacion="150", horometro="100", kilometraje="0"),
            make_raw(litros_cantidad="150", validacion="150", horometro="90", kilometraje="600", fecha="02/02/25"),
        ],
        "b",
    )
    compute_meter_deltas([row.meter_reading for row in rows])

    report = apply_row_validation(rows)

    assert [i.message for i in report.errors] == ["Horometer went back 10.0 h (reset, tampering or capture error)"]
    assert "High daily distance: 600 km/day" in [i.message for i in report.warnings]
    assert rows[1].validation_status == "error"
