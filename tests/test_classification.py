from decimal import Decimal
from itertools import product

import pytest

from diesel_ledger.domain.classification import FALLBACK_RULE, RULES, classify, match_rule, row_facts
from diesel_ledger.domain.models import MovementCategory, RawMovementRow


def make_row(tipo="Salida", unidad="", litros=None, validacion=None, inicial=None) -> RawMovementRow:
    return RawMovementRow(
        planta="P1",
        almacen="1",
        tipo=tipo,
        unidad=unidad,
        litros_cantidad=None if litros is None else Decimal(str(litros)),
        validacion=None if validacion is None else Decimal(str(validacion)),
        inventario_inicial=None if inicial is None else Decimal(str(inicial)),
    )


def test_opening_balance():
    result = classify(make_row("Entrada", inicial=1000))

    assert result.category is MovementCategory.INVENTORY_OPENING
    assert result.is_adjustment
    assert result.adjustment_reason == "opening_balance"


def test_large_entrada_is_fuel_receipt():
    result = classify(make_row("Entrada", litros=5000))

    assert result.category is MovementCategory.FUEL_RECEIPT
    assert not result.is_adjustment
    assert result.adjustment_reason is None


@pytest.mark.parametrize("litros", [1, 999, 1000])
def test_small_entrada_is_manual_correction(litros):
    result = classify(make_row("Entrada", litros=litros))

    assert result.category is MovementCategory.INVENTORY_ADJUSTMENT
    assert result.adjustment_reason == "manual_correction"


def test_consumption_with_matching_validation():
    result = classify(make_row("Salida", unidad="U1", litros=153, validacion=153))

    assert result.category is MovementCategory.ASSET_CONSUMPTION
    assert not result.is_adjustment
    assert not result.possible_correction


def test_consumption_with_validation_mismatch_is_flagged_not_recategorized():
    result = classify(make_row("Salida", unidad="U1", litros=160, validacion=150))

    assert result.category is MovementCategory.ASSET_CONSUMPTION
    assert result.possible_correction
    assert result.adjustment_reason == "validation_correction"


def test_round_quantity_stays_consumption():
    result = classify(make_row("Salida", unidad="U1", litros=300, validacion=300))

    assert result.category is MovementCategory.ASSET_CONSUMPTION
    assert not result.is_adjustment
    assert result.possible_correction
    assert result.adjustment_reason == "round_quantity"


def test_mismatch_of_exactly_five_liters_is_tolerated():
    result = classify(make_row("Salida", unidad="U1", litros=155, validacion=150))

    assert not result.possible_correction


def test_salida_without_unit_requires_assignment():
    result = classify(make_row("Salida", litros=80))

    assert result.category is MovementCategory.UNASSIGNED_CONSUMPTION
    assert result.adjustment_reason == "requires_asset_assignment"


@pytest.mark.parametrize(
    "row",
    [
        make_row("Entrada"),
        make_row("Entrada", unidad="U1", litros=50),
        make_row("Salida", unidad="U1"),
        make_row("Salida"),
        make_row("Entrada", litros=-20),
    ],
)
def test_unmatched_rows_fall_back_to_unknown_pattern(row):
    result = classify(row)

    assert result.category is MovementCategory.INVENTORY_ADJUSTMENT
    assert result.adjustment_reason == "unknown_pattern"


def test_rule_order_is_first_match_wins():
    facts = row_facts(make_row("Entrada", litros=5000))

    assert match_rule(facts) is RULES[1]
    assert match_rule(facts, rules=RULES[2:]) is RULES[2]
    assert match_rule(facts, rules=()) is FALLBACK_RULE


def test_classification_is_total():
    categories = set(MovementCategory)
    for tipo, unidad, litros, inicial in product(
        ["Entrada", "Salida"], ["", "U1"], [None, 0, 50, 100, 1500], [None, 0, 800]
    ):
        result = classify(make_row(tipo, unidad=unidad, litros=litros, inicial=inicial))
        assert result.category in categories
