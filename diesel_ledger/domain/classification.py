"""Ordered decision table assigning a movement category to each row.

Rules are evaluated top to bottom and the first match wins. Every predicate
looks only at the row's own fields, so classification is pure and row-local.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable

from diesel_ledger.config import SETTINGS, Settings

from .models import ENTRADA, SALIDA, Classification, MovementCategory, RawMovementRow


@dataclass(frozen=True)
class RowFacts:
    """Boolean features of a row that the rules are written against."""

    is_entrada: bool
    is_salida: bool
    has_unit: bool
    has_liters: bool
    has_opening_inventory: bool
    large_quantity: bool
    round_quantity: bool
    validation_mismatch: bool


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    matches: Callable[[RowFacts], bool]
    category: MovementCategory
    is_adjustment: bool
    adjustment_reason: str | None = None


def _is_multiple(value: Decimal, modulus: Decimal) -> bool:
    if value <= 0:
        return False
    try:
        return value % modulus == 0
    except InvalidOperation:
        # quotient wider than the context precision
        return False


def row_facts(row: RawMovementRow, settings: Settings = SETTINGS) -> RowFacts:
    liters = row.liters
    validation = row.validacion if row.validacion is not None else Decimal("0")
    opening = row.inventario_inicial
    return RowFacts(
        is_entrada=row.tipo == ENTRADA,
        is_salida=row.tipo == SALIDA,
        has_unit=row.has_unit,
        has_liters=liters > 0,
        has_opening_inventory=opening is not None and opening > 0,
        large_quantity=liters > settings.receipt_min_liters,
        round_quantity=_is_multiple(liters, settings.round_quantity_modulus),
        validation_mismatch=abs(liters - validation) > settings.validation_tolerance_liters,
    )


RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="opening_balance",
        matches=lambda f: f.is_entrada and not f.has_unit and not f.has_liters and f.has_opening_inventory,
        category=MovementCategory.INVENTORY_OPENING,
        is_adjustment=True,
        adjustment_reason="opening_balance",
    ),
    ClassificationRule(
        name="fuel_receipt",
        matches=lambda f: f.is_entrada and not f.has_unit and f.has_liters and f.large_quantity,
        category=MovementCategory.FUEL_RECEIPT,
        is_adjustment=False,
    ),
    ClassificationRule(
        name="small_entrada",
        matches=lambda f: f.is_entrada and not f.has_unit and f.has_liters,
        category=MovementCategory.INVENTORY_ADJUSTMENT,
        is_adjustment=True,
        adjustment_reason="manual_correction",
    ),
    ClassificationRule(
        name="asset_consumption",
        matches=lambda f: f.is_salida and f.has_unit and f.has_liters,
        category=MovementCategory.ASSET_CONSUMPTION,
        is_adjustment=False,
    ),
    ClassificationRule(
        name="unassigned_consumption",
        matches=lambda f: f.is_salida and not f.has_unit and f.has_liters,
        category=MovementCategory.UNASSIGNED_CONSUMPTION,
        is_adjustment=False,
        adjustment_reason="requires_asset_assignment",
    ),
)

FALLBACK_RULE = ClassificationRule(
    name="unknown_pattern",
    matches=lambda f: True,
    category=MovementCategory.INVENTORY_ADJUSTMENT,
    is_adjustment=True,
    adjustment_reason="unknown_pattern",
)


def match_rule(facts: RowFacts, rules: tuple[ClassificationRule, ...] = RULES) -> ClassificationRule:
    for rule in rules:
        if rule.matches(facts):
            return rule
    return FALLBACK_RULE


def classify(row: RawMovementRow, settings: Settings = SETTINGS) -> Classification:
    facts = row_facts(row, settings)
    rule = match_rule(facts)

    if rule.category is MovementCategory.ASSET_CONSUMPTION:
        # Consumption stays consumption; suspicious figures are only flagged.
        reason = None
        if facts.validation_mismatch:
            reason = "validation_correction"
        elif facts.round_quantity:
            reason = "round_quantity"
        return Classification(
            category=rule.category,
            is_adjustment=False,
            adjustment_reason=reason,
            possible_correction=reason is not None,
        )

    return Classification(
        category=rule.category,
        is_adjustment=rule.is_adjustment,
        adjustment_reason=rule.adjustment_reason,
    )
