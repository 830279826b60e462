"""Diesel ledger import, classification and reconciliation toolkit."""
from diesel_ledger.application.use_cases import DieselImportContext, ProcessDieselImportUseCase
from diesel_ledger.domain.services import DieselLedgerProcessor, group_into_plant_batches
from diesel_ledger.infrastructure.repositories.excel_repositories import SpreadsheetMovementRepository
from diesel_ledger.infrastructure.repositories.json_repositories import JsonAssetMeterRepository

__all__ = [
    "DieselImportContext",
    "ProcessDieselImportUseCase",
    "DieselLedgerProcessor",
    "group_into_plant_batches",
    "SpreadsheetMovementRepository",
    "JsonAssetMeterRepository",
]
