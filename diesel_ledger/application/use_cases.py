"""Application services orchestrating the diesel import workflow."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from diesel_ledger.application.dto import ImportResponse
from diesel_ledger.domain.conflicts import MeterReconciliationPreferences, detect_meter_conflicts
from diesel_ledger.domain.models import MeterConflict
from diesel_ledger.domain.repositories import AssetMeterRepository, MovementRowRepository
from diesel_ledger.domain.services import DieselLedgerProcessor

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DieselImportContext:
    movement_repository: MovementRowRepository
    processor: DieselLedgerProcessor
    asset_meter_repository: AssetMeterRepository | None = None
    preferences: MeterReconciliationPreferences = field(default_factory=MeterReconciliationPreferences)


class ProcessDieselImportUseCase:
    def __init__(self, context: DieselImportContext) -> None:
        self._context = context

    def execute(self) -> ImportResponse:
        repository = self._context.movement_repository
        rows = repository.list_movement_rows()
        import_id = repository.import_id()
        logger.info("Processing %d rows from %s (import %s)", len(rows), repository.filename, import_id)

        batches = self._context.processor.process(rows, repository.filename, import_id)

        conflicts: list[MeterConflict] = []
        if self._context.asset_meter_repository is not None:
            # Reference meters are read once for the whole import.
            snapshots = self._context.asset_meter_repository.list_asset_meters()
            for batch in batches:
                conflicts.extend(detect_meter_conflicts(batch, snapshots, self._context.preferences))

        return ImportResponse(
            import_id=import_id,
            filename=repository.filename,
            batches=tuple(batches),
            conflicts=tuple(conflicts),
        )
