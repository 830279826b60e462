"""Application-level DTOs for diesel ledger imports."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from diesel_ledger.domain.models import MeterConflict
from diesel_ledger.domain.results import PlantBatch


@dataclass(slots=True, frozen=True)
class ImportResponse:
    import_id: str
    filename: str
    batches: Sequence[PlantBatch]
    conflicts: Sequence[MeterConflict]

    @property
    def total_rows(self) -> int:
        return sum(batch.total_rows for batch in self.batches)

    def has_issues(self) -> bool:
        return bool(self.conflicts) or any(batch.has_issues() for batch in self.batches)
