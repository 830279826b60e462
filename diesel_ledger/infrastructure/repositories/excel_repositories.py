"""Spreadsheet-backed repositories for diesel movements."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Sequence

from diesel_ledger.domain.models import RawMovementRow
from diesel_ledger.domain.repositories import MovementRowRepository
from diesel_ledger.infrastructure.parsing.diesel_sheet import diesel_to_rows
from diesel_ledger.infrastructure.parsing.utils import compute_file_hash, ensure_bytes

IMPORT_ID_LENGTH = 12


class SpreadsheetMovementRepository(MovementRowRepository):
    def __init__(self, source: BytesIO | Path | bytes, filename: str | None = None) -> None:
        self._source = ensure_bytes(source)
        if filename is None:
            filename = source.name if isinstance(source, Path) else "upload.xlsx"
        self.filename = filename

    def list_movement_rows(self) -> Sequence[RawMovementRow]:
        return diesel_to_rows(BytesIO(self._source), self.filename)

    def import_id(self) -> str:
        return compute_file_hash(self._source)[:IMPORT_ID_LENGTH]
