"""JSON-backed reference data repositories."""
from __future__ import annotations

from pathlib import Path
from typing import Mapping

from diesel_ledger.domain.models import AssetMeterSnapshot
from diesel_ledger.domain.repositories import AssetMeterRepository
from diesel_ledger.infrastructure.storage.asset_meter_store import load_asset_meters


class JsonAssetMeterRepository(AssetMeterRepository):
    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def list_asset_meters(self) -> Mapping[str, AssetMeterSnapshot]:
        return load_asset_meters(self._path)
