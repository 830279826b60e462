"""Repository interfaces anchoring the domain layer."""
from __future__ import annotations

from typing import Mapping, Protocol, Sequence

from .models import AssetMeterSnapshot, RawMovementRow


class MovementRowRepository(Protocol):
    """Provides the typed rows of one source export."""

    filename: str

    def list_movement_rows(self) -> Sequence[RawMovementRow]:
        ...

    def import_id(self) -> str:
        ...


class AssetMeterRepository(Protocol):
    """Provides the meters the host currently holds, keyed by asset code."""

    def list_asset_meters(self) -> Mapping[str, AssetMeterSnapshot]:
        ...
