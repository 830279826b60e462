"""Storage helpers for the host's current asset meters."""
from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Mapping

from diesel_ledger.domain.models import AssetMeterSnapshot
from diesel_ledger.domain.normalization import parse_number

logger = logging.getLogger(__name__)


def _parse_iso_date(value: object) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _normalize_meters(raw: dict[str, Any] | None) -> dict[str, AssetMeterSnapshot]:
    normalized: dict[str, AssetMeterSnapshot] = {}
    if not isinstance(raw, dict):
        return normalized
    for key, value in raw.items():
        if key is None or not isinstance(value, dict):
            continue
        code = str(key).strip().upper()
        if not code:
            continue
        asset_id = value.get("asset_id")
        normalized[code] = AssetMeterSnapshot(
            asset_code=code,
            asset_id=None if asset_id is None else str(asset_id),
            current_horometer=parse_number(value.get("current_horometer")),
            current_kilometer=parse_number(value.get("current_kilometer")),
            last_reading_date=_parse_iso_date(value.get("last_reading_date")),
        )
    return normalized


def load_asset_meters(path: Path) -> dict[str, AssetMeterSnapshot]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed asset meter file %s", path)
        return {}
    return _normalize_meters(data)


def _to_json(snapshot: AssetMeterSnapshot) -> dict[str, Any]:
    return {
        "asset_id": snapshot.asset_id,
        "current_horometer": None if snapshot.current_horometer is None else str(snapshot.current_horometer),
        "current_kilometer": None if snapshot.current_kilometer is None else str(snapshot.current_kilometer),
        "last_reading_date": snapshot.last_reading_date.isoformat() if snapshot.last_reading_date else None,
    }


def save_asset_meters(meters: Mapping[str, AssetMeterSnapshot], path: Path) -> dict[str, AssetMeterSnapshot]:
    payload = {str(code).strip().upper(): _to_json(snapshot) for code, snapshot in meters.items()}
    path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )
    return _normalize_meters(payload)
