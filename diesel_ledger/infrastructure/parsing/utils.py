"""Shared parsing utilities for spreadsheet ingestion."""
from __future__ import annotations

import hashlib
import re
import unicodedata
from io import BytesIO
from pathlib import Path
from typing import Mapping, Sequence


def ensure_bytes(source: BytesIO | Path | bytes) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, Path):
        return source.read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def compute_file_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def normalize_label(value: object) -> str:
    """Lowercase, strip accents and collapse whitespace."""
    text = unicodedata.normalize("NFD", "" if value is None else str(value))
    text = "".join(ch for ch in text if unicodedata.category(ch) != "Mn")
    return re.sub(r"\s+", " ", text.lower()).strip()


def map_header_indices(headers: Sequence[object], labels: Mapping[str, str]) -> dict[str, int]:
    """Map internal field names to column positions.

    Exact matches on the normalized label win; otherwise the first label that
    contains (or is contained in) the header is used.
    """
    lookup = {normalize_label(label): key for key, label in labels.items()}
    indices: dict[str, int] = {}
    pending: list[tuple[int, str]] = []
    for position, header in enumerate(headers):
        normalized = normalize_label(header)
        if not normalized:
            continue
        if normalized in lookup:
            indices.setdefault(lookup[normalized], position)
        else:
            pending.append((position, normalized))
    for position, normalized in pending:
        for label, key in lookup.items():
            if key in indices:
                continue
            if normalized in label or label in normalized:
                indices[key] = position
                break
    return indices


def pick_sheet(sheets: Sequence[str], keyword: str) -> str:
    if not sheets:
        raise ValueError("Workbook has no sheets")
    for name in sheets:
        if keyword.lower() in normalize_label(name):
            return name
    return sheets[0]
