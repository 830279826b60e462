"""Diesel control spreadsheet parser producing typed movement rows."""
from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Sequence

import pandas as pd

from diesel_ledger.config import SETTINGS, Settings
from diesel_ledger.domain.models import RawMovementRow
from diesel_ledger.domain.normalization import coerce_raw_row
from diesel_ledger.infrastructure.parsing.utils import ensure_bytes, map_header_indices, pick_sheet

logger = logging.getLogger(__name__)

CSV_ENCODINGS = ("utf-8-sig", "latin-1")


def _excel_engine(filename: str) -> str:
    return "xlrd" if filename.lower().endswith(".xls") else "openpyxl"


def read_diesel_raw(data: bytes, filename: str, settings: Settings = SETTINGS) -> pd.DataFrame:
    if filename.lower().endswith(".csv"):
        for encoding in CSV_ENCODINGS:
            try:
                return pd.read_csv(BytesIO(data), dtype=str, keep_default_na=False, encoding=encoding)
            except UnicodeDecodeError:
                logger.debug("%s is not %s encoded", filename, encoding)
        raise ValueError(f"Could not decode {filename}")

    engine = _excel_engine(filename)
    sheets = pd.ExcelFile(BytesIO(data), engine=engine).sheet_names
    sheet_name = pick_sheet(sheets, settings.sheet_keyword)
    logger.debug("Reading sheet %r from %s", sheet_name, filename)
    return pd.read_excel(BytesIO(data), sheet_name=sheet_name, engine=engine, dtype=object, header=0)


def normalize_diesel(df: pd.DataFrame, settings: Settings = SETTINGS) -> pd.DataFrame:
    """Rename recognized columns to internal field names and drop blank lines."""
    if df.empty:
        raise ValueError("Sheet appears to be empty")
    indices = map_header_indices(list(df.columns), settings.column_labels)
    missing = [settings.column_labels[key] for key in settings.required_columns if key not in indices]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    work = df.iloc[:, list(indices.values())].copy()
    work.columns = list(indices.keys())
    work = work.astype(object).where(work.notna(), None)

    blank = work.apply(lambda row: all(v is None or str(v).strip() == "" for v in row), axis=1)
    if blank.any():
        logger.debug("Skipping %d blank lines", int(blank.sum()))
    return work[~blank].reset_index(drop=True)


def diesel_to_rows(source: BytesIO | Path | bytes, filename: str, settings: Settings = SETTINGS) -> Sequence[RawMovementRow]:
    raw_bytes = ensure_bytes(source)
    dataframe = read_diesel_raw(raw_bytes, filename, settings)
    normalized = normalize_diesel(dataframe, settings)
    rows = [coerce_raw_row(record) for record in normalized.to_dict(orient="records")]
    logger.info("Parsed %d movement rows from %s", len(rows), filename)
    return rows
