"""CSV loaders for audit inputs.

Entity registries, batches and transactions are pulled from upstream systems
into CSV extracts before the audit runs. These loaders read the extracts into
DataFrames with the columns the engine expects.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from ucoa_compliance.core.schemas import get_date_fields, missing_fields
from ucoa_compliance.validation.config import ELIGIBLE_BATCH_STATUSES

logger = logging.getLogger(__name__)

# Identifier and code columns are kept as text to preserve leading zeros
_STRING_COLUMNS = {
    "entity": ["entity_id", "external_id", "name", "government_type", "fiscal_year_start"],
    "batch": ["batch_id", "entity_id", "status", "upload_user", "file_name"],
    "transaction": ["batch_id", "account_code"],
}


def load_table(path: Path, record_kind: str) -> pd.DataFrame:
    """Read one CSV extract and check its columns.

    Args:
        path: CSV file path.
        record_kind: "entity", "batch" or "transaction".

    Returns:
        DataFrame with date columns parsed.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be parsed or lacks required columns.
    """
    if not path.exists():
        raise FileNotFoundError(f"{record_kind.capitalize()} file not found: {path}")
    try:
        df = pd.read_csv(
            path,
            encoding="utf-8-sig",
            dtype={c: str for c in _STRING_COLUMNS.get(record_kind, [])},
        )
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ValueError(f"Failed to read {record_kind} file {path}: {e}") from e

    missing = missing_fields(df.columns, record_kind)
    if missing:
        raise ValueError(f"{record_kind.capitalize()} file {path} missing columns: {', '.join(missing)}")

    for column in get_date_fields(record_kind):
        df[column] = pd.to_datetime(df[column], errors="coerce")

    logger.info("Loaded %d %s rows from %s", len(df), record_kind, path)
    return df


def load_entities(path: Path) -> pd.DataFrame:
    return load_table(path, "entity")


def load_batches(path: Path) -> pd.DataFrame:
    """Load batches, keeping only those eligible for the audit."""
    return eligible_batches(load_table(path, "batch"))


def load_transactions(path: Path) -> pd.DataFrame:
    return load_table(path, "transaction")


def eligible_batches(batches: pd.DataFrame) -> pd.DataFrame:
    """Keep batches whose status is PROCESSED or DONTDELETE.

    Examples:
        >>> batches = pd.DataFrame({"status": ["PROCESSED", "FAILED", "DONTDELETE"]})
        >>> eligible_batches(batches)["status"].tolist()
        ['PROCESSED', 'DONTDELETE']
    """
    status = batches["status"].astype(str).str.strip().str.upper()
    eligible = status.isin(ELIGIBLE_BATCH_STATUSES)
    dropped = int((~eligible).sum())
    if dropped:
        logger.warning("Dropping %d batches with ineligible status", dropped)
    return batches[eligible].reset_index(drop=True)
