"""Record schemas and field definitions for audit inputs.

This module defines the expected columns for each kind of input record.
Used by the loaders, the aggregator and the tests to ensure consistency.
"""

from __future__ import annotations

from typing import List

RECORD_KINDS = ("entity", "batch", "transaction", "codeset")


def get_required_fields(record_kind: str) -> List[str]:
    """Get required columns for an input record kind.

    Args:
        record_kind: One of "entity", "batch", "transaction", "codeset".

    Returns:
        List of column names that must be present.

    Raises:
        ValueError: If record_kind is unknown.

    Examples:
        >>> "fiscal_year_start" in get_required_fields("entity")
        True
        >>> get_required_fields("codeset")
        ['category', 'code']
    """
    if record_kind == "entity":
        return [
            "entity_id",
            "external_id",
            "name",
            "government_type",
            "fiscal_year_start",
        ]
    elif record_kind == "batch":
        return [
            "batch_id",
            "entity_id",
            "status",
            "upload_date",
            "upload_user",
            "file_name",
            "record_count",
            "total_amount",
            "begin_txn_date",
            "end_txn_date",
        ]
    elif record_kind == "transaction":
        return [
            "batch_id",
            "type",
            "account_code",
            "posting_date",
            "fiscal_year",
        ]
    elif record_kind == "codeset":
        return ["category", "code"]
    else:
        raise ValueError(
            f"Unknown record kind: {record_kind}. Valid kinds: {', '.join(RECORD_KINDS)}"
        )


def get_date_fields(record_kind: str) -> List[str]:
    """Get the columns parsed as dates for an input record kind.

    Examples:
        >>> get_date_fields("transaction")
        ['posting_date']
        >>> get_date_fields("codeset")
        []
    """
    if record_kind == "batch":
        return ["upload_date", "begin_txn_date", "end_txn_date"]
    elif record_kind == "transaction":
        return ["posting_date"]
    elif record_kind in RECORD_KINDS:
        return []
    else:
        raise ValueError(
            f"Unknown record kind: {record_kind}. Valid kinds: {', '.join(RECORD_KINDS)}"
        )


def missing_fields(columns, record_kind: str) -> List[str]:
    """Return the required columns for record_kind absent from columns."""
    present = set(columns)
    return [c for c in get_required_fields(record_kind) if c not in present]


__all__ = ["RECORD_KINDS", "get_required_fields", "get_date_fields", "missing_fields"]
