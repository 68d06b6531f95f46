"""Entity aggregation.

Evaluates every eligible batch of an entity, enriches each ViolationRecord
with the batch's metadata, and rolls the batches up into an EntitySummary.
Each entity is aggregated independently into new immutable values.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import pandas as pd

from ucoa_compliance.codeset.reference import ReferenceCodeset
from ucoa_compliance.core.utils import parse_fiscal_year_start
from .batch import evaluate_batch
from .checks import TransactionCheck
from .config import is_ucoa_exempt
from .models import LISTING_CATEGORIES, BatchRow, EntityAggregate, EntitySummary

logger = logging.getLogger(__name__)

# Batch metadata copied onto each row
BATCH_METADATA_FIELDS = (
    "upload_date",
    "upload_user",
    "file_name",
    "record_count",
    "total_amount",
    "begin_txn_date",
    "end_txn_date",
)


def _clean(value: Any) -> Any:
    """Map pandas missing markers to None."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        # list-like values are never missing markers
        pass
    return value


def group_transactions(transactions: pd.DataFrame) -> Dict[Any, pd.DataFrame]:
    """Split a transaction table into one DataFrame per batch_id."""
    if transactions is None or transactions.empty:
        return {}
    return {batch_id: group for batch_id, group in transactions.groupby("batch_id", sort=False)}


def _entity_fields(entity: Mapping) -> Dict[str, Any]:
    return {
        "entity_id": _clean(entity["entity_id"]),
        "external_id": _clean(entity.get("external_id")),
        "entity_name": str(entity["name"]),
        "government_type": str(entity["government_type"]),
    }


def summarize_entity(entity_fields: Mapping[str, Any], rows: Iterable[BatchRow]) -> EntitySummary:
    """Roll batch rows up into the entity's summary.

    Distinct offending values are unioned across batches before counting.
    Placeholder rows contribute nothing.
    """
    records = [row.record for row in rows if row.record is not None]
    distinct = {
        name: tuple(sorted(set().union(*(getattr(r.code, name) for r in records))))
        for name in LISTING_CATEGORIES
    }
    return EntitySummary(
        **entity_fields,
        any_blank_or_na=any(r.code.any_blank_or_na for r in records),
        number_batches=len(records),
        number_date_violations=sum(len(r.date_violations) for r in records),
        **distinct,
    )


def aggregate_entity(
    entity: Mapping,
    batches: Optional[pd.DataFrame],
    transactions_by_batch: Mapping[Any, pd.DataFrame],
    codeset: ReferenceCodeset,
    checks: Optional[Sequence[TransactionCheck]] = None,
) -> EntityAggregate:
    """Evaluate all of an entity's eligible batches.

    An entity with no eligible batches still yields one placeholder row, with
    all batch and violation fields None, so every known entity appears in the
    master table.

    Args:
        entity: Entity record with entity_id, external_id, name,
            government_type and fiscal_year_start.
        batches: The entity's eligible batches (status already filtered).
        transactions_by_batch: Transactions keyed by batch_id; a batch without
            an entry is evaluated as empty.
        codeset: Read-only reference codeset.
        checks: Checks to run; defaults to ``registry.ALL_CHECKS``.

    Returns:
        EntityAggregate with one row per batch and the entity summary.

    Raises:
        KeyError: If the entity record lacks a required field.
        ValueError: If the fiscal year start is invalid or transactions are malformed.
    """
    entity_fields = _entity_fields(entity)
    government_type = entity_fields["government_type"]
    fiscal_year_start = parse_fiscal_year_start(entity["fiscal_year_start"])

    if batches is None or batches.empty:
        logger.info("Entity %s has no eligible batches", entity_fields["entity_name"])
        placeholder = BatchRow(**entity_fields)
        return EntityAggregate(
            batch_rows=(placeholder,),
            summary=summarize_entity(entity_fields, [placeholder]),
        )

    if is_ucoa_exempt(government_type):
        logger.debug(
            "Entity %s is %s: account code checks skipped",
            entity_fields["entity_name"],
            government_type,
        )

    rows = []
    for batch in batches.to_dict(orient="records"):
        batch_id = batch["batch_id"]
        record = evaluate_batch(
            batch_id,
            government_type,
            codeset,
            transactions_by_batch.get(batch_id),
            fiscal_year_start,
            checks=checks,
        )
        metadata = {name: _clean(batch.get(name)) for name in BATCH_METADATA_FIELDS}
        rows.append(BatchRow(**entity_fields, batch_id=batch_id, record=record, **metadata))

    summary = summarize_entity(entity_fields, rows)
    logger.debug(
        "Entity %s: %d batches, violations=%s",
        entity_fields["entity_name"],
        len(rows),
        summary.has_violations(),
    )
    return EntityAggregate(batch_rows=tuple(rows), summary=summary)
