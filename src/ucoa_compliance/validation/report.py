"""Report assembly.

Concatenates per-entity aggregates into the report tables: batch detail
(violating batches only), entity summary (violating entities only), the
all-entities master table, and per-category listings of offending values.
"""

from __future__ import annotations

import sys
from typing import Dict, Iterable, List, Optional, Set

import pandas as pd

from .models import (
    LISTING_CATEGORIES,
    BatchRow,
    ComplianceReport,
    EntityAggregate,
    EntitySummary,
)

BATCH_ROW_COLUMNS = list(BatchRow(None, None, "", "").to_dict())
SUMMARY_COLUMNS = list(EntitySummary(None, None, "", "").to_dict())


def _frame(rows: List[dict], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=columns)


def _detail_sort_key(row: BatchRow):
    fiscal_year = row.fiscal_year
    return (row.entity_name, fiscal_year if fiscal_year is not None else sys.maxsize)


def build_listings(summaries: Iterable[EntitySummary]) -> Dict[str, Dict[str, List[str]]]:
    """Distinct offending values per category, keyed by entity name.

    Entities sharing a display name are merged under it.

    Examples:
        >>> summary = EntitySummary("E1", "X-E1", "Town of Example", "Town", invalid_fund=("999",))
        >>> build_listings([summary])["invalid_fund"]
        {'Town of Example': ['999']}
    """
    merged: Dict[str, Dict[str, Set[str]]] = {name: {} for name in LISTING_CATEGORIES}
    for summary in summaries:
        for category in LISTING_CATEGORIES:
            values = getattr(summary, category)
            if values:
                merged[category].setdefault(summary.entity_name, set()).update(values)
    return {
        category: {entity: sorted(values) for entity, values in sorted(entries.items())}
        for category, entries in merged.items()
    }


def assemble_report(
    aggregates: Iterable[EntityAggregate], errors: Optional[List[str]] = None
) -> ComplianceReport:
    """Assemble the report tables from per-entity aggregates.

    Args:
        aggregates: One EntityAggregate per evaluated entity.
        errors: Messages for entities that could not be evaluated.

    Returns:
        ComplianceReport. Detail rows are sorted by entity name then fiscal year.
    """
    aggregates = list(aggregates)
    all_rows = [row for agg in aggregates for row in agg.batch_rows]
    violating_rows = sorted((r for r in all_rows if r.has_violations()), key=_detail_sort_key)
    summaries = [agg.summary for agg in aggregates]

    return ComplianceReport(
        detail_table=_frame([r.to_dict() for r in violating_rows], BATCH_ROW_COLUMNS),
        summary_table=_frame(
            [s.to_dict() for s in summaries if s.has_violations()], SUMMARY_COLUMNS
        ),
        all_entities_table=_frame([r.to_dict() for r in all_rows], BATCH_ROW_COLUMNS),
        listings=build_listings(summaries),
        entity_count=len(aggregates),
        batch_count=sum(1 for r in all_rows if not r.is_placeholder),
        errors=list(errors or []),
    )
