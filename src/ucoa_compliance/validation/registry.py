"""Check registry and audit runner.

This module orchestrates the audit:
- ALL_CHECKS: List of all transaction check instances
- run_audit(): Aggregates every entity and assembles the ComplianceReport
- print_report(): Displays audit results to console
"""

from __future__ import annotations

import logging
from typing import Dict, List

import pandas as pd
from tqdm import tqdm

from ucoa_compliance.codeset.reference import CodesetError, ReferenceCodeset
from ucoa_compliance.core.schemas import missing_fields
from .aggregator import aggregate_entity, group_transactions
from .checks.account_code import AccountCodeCheck
from .checks.posting_date import PostingDateCheck
from .checks.transaction_type import TransactionTypeCheck
from .models import ComplianceReport, EntityAggregate
from .report import assemble_report

logger = logging.getLogger(__name__)


# Registry of all transaction checks, in record field order
ALL_CHECKS = [
    AccountCodeCheck(),
    TransactionTypeCheck(),
    PostingDateCheck(),
]


def run_audit(
    entities: pd.DataFrame,
    batches: pd.DataFrame,
    transactions: pd.DataFrame,
    codeset: ReferenceCodeset,
    show_progress: bool = False,
) -> ComplianceReport:
    """Run the compliance audit over all entities.

    Entities are evaluated one at a time; each evaluation is independent and
    only reads the shared codeset. An entity that fails to evaluate is
    logged and listed in ``report.errors`` without stopping the others.

    Args:
        entities: Entity registry (entity_id, external_id, name,
            government_type, fiscal_year_start).
        batches: Eligible batches of all entities.
        transactions: Transactions of all eligible batches.
        codeset: Reference codeset, built once for the run.
        show_progress: Display a progress bar over entities.

    Returns:
        The assembled ComplianceReport.

    Raises:
        CodesetError: If no reference codeset is provided.
        ValueError: If an input table lacks required columns.

    Examples:
        >>> from pathlib import Path
        >>> from ucoa_compliance.codeset import load_codeset
        >>> from ucoa_compliance.ingestion import loader
        >>> report = run_audit(
        ...     loader.load_entities(Path("entities.csv")),
        ...     loader.load_batches(Path("batches.csv")),
        ...     loader.load_transactions(Path("transactions.csv")),
        ...     load_codeset(Path("codeset.csv")),
        ... )
        >>> report.has_violations()
        True
    """
    if not isinstance(codeset, ReferenceCodeset):
        raise CodesetError("A ReferenceCodeset is required before any entity is evaluated")

    for df, kind in ((entities, "entity"), (batches, "batch"), (transactions, "transaction")):
        missing = missing_fields(df.columns, kind)
        if missing:
            raise ValueError(f"{kind.capitalize()} table missing columns: {', '.join(missing)}")

    batches_by_entity: Dict = {
        entity_id: group for entity_id, group in batches.groupby("entity_id", sort=False)
    }
    transactions_by_batch = group_transactions(transactions)

    logger.info(
        "Auditing %d entities, %d batches, %d transactions",
        len(entities),
        len(batches),
        len(transactions),
    )

    aggregates: List[EntityAggregate] = []
    errors: List[str] = []
    for entity in tqdm(
        entities.to_dict(orient="records"),
        desc=f"{'Auditing entities':<31}",
        unit="entities",
        disable=not show_progress,
    ):
        name = entity.get("name", entity.get("entity_id"))
        try:
            aggregates.append(
                aggregate_entity(
                    entity,
                    batches_by_entity.get(entity["entity_id"]),
                    transactions_by_batch,
                    codeset,
                    checks=ALL_CHECKS,
                )
            )
        except (KeyError, ValueError) as e:
            logger.error("Failed to audit entity %s: %s", name, e)
            errors.append(f"{name}: {e}")

    report = assemble_report(aggregates, errors)
    logger.info(
        "Audit complete: %d/%d entities and %d/%d batches with violations",
        len(report.summary_table),
        report.entity_count,
        len(report.detail_table),
        report.batch_count,
    )
    return report


def print_report(report: ComplianceReport) -> None:
    """Print the audit report to console.

    Displays a summary followed by the violating entities.

    Args:
        report: ComplianceReport to display.
    """
    print(report.to_console_summary())
