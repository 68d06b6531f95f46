"""Batch evaluation.

Runs every applicable transaction check over one batch and combines the
findings into a single ViolationRecord.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import pandas as pd

from ucoa_compliance.codeset.reference import ReferenceCodeset
from ucoa_compliance.core.schemas import get_required_fields
from ucoa_compliance.core.utils import parse_fiscal_year_start
from .checks import CheckContext, TransactionCheck
from .checks.transaction_type import normalize_types, sort_types
from .config import is_ucoa_exempt
from .models import ViolationRecord

logger = logging.getLogger(__name__)

# Columns the checks read; batch_id is implied by the call
EVALUATED_FIELDS = [f for f in get_required_fields("transaction") if f != "batch_id"]


def evaluate_batch(
    batch_id: Any,
    government_type: str,
    codeset: ReferenceCodeset,
    transactions: Optional[pd.DataFrame],
    fiscal_year_start,
    checks: Optional[Sequence[TransactionCheck]] = None,
) -> ViolationRecord:
    """Evaluate one batch against all applicable checks.

    Args:
        batch_id: Batch identifier, copied onto the record.
        government_type: Government type of the owning entity; exempt types
            skip the account code check entirely.
        codeset: Read-only reference codeset.
        transactions: The batch's transactions (type, account_code,
            posting_date, fiscal_year). None or empty yields an empty record.
        fiscal_year_start: The entity's recurring fiscal year start.
        checks: Checks to run. Defaults to ``registry.ALL_CHECKS``.

    Returns:
        ViolationRecord for the batch.

    Raises:
        ValueError: If transactions lack required columns or the fiscal year
            start cannot be interpreted.
    """
    if checks is None:
        from .registry import ALL_CHECKS

        checks = ALL_CHECKS

    context = CheckContext(
        government_type=str(government_type),
        fiscal_year_start=parse_fiscal_year_start(fiscal_year_start),
        codeset=codeset,
    )
    exempt = is_ucoa_exempt(government_type)

    if transactions is None or transactions.empty:
        logger.debug("Batch %s has no transactions", batch_id)
        return ViolationRecord(batch_id=batch_id, ucoa_checked=not exempt)

    missing = [f for f in EVALUATED_FIELDS if f not in transactions.columns]
    if missing:
        raise ValueError(f"Transactions for batch {batch_id} missing columns: {', '.join(missing)}")

    fields = {}
    for check in checks:
        if check.applies_to_government_type(context.government_type):
            fields.update(check.validate(transactions, context))
        else:
            logger.debug("Skipping %s for batch %s (%s)", check.check_id, batch_id, government_type)

    fiscal_years = pd.to_numeric(transactions["fiscal_year"], errors="coerce").dropna()
    record = ViolationRecord(
        batch_id=batch_id,
        transaction_types=sort_types(normalize_types(transactions["type"]).tolist()),
        fiscal_years=tuple(sorted({int(fy) for fy in fiscal_years})),
        ucoa_checked="code" in fields,
        transaction_count=len(transactions),
        **fields,
    )
    logger.debug(
        "Batch %s: %d transactions, violations=%s",
        batch_id,
        record.transaction_count,
        record.has_violations(),
    )
    return record
