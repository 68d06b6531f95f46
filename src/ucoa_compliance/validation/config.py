"""Audit policy constants.

This module centralizes the policy values used by the compliance checks.
Adjust these constants when the external reporting policy changes.

Severity Levels:
    - "error": Violations that must be corrected by the submitting entity
    - "warning": Issues that warrant review but may be legitimate
"""

from __future__ import annotations

import re

from ucoa_compliance.core.enums import BatchStatus, GovernmentType, TransactionType

# ============================================================================
# ACCOUNT CODE POLICY
# ============================================================================

# fund (3) + delimiter + function (6) + delimiter + account (8) = 19 characters;
# matched against the whole string
ACCOUNT_CODE_PATTERN = re.compile(r"[0-9]{3}[^0-9][0-9]{6}[^0-9][0-9]{8}")

FUND_SLICE = slice(0, 3)
FUNCTION_SLICE = slice(4, 10)
ACCOUNT_SLICE = slice(11, 19)

# Transaction types that must carry a UCoA account code
UCOA_TRANSACTION_TYPES = frozenset({TransactionType.EXPENSE, TransactionType.REVENUE})

# Government types exempt from account code checks (dates are still checked)
UCOA_EXEMPT_GOVERNMENT_TYPES = frozenset({GovernmentType.SCHOOL_DISTRICT.value})

# ============================================================================
# POSTING DATE POLICY
# ============================================================================

# Window opens this many months before the fiscal year starts (late-billed payables)
MONTHS_BEFORE_FISCAL_YEAR = 3

# Window spans this many months from the fiscal year start, minus one day:
# the 12-month fiscal year plus 6 months for year-end corrections
WINDOW_MONTHS_FROM_START = 18

# ============================================================================
# BATCH / TRANSACTION TYPES
# ============================================================================

ELIGIBLE_BATCH_STATUSES = frozenset(s.value for s in BatchStatus)

TRANSACTION_TYPE_LABELS = {
    TransactionType.EXPENSE: "EXP",
    TransactionType.REVENUE: "REV",
    TransactionType.PAYROLL: "PAYROLL",
    TransactionType.BALANCE_SHEET: "BS",
}
OTHER_TYPE_LABEL = "OTHER"

KNOWN_TRANSACTION_TYPES = frozenset(int(t) for t in TransactionType)

# Separator used when rendering multi-valued fields for display
DISPLAY_SEPARATOR = ", "


# ============================================================================
# SEVERITY RULES
# ============================================================================

_SEVERITY_MAP = {
    "any_blank_or_na": "error",
    "incorrect_format": "error",
    "invalid_fund": "error",
    "invalid_funct": "error",
    "invalid_account_exp": "error",
    "invalid_account_rev": "error",
    "invalid_type": "error",
    "posting_date": "warning",
}


def transaction_type_label(value) -> str:
    """Map a raw transaction type to its display label.

    Examples:
        >>> transaction_type_label(1)
        'EXP'
        >>> transaction_type_label(9)
        'OTHER'
    """
    try:
        return TRANSACTION_TYPE_LABELS[TransactionType(int(value))]
    except (ValueError, TypeError):
        return OTHER_TYPE_LABEL


def is_ucoa_exempt(government_type: str) -> bool:
    """Return True if entities of this government type skip account code checks."""
    return str(government_type).strip() in UCOA_EXEMPT_GOVERNMENT_TYPES


def get_severity(check_id: str) -> str:
    """Get severity level for a violation category.

    Args:
        check_id: Violation field name (e.g., "invalid_fund", "posting_date").

    Returns:
        Severity level: "error" or "warning".

    Raises:
        ValueError: If check_id is unknown.

    Examples:
        >>> get_severity("invalid_fund")
        'error'
        >>> get_severity("posting_date")
        'warning'
    """
    if check_id not in _SEVERITY_MAP:
        raise ValueError(f"Unknown check_id: {check_id}")
    return _SEVERITY_MAP[check_id]
