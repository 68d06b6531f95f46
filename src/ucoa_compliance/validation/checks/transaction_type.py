"""Transaction type validation check.

Every transaction must declare a known type (expense, revenue, payroll or
balance sheet). This check is independent of the account code check: an
unknown type is reported here and never passed to the account code validator.
"""

from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from ..config import KNOWN_TRANSACTION_TYPES
from . import CheckContext

MISSING_TYPE = "NA"


def normalize_types(types: pd.Series) -> pd.Series:
    """Render raw transaction types as strings: "1", "7", "X", or "NA" if null.

    Examples:
        >>> normalize_types(pd.Series([1, 7.0, None])).tolist()
        ['1', '7', 'NA']
    """
    numeric = pd.to_numeric(types, errors="coerce")
    rendered = types.astype(str).str.strip()
    is_integral = numeric.notna() & (numeric % 1 == 0)
    rendered[is_integral] = numeric[is_integral].astype("int64").astype(str)
    rendered[types.isna()] = MISSING_TYPE
    return rendered


def sort_types(values) -> tuple:
    """Sort distinct type strings, numeric ones first in numeric order.

    Examples:
        >>> sort_types({"10", "2", "X"})
        ('2', '10', 'X')
    """
    return tuple(sorted(set(values), key=lambda v: (not v.isdigit(), int(v) if v.isdigit() else 0, v)))


class TransactionTypeCheck:
    """Validate that every transaction declares a known type."""

    check_id = "invalid_type"

    def validate(self, transactions: pd.DataFrame, context: CheckContext) -> Dict[str, Any]:
        """Collect distinct transaction types outside the known set.

        Returns:
            ``{"invalid_type": tuple of raw type strings}``.
        """
        types = normalize_types(transactions["type"])
        known = {str(t) for t in KNOWN_TRANSACTION_TYPES}
        invalid = types[~types.isin(known)]
        return {"invalid_type": sort_types(invalid.tolist())}

    def applies_to_government_type(self, government_type: str) -> bool:
        """Transaction types are checked for every government type."""
        return True
