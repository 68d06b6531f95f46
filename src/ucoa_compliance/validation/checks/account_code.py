"""Account code validation check.

Expense and revenue transactions must carry a UCoA account code of the form
``FFF-NNNNNN-AAAAAAAA``: a fund, a function and an account segment, each of
which must exist in the reference codeset. Codes are checked in stages:

1. null or empty codes flag ``any_blank_or_na`` and go no further
2. codes not matching the pattern are collected in ``incorrect_format``
3. well-formed codes are split into segments and each segment is looked up
   independently (fund, function, and expense or revenue account)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import pandas as pd

from ucoa_compliance.codeset.reference import ReferenceCodeset
from ucoa_compliance.core.enums import TransactionType
from ..config import (
    ACCOUNT_CODE_PATTERN,
    ACCOUNT_SLICE,
    FUNCTION_SLICE,
    FUND_SLICE,
    UCOA_TRANSACTION_TYPES,
    is_ucoa_exempt,
)
from ..models import CodeViolation
from . import CheckContext


def _distinct(values: pd.Series) -> tuple:
    return tuple(sorted(set(values.tolist())))


def is_well_formed(code: str) -> bool:
    """Return True if code matches the fund-function-account pattern.

    Examples:
        >>> is_well_formed("100-110000-51100000")
        True
        >>> is_well_formed("100-110000-5110000")
        False
    """
    return ACCOUNT_CODE_PATTERN.fullmatch(code) is not None


def validate_account_codes(
    codes: pd.Series, transaction_types: pd.Series, codeset: ReferenceCodeset
) -> CodeViolation:
    """Validate a batch of account codes against the reference codeset.

    A code contributes to at most one of blank/format; a well-formed code is
    looked up in all three segment categories independently.

    Args:
        codes: Raw account codes (may contain nulls).
        transaction_types: Transaction type of each code, aligned by position.
            Only Expense (1) and Revenue (2) are accepted.
        codeset: Reference codeset.

    Returns:
        CodeViolation with distinct, sorted offending values per category.

    Raises:
        ValueError: If lengths differ or a transaction type is not Expense/Revenue.
    """
    codes = pd.Series(codes, dtype="object").reset_index(drop=True)
    types = pd.to_numeric(pd.Series(transaction_types), errors="coerce").reset_index(drop=True)
    if len(codes) != len(types):
        raise ValueError(
            f"codes and transaction_types differ in length ({len(codes)} != {len(types)})"
        )
    allowed = [int(t) for t in UCOA_TRANSACTION_TYPES]
    unexpected = types[~types.isin(allowed)]
    if not unexpected.empty:
        raise ValueError(
            "Account codes are validated only for Expense and Revenue transactions; "
            f"got types: {sorted(set(unexpected.astype(str)))}"
        )

    # 1. Blank / NA
    blank = codes.isna() | (codes.astype(str) == "")
    remaining = codes[~blank].astype(str)
    remaining_types = types[~blank]

    # 2. Structure
    well_formed = remaining.str.fullmatch(ACCOUNT_CODE_PATTERN.pattern).fillna(False).astype(bool)
    valid = remaining[well_formed]
    valid_types = remaining_types[well_formed]

    # 3. Decomposition
    fund = valid.str[FUND_SLICE]
    function = valid.str[FUNCTION_SLICE]
    account = valid.str[ACCOUNT_SLICE]

    # 4-6. Lookups
    is_expense = valid_types == int(TransactionType.EXPENSE)
    is_revenue = valid_types == int(TransactionType.REVENUE)

    return CodeViolation(
        any_blank_or_na=bool(blank.any()),
        incorrect_format=_distinct(remaining[~well_formed]),
        invalid_fund=_distinct(fund[~fund.isin(codeset.fund)]),
        invalid_funct=_distinct(function[~function.isin(codeset.function)]),
        invalid_account_exp=_distinct(
            account[is_expense & ~account.isin(codeset.expense_account)]
        ),
        invalid_account_rev=_distinct(
            account[is_revenue & ~account.isin(codeset.revenue_account)]
        ),
    )


def validate_account_code(
    code: Optional[str], transaction_type: int, codeset: ReferenceCodeset
) -> CodeViolation:
    """Validate a single account code.

    Examples:
        >>> codeset = ReferenceCodeset.from_codes(["100"], ["110000"], ["51100000"], ["41100000"])
        >>> validate_account_code(None, 1, codeset).any_blank_or_na
        True
        >>> validate_account_code("999-110000-51100000", 1, codeset).invalid_fund
        ('999',)
    """
    return validate_account_codes(pd.Series([code]), pd.Series([transaction_type]), codeset)


class AccountCodeCheck:
    """Validate UCoA account codes on expense and revenue transactions."""

    check_id = "account_code"

    def validate(self, transactions: pd.DataFrame, context: CheckContext) -> Dict[str, Any]:
        """Check the account codes of the batch's Expense/Revenue transactions.

        Payroll, balance sheet and other transaction types are not required
        to carry UCoA codes and are never passed to the validator.

        Args:
            transactions: DataFrame of the batch's transactions.
            context: Entity-level inputs for the batch.

        Returns:
            ``{"code": CodeViolation}``.
        """
        types = pd.to_numeric(transactions["type"], errors="coerce")
        mask = types.isin([int(t) for t in UCOA_TRANSACTION_TYPES])
        violation = validate_account_codes(
            transactions.loc[mask, "account_code"], types[mask], context.codeset
        )
        return {"code": violation}

    def applies_to_government_type(self, government_type: str) -> bool:
        """School districts and charter schools are exempt."""
        return not is_ucoa_exempt(government_type)
