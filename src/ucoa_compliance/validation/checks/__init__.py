"""Transaction checks base interface.

This module defines the protocol (interface) that all transaction checks must
implement. Each check inspects one batch's transactions for a specific kind of
violation (account code structure, posting date window, transaction type).

To implement a new check:

1. Create a new file in this directory (e.g., `my_check.py`)
2. Define a class that implements the TransactionCheck protocol
3. Implement `validate()` and `applies_to_government_type()`
4. Add the check to the ALL_CHECKS list in registry.py

`validate()` returns a mapping of ViolationRecord field names to values; the
batch evaluator merges the mappings of every applicable check into one record.

Example:
    ```python
    # checks/my_check.py
    import pandas as pd
    from . import CheckContext

    class MyCheck:
        check_id = "my_check"

        def validate(self, transactions: pd.DataFrame, context: CheckContext) -> dict:
            return {"invalid_type": ()}

        def applies_to_government_type(self, government_type: str) -> bool:
            return True
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Protocol

import pandas as pd

from ucoa_compliance.codeset.reference import ReferenceCodeset
from ucoa_compliance.core.utils import FiscalYearStart


@dataclass(frozen=True)
class CheckContext:
    """Entity-level inputs shared by all checks of one batch.

    Attributes:
        government_type: Government type of the owning entity.
        fiscal_year_start: The entity's (month, day) fiscal year start.
        codeset: Read-only reference codeset for the run.
    """

    government_type: str
    fiscal_year_start: FiscalYearStart
    codeset: ReferenceCodeset


class TransactionCheck(Protocol):
    """Protocol defining the interface for transaction checks.

    Use duck typing (Protocol) - no need to inherit from a base class.
    """

    check_id: str

    def validate(self, transactions: pd.DataFrame, context: CheckContext) -> Dict[str, Any]:
        """Run the check over one batch's transactions.

        Args:
            transactions: Non-empty DataFrame with type, account_code,
                posting_date and fiscal_year columns.
            context: Entity-level inputs for the batch.

        Returns:
            Mapping of ViolationRecord field name to the check's findings.
        """
        ...

    def applies_to_government_type(self, government_type: str) -> bool:
        """Check if this check runs for entities of a given government type.

        Examples:
            >>> AccountCodeCheck().applies_to_government_type("School District or Charter School")
            False
            >>> PostingDateCheck().applies_to_government_type("School District or Charter School")
            True
        """
        ...


__all__ = ["CheckContext", "TransactionCheck"]
