"""Reference codesets of the Uniform Chart of Accounts.

The published chart is ingested elsewhere into a long table of
``(category, code)`` rows. This module turns that table into an immutable
:class:`ReferenceCodeset`, applying the supplemental overrides that patch
known gaps in the published document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

import pandas as pd
import yaml

from ucoa_compliance.core.schemas import missing_fields

logger = logging.getLogger(__name__)

# Category name -> code width in characters
CODE_WIDTHS: Dict[str, int] = {
    "fund": 3,
    "function": 6,
    "expense": 8,
    "revenue": 8,
}


class CodesetError(ValueError):
    """Reference data is missing or unusable; the audit cannot run."""


@dataclass(frozen=True)
class CodesetOverrides:
    """Supplemental entries applied on top of the published codesets.

    Attributes:
        ranges: Per category, inclusive numeric ranges whose codes are added,
            zero-padded to the category width.
        extra_codes: Per category, literal codes to add.
        corrections: Per category, mapping of published value to corrected
            value. The published value is removed and the corrected one added.
    """

    ranges: Dict[str, List[Tuple[int, int]]] = field(default_factory=dict)
    extra_codes: Dict[str, List[str]] = field(default_factory=dict)
    corrections: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def apply(self, category: str, codes: Iterable[str]) -> Set[str]:
        """Return a new set with this category's overrides applied."""
        result = set(codes)
        width = CODE_WIDTHS[category]

        for bad, good in self.corrections.get(category, {}).items():
            if bad not in result:
                logger.debug("Correction target %r not among published %s codes", bad, category)
            result.discard(bad)
            result.add(good)

        for start, end in self.ranges.get(category, []):
            result.update(f"{n:0{width}d}" for n in range(start, end + 1))

        result.update(self.extra_codes.get(category, []))
        return result

    def is_empty(self) -> bool:
        return not (self.ranges or self.extra_codes or self.corrections)


@dataclass(frozen=True)
class ReferenceCodeset:
    """Immutable lookup sets for the four UCoA code categories.

    Membership is exact-string: case and width sensitive. Built once per run
    and passed explicitly to every validator.

    Attributes:
        fund: Valid 3-character fund codes.
        function: Valid 6-character function codes.
        expense_account: Valid 8-character expense account codes.
        revenue_account: Valid 8-character revenue account codes.

    Raises:
        CodesetError: If any category is empty.
    """

    fund: FrozenSet[str]
    function: FrozenSet[str]
    expense_account: FrozenSet[str]
    revenue_account: FrozenSet[str]

    def __post_init__(self) -> None:
        empty = [name for name, codes in self.sizes().items() if codes == 0]
        if empty:
            raise CodesetError(f"Reference codeset has no codes for: {', '.join(empty)}")

    def is_valid_fund(self, code: str) -> bool:
        return code in self.fund

    def is_valid_function(self, code: str) -> bool:
        return code in self.function

    def is_valid_expense_account(self, code: str) -> bool:
        return code in self.expense_account

    def is_valid_revenue_account(self, code: str) -> bool:
        return code in self.revenue_account

    def sizes(self) -> Dict[str, int]:
        """Number of codes per category."""
        return {
            "fund": len(self.fund),
            "function": len(self.function),
            "expense": len(self.expense_account),
            "revenue": len(self.revenue_account),
        }

    @classmethod
    def from_codes(
        cls,
        fund: Iterable[str],
        function: Iterable[str],
        expense: Iterable[str],
        revenue: Iterable[str],
        overrides: Optional[CodesetOverrides] = None,
    ) -> "ReferenceCodeset":
        """Build a codeset from per-category code collections.

        Examples:
            >>> cs = ReferenceCodeset.from_codes(["100"], ["110000"], ["51100000"], ["41100000"])
            >>> cs.is_valid_fund("100")
            True
        """
        overrides = overrides or CodesetOverrides()
        return cls(
            fund=frozenset(overrides.apply("fund", fund)),
            function=frozenset(overrides.apply("function", function)),
            expense_account=frozenset(overrides.apply("expense", expense)),
            revenue_account=frozenset(overrides.apply("revenue", revenue)),
        )

    @classmethod
    def from_frame(
        cls, df: pd.DataFrame, overrides: Optional[CodesetOverrides] = None
    ) -> "ReferenceCodeset":
        """Build a codeset from a long ``(category, code)`` DataFrame.

        Codes are stripped of surrounding whitespace; null codes are dropped.
        Rows with an unknown category are ignored with a warning.

        Raises:
            CodesetError: If required columns are missing or a category ends up empty.
        """
        missing = missing_fields(df.columns, "codeset")
        if missing:
            raise CodesetError(f"Codeset table missing columns: {', '.join(missing)}")

        df = df.dropna(subset=["category", "code"])
        categories = df["category"].astype(str).str.strip().str.lower()
        codes = df["code"].astype(str).str.strip()

        unknown = sorted(set(categories) - set(CODE_WIDTHS))
        if unknown:
            logger.warning("Ignoring codeset rows with unknown categories: %s", ", ".join(unknown))

        by_category = {name: codes[categories == name].tolist() for name in CODE_WIDTHS}
        return cls.from_codes(
            fund=by_category["fund"],
            function=by_category["function"],
            expense=by_category["expense"],
            revenue=by_category["revenue"],
            overrides=overrides,
        )


def load_overrides(overrides_file: Path) -> CodesetOverrides:
    """Load supplemental codeset overrides from YAML.

    Expected layout::

        ranges:
          fund: [[start, end], ...]
        extra_codes:
          function: ["123456", ...]
        corrections:
          expense: {"published": "corrected"}

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the YAML is malformed or names an unknown category.
    """
    if not overrides_file.exists():
        raise FileNotFoundError(f"Overrides file not found: {overrides_file}")
    try:
        with overrides_file.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse overrides file {overrides_file}: {e}") from e

    sections = {
        key: data.get(key) or {} for key in ("ranges", "extra_codes", "corrections")
    }
    for key, section in sections.items():
        if not isinstance(section, dict):
            raise ValueError(f"Overrides section '{key}' must be a mapping")
        unknown = set(section) - set(CODE_WIDTHS)
        if unknown:
            raise ValueError(
                f"Unknown codeset categories in '{key}': {', '.join(sorted(unknown))}. "
                f"Valid categories: {', '.join(CODE_WIDTHS)}"
            )

    try:
        ranges = {
            cat: [(int(start), int(end)) for start, end in pairs]
            for cat, pairs in sections["ranges"].items()
        }
    except (TypeError, ValueError) as e:
        raise ValueError(f"Overrides ranges must be [start, end] integer pairs: {e}") from e

    return CodesetOverrides(
        ranges=ranges,
        extra_codes={cat: [str(c) for c in codes] for cat, codes in sections["extra_codes"].items()},
        corrections={
            cat: {str(bad): str(good) for bad, good in mapping.items()}
            for cat, mapping in sections["corrections"].items()
        },
    )


def load_codeset(
    codeset_file: Path, overrides: Optional[CodesetOverrides] = None
) -> ReferenceCodeset:
    """Load the reference codeset from a long-format CSV.

    Args:
        codeset_file: CSV with ``category`` and ``code`` columns.
        overrides: Supplemental entries to apply.

    Returns:
        The immutable ReferenceCodeset.

    Raises:
        CodesetError: If the file is missing, unreadable, or yields an empty category.
    """
    if not codeset_file.exists():
        raise CodesetError(f"Codeset file not found: {codeset_file}")
    try:
        df = pd.read_csv(codeset_file, dtype=str, keep_default_na=False, na_values=[""])
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise CodesetError(f"Failed to read codeset file {codeset_file}: {e}") from e

    codeset = ReferenceCodeset.from_frame(df, overrides)
    logger.info(
        "Loaded reference codeset from %s (%s)",
        codeset_file,
        ", ".join(f"{k}={v}" for k, v in codeset.sizes().items()),
    )
    return codeset
