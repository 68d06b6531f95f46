"""Audit data models.

This module defines the immutable values that flow through the audit:
- CodeViolation: Account code violations found in one batch
- ViolationRecord: Everything the checks found in one batch
- BatchRow: A ViolationRecord enriched with entity and batch metadata
- EntitySummary: Per-entity rollup of distinct violations
- EntityAggregate: An entity's batch rows plus its summary
- ComplianceReport: Assembled report tables and listings
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from ucoa_compliance.core.enums import ViolationCategory
from .config import DISPLAY_SEPARATOR, get_severity, transaction_type_label

# Lookup categories counted in entity summaries, in report order
LOOKUP_CATEGORIES = tuple(c.value for c in ViolationCategory if c.value.startswith("invalid_"))

# Categories with per-entity listings of distinct offending values
LISTING_CATEGORIES = (ViolationCategory.INCORRECT_FORMAT.value,) + LOOKUP_CATEGORIES


def render_values(values) -> Optional[str]:
    """Join distinct values for display; None when there are none.

    Examples:
        >>> render_values(("101", "102"))
        '101, 102'
        >>> render_values(()) is None
        True
    """
    if not values:
        return None
    return DISPLAY_SEPARATOR.join(
        v.isoformat() if isinstance(v, dt.date) else str(v) for v in values
    )


@dataclass(frozen=True)
class CodeViolation:
    """Account code violations found in one batch.

    Each tuple holds distinct raw values in ascending lexical order. An empty
    tuple means "no violation" for that category.

    Attributes:
        any_blank_or_na: True if any code was null or empty.
        incorrect_format: Codes not matching the fund-function-account pattern.
        invalid_fund: Fund segments missing from the fund codeset.
        invalid_funct: Function segments missing from the function codeset.
        invalid_account_exp: Expense account segments missing from the expense codeset.
        invalid_account_rev: Revenue account segments missing from the revenue codeset.
    """

    any_blank_or_na: bool = False
    incorrect_format: Tuple[str, ...] = ()
    invalid_fund: Tuple[str, ...] = ()
    invalid_funct: Tuple[str, ...] = ()
    invalid_account_exp: Tuple[str, ...] = ()
    invalid_account_rev: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in LISTING_CATEGORIES:
            values = getattr(self, name)
            if list(values) != sorted(set(values)):
                raise ValueError(f"{name} must hold distinct values in ascending order")

    def has_violations(self) -> bool:
        return self.any_blank_or_na or any(getattr(self, name) for name in LISTING_CATEGORIES)


@dataclass(frozen=True)
class ViolationRecord:
    """Result of evaluating one batch against all checks.

    Attributes:
        batch_id: Batch identifier.
        code: Account code violations (all empty when the entity is exempt).
        date_violations: Out-of-window posting dates, one per offending transaction.
        invalid_type: Distinct transaction types outside the known set.
        transaction_types: Distinct transaction types present in the batch.
        fiscal_years: Distinct fiscal years declared by the batch's transactions.
        ucoa_checked: False when account code checks were skipped for exemption.
        transaction_count: Number of transactions evaluated.
    """

    batch_id: Any
    code: CodeViolation = field(default_factory=CodeViolation)
    date_violations: Tuple[dt.date, ...] = ()
    invalid_type: Tuple[str, ...] = ()
    transaction_types: Tuple[str, ...] = ()
    fiscal_years: Tuple[int, ...] = ()
    ucoa_checked: bool = True
    transaction_count: int = 0

    def has_violations(self) -> bool:
        return self.code.has_violations() or bool(self.invalid_type) or bool(self.date_violations)

    @property
    def transaction_type_labels(self) -> Tuple[str, ...]:
        """Display labels of the distinct types present, duplicates collapsed."""
        labels: List[str] = []
        for t in self.transaction_types:
            label = transaction_type_label(t)
            if label not in labels:
                labels.append(label)
        return tuple(labels)


@dataclass(frozen=True)
class BatchRow:
    """One row of the entity/batch master table.

    A row with ``record=None`` is the placeholder emitted for an entity
    without eligible batches; all batch and violation fields are then None.
    """

    entity_id: Any
    external_id: Any
    entity_name: str
    government_type: str
    batch_id: Any = None
    upload_date: Any = None
    upload_user: Any = None
    file_name: Any = None
    record_count: Any = None
    total_amount: Any = None
    begin_txn_date: Any = None
    end_txn_date: Any = None
    record: Optional[ViolationRecord] = None

    @property
    def is_placeholder(self) -> bool:
        return self.record is None

    @property
    def fiscal_year(self) -> Optional[int]:
        """Earliest fiscal year declared in the batch, if any."""
        if self.record is None or not self.record.fiscal_years:
            return None
        return self.record.fiscal_years[0]

    def has_violations(self) -> bool:
        return self.record is not None and self.record.has_violations()

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to a report row, rendering multi-valued fields for display."""
        row: Dict[str, Any] = {
            "entity_id": self.entity_id,
            "external_id": self.external_id,
            "entity_name": self.entity_name,
            "government_type": self.government_type,
            "batch_id": self.batch_id,
            "fiscal_year": None,
            "upload_date": self.upload_date,
            "upload_user": self.upload_user,
            "file_name": self.file_name,
            "record_count": self.record_count,
            "total_amount": self.total_amount,
            "begin_txn_date": self.begin_txn_date,
            "end_txn_date": self.end_txn_date,
            "transaction_types": None,
            "any_blank_or_na": None,
        }
        for name in LISTING_CATEGORIES:
            row[name] = None
        row["invalid_type"] = None
        row["posting_date_violations"] = None

        record = self.record
        if record is None:
            return row

        row["fiscal_year"] = render_values(record.fiscal_years)
        row["transaction_types"] = render_values(record.transaction_type_labels)
        row["any_blank_or_na"] = True if record.code.any_blank_or_na else None
        for name in LISTING_CATEGORIES:
            row[name] = render_values(getattr(record.code, name))
        row["invalid_type"] = render_values(record.invalid_type)
        row["posting_date_violations"] = render_values(record.date_violations)
        return row


@dataclass(frozen=True)
class EntitySummary:
    """Per-entity rollup across all of the entity's batches.

    Distinct-value tuples are unions across batches, so a value repeated in
    several batches counts once.
    """

    entity_id: Any
    external_id: Any
    entity_name: str
    government_type: str
    any_blank_or_na: bool = False
    incorrect_format: Tuple[str, ...] = ()
    invalid_fund: Tuple[str, ...] = ()
    invalid_funct: Tuple[str, ...] = ()
    invalid_account_exp: Tuple[str, ...] = ()
    invalid_account_rev: Tuple[str, ...] = ()
    number_batches: int = 0
    number_date_violations: int = 0

    @property
    def number_invalid_fund(self) -> int:
        return len(self.invalid_fund)

    @property
    def number_invalid_funct(self) -> int:
        return len(self.invalid_funct)

    @property
    def number_invalid_account_exp(self) -> int:
        return len(self.invalid_account_exp)

    @property
    def number_invalid_account_rev(self) -> int:
        return len(self.invalid_account_rev)

    def has_violations(self) -> bool:
        return self.any_blank_or_na or any(
            getattr(self, f"number_{name}") > 0 for name in LOOKUP_CATEGORIES
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "external_id": self.external_id,
            "entity_name": self.entity_name,
            "government_type": self.government_type,
            "any_blank_or_na": self.any_blank_or_na,
            "number_invalid_fund": self.number_invalid_fund,
            "number_invalid_funct": self.number_invalid_funct,
            "number_invalid_account_exp": self.number_invalid_account_exp,
            "number_invalid_account_rev": self.number_invalid_account_rev,
            "number_batches": self.number_batches,
            "number_date_violations": self.number_date_violations,
        }


@dataclass(frozen=True)
class EntityAggregate:
    """An entity's batch rows (at least one) and its summary."""

    batch_rows: Tuple[BatchRow, ...]
    summary: EntitySummary

    def __post_init__(self) -> None:
        if not self.batch_rows:
            raise ValueError("EntityAggregate requires at least one batch row")


@dataclass
class ComplianceReport:
    """Assembled audit output.

    Attributes:
        detail_table: One row per violating batch, sorted by entity name then fiscal year.
        summary_table: One row per violating entity.
        all_entities_table: Every batch row, including placeholders for entities
            without eligible batches.
        listings: Per category, entity name -> distinct offending values.
        entity_count: Number of entities evaluated.
        batch_count: Number of batches evaluated.
        errors: Entities that could not be evaluated, with the reason.
    """

    detail_table: pd.DataFrame
    summary_table: pd.DataFrame
    all_entities_table: pd.DataFrame
    listings: Dict[str, Dict[str, List[str]]]
    entity_count: int = 0
    batch_count: int = 0
    errors: List[str] = field(default_factory=list)

    def has_violations(self) -> bool:
        return not self.detail_table.empty or not self.summary_table.empty

    def get_category_counts(self) -> Dict[str, int]:
        """Number of violating batches per detail category."""
        counts = {}
        for name in ("any_blank_or_na",) + LISTING_CATEGORIES + (
            "invalid_type",
            "posting_date_violations",
        ):
            if name in self.detail_table.columns:
                counts[name] = int(self.detail_table[name].notna().sum())
            else:
                counts[name] = 0
        return counts

    def summary(self) -> str:
        """Generate a concise text summary of the audit.

        Examples:
            >>> empty = pd.DataFrame()
            >>> report = ComplianceReport(empty, empty, empty, {}, entity_count=12, batch_count=140)
            >>> print(report.summary())
            Audit Summary:
              Entities: 12 evaluated (0 with violations)
              Batches: 140 evaluated (0 with violations)
        """
        lines = [
            "Audit Summary:",
            f"  Entities: {self.entity_count} evaluated ({len(self.summary_table)} with violations)",
            f"  Batches: {self.batch_count} evaluated ({len(self.detail_table)} with violations)",
        ]
        if self.errors:
            lines.append(f"  Failed entities: {len(self.errors)}")
        return "\n".join(lines)

    def to_markdown(self) -> str:
        """Generate a Markdown audit report with counts and per-category listings."""
        counts = self.get_category_counts()
        lines = [
            "# UCoA Compliance Report",
            "",
            f"**Generated:** {dt.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            "## Summary",
            "",
            f"- **Entities evaluated:** {self.entity_count}",
            f"- **Entities with violations:** {len(self.summary_table)}",
            f"- **Batches evaluated:** {self.batch_count}",
            f"- **Batches with violations:** {len(self.detail_table)}",
            "",
            "### Batches by Category",
            "",
        ]
        for name, count in counts.items():
            check_id = "posting_date" if name == "posting_date_violations" else name
            icon = "❌" if get_severity(check_id) == "error" else "⚠️"
            lines.append(f"- {icon} **{name}:** {count}" if count else f"- **{name}:** 0")
        lines.append("")

        if not self.has_violations():
            lines.append("## ✅ No Violations Found")
            lines.append("")
        else:
            for category in LISTING_CATEGORIES:
                entries = self.listings.get(category, {})
                if not entries:
                    continue
                lines.append(f"## {category}")
                lines.append("")
                for entity_name, values in sorted(entries.items()):
                    lines.append(f"- **{entity_name}** ({len(values)}): {', '.join(values)}")
                lines.append("")

        if self.errors:
            lines.append("## Failed Entities")
            lines.append("")
            for msg in self.errors:
                lines.append(f"- {msg}")
            lines.append("")

        return "\n".join(lines)

    def to_json(self) -> str:
        """Generate a JSON audit report."""
        import json

        report_data = {
            "metadata": {"generated_at": dt.datetime.now().isoformat()},
            "summary": {
                "entities": self.entity_count,
                "entities_with_violations": len(self.summary_table),
                "batches": self.batch_count,
                "batches_with_violations": len(self.detail_table),
                "category_counts": self.get_category_counts(),
            },
            "entities": self.summary_table.to_dict(orient="records"),
            "listings": self.listings,
            "errors": self.errors,
        }
        return json.dumps(report_data, indent=2, ensure_ascii=False, default=str)

    def to_console_summary(self) -> str:
        """Generate a short console summary with the violating entities."""
        lines = [self.summary(), ""]
        if not self.has_violations():
            lines.append("✅ No compliance violations found!")
        else:
            lines.append("Entities with violations:")
            for row in self.summary_table.to_dict(orient="records"):
                counts = ", ".join(
                    f"{name}={row[f'number_{name}']}"
                    for name in LOOKUP_CATEGORIES
                    if row[f"number_{name}"]
                )
                blank = "blank/NA codes" if row["any_blank_or_na"] else ""
                details = "; ".join(part for part in (blank, counts) if part)
                lines.append(f"❌ {row['entity_name']}: {details}")
        for msg in self.errors:
            lines.append(f"⚠️ {msg}")
        return "\n".join(lines)
