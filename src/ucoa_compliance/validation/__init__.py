"""Compliance validation engine for the UCoA audit.

This module provides the audit pipeline for uploaded transaction batches:

- **Checks**: Account code, transaction type and posting date checks (see validation/checks/)
- **Batch**: evaluate_batch() - run all applicable checks over one batch
- **Aggregator**: aggregate_entity() - evaluate an entity's batches and summarize them
- **Report**: assemble_report() - build detail, summary and listing tables
- **Registry**: run_audit(), print_report() - audit orchestration
- **Config**: Policy constants (import from .config)

Public API:
    ViolationRecord: Findings for one batch
    EntitySummary: Per-entity rollup of distinct violations
    ComplianceReport: Assembled report tables with rendering helpers
    evaluate_batch: Evaluate one batch
    aggregate_entity: Evaluate all batches of one entity
    assemble_report: Assemble the report from entity aggregates
    run_audit: Run the audit over all entities
    print_report: Display audit results to console

Usage:
    >>> from pathlib import Path
    >>> from ucoa_compliance.codeset import load_codeset
    >>> from ucoa_compliance.ingestion import load_batches, load_entities, load_transactions
    >>> from ucoa_compliance.validation import run_audit, print_report
    >>> report = run_audit(
    ...     load_entities(Path("entities.csv")),
    ...     load_batches(Path("batches.csv")),
    ...     load_transactions(Path("transactions.csv")),
    ...     load_codeset(Path("data/ucoa_codes.csv")),
    ... )
    >>> print_report(report)
"""

from __future__ import annotations

from .aggregator import aggregate_entity
from .batch import evaluate_batch
from .models import (
    BatchRow,
    CodeViolation,
    ComplianceReport,
    EntityAggregate,
    EntitySummary,
    ViolationRecord,
)
from .registry import print_report, run_audit
from .report import assemble_report

__all__ = [
    # Data models
    "BatchRow",
    "CodeViolation",
    "ComplianceReport",
    "EntityAggregate",
    "EntitySummary",
    "ViolationRecord",
    # Pipeline
    "evaluate_batch",
    "aggregate_entity",
    "assemble_report",
    # Runner functions
    "run_audit",
    "print_report",
]
