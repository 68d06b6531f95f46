"""Input loading for the UCoA compliance audit."""

from __future__ import annotations

from .loader import (
    eligible_batches,
    load_batches,
    load_entities,
    load_table,
    load_transactions,
)

__all__ = [
    "eligible_batches",
    "load_batches",
    "load_entities",
    "load_table",
    "load_transactions",
]
