"""Reference codesets for UCoA account code validation.

Public API:
    ReferenceCodeset: Immutable fund/function/expense/revenue lookup sets
    CodesetOverrides: Supplemental entries patching the published chart
    CodesetError: Raised when reference data is missing or unusable
    load_codeset: Load a codeset from a long-format CSV
    load_overrides: Load supplemental overrides from YAML
"""

from __future__ import annotations

from .reference import (
    CODE_WIDTHS,
    CodesetError,
    CodesetOverrides,
    ReferenceCodeset,
    load_codeset,
    load_overrides,
)

__all__ = [
    "CODE_WIDTHS",
    "CodesetError",
    "CodesetOverrides",
    "ReferenceCodeset",
    "load_codeset",
    "load_overrides",
]
