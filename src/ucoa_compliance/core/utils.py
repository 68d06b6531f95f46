"""Core utility functions for the UCoA compliance audit.

This module provides shared utilities used across the project.
"""

from __future__ import annotations

import datetime as dt
import re
from pathlib import Path
from typing import Dict, Tuple, Union

import pandas as pd

FiscalYearStart = Tuple[int, int]

_MONTH_DAY_RE = re.compile(r"^\s*(\d{1,2})[-/](\d{1,2})\s*$")


def parse_fiscal_year_start(
    value: Union[str, dt.date, pd.Timestamp, Tuple[int, int]],
) -> FiscalYearStart:
    """Reduce a fiscal-year-start value to its (month, day) pair.

    Entities record the start of their fiscal year as a date whose year is
    irrelevant. Accepts a date/timestamp, a full date string, a "MM-DD" or
    "MM/DD" string, or a (month, day) tuple.

    Args:
        value: The recorded fiscal-year-start.

    Returns:
        Tuple of (month, day).

    Raises:
        ValueError: If the value is missing or cannot be interpreted.

    Examples:
        >>> parse_fiscal_year_start("07-01")
        (7, 1)
        >>> parse_fiscal_year_start("2016-01-01")
        (1, 1)
    """
    if isinstance(value, tuple):
        month, day = (int(v) for v in value)
    elif isinstance(value, (dt.date, pd.Timestamp)):
        month, day = value.month, value.day
    elif isinstance(value, str):
        match = _MONTH_DAY_RE.match(value)
        if match:
            month, day = int(match.group(1)), int(match.group(2))
        else:
            try:
                ts = pd.Timestamp(value)
            except (ValueError, TypeError) as e:
                raise ValueError(f"Unrecognised fiscal year start: {value!r}") from e
            if pd.isna(ts):
                raise ValueError(f"Unrecognised fiscal year start: {value!r}")
            month, day = ts.month, ts.day
    else:
        raise ValueError(f"Unrecognised fiscal year start: {value!r}")

    # 2000 is a leap year, so Feb 29 passes
    try:
        dt.date(2000, month, day)
    except ValueError as e:
        raise ValueError(f"Invalid fiscal year start month/day: {month}/{day}") from e
    return month, day


def get_report_paths(run_date: dt.date, output_root: Path) -> Dict[str, Path]:
    """Get output paths for a run's report tables.

    Constructs file paths following the naming convention
    ``{output_root}/{YYYY-MM-DD}/{table}.csv``.

    Args:
        run_date: Date the audit ran.
        output_root: Root directory for audit outputs.

    Returns:
        Mapping of table name ("detail", "summary", "all_entities") to path.

    Examples:
        >>> paths = get_report_paths(dt.date(2024, 3, 1), Path("out"))
        >>> print(paths["summary"])
        out/2024-03-01/ucoa_summary.csv
    """
    run_dir = output_root / run_date.isoformat()
    return {
        "detail": run_dir / "ucoa_detail.csv",
        "summary": run_dir / "ucoa_summary.csv",
        "all_entities": run_dir / "ucoa_all_entities.csv",
    }


def get_listing_path(run_date: dt.date, output_root: Path, category: str) -> Path:
    """Get the output path of one per-category listing table."""
    return output_root / run_date.isoformat() / f"ucoa_listing_{category}.csv"
