"""Posting date window validation check.

A transaction's posting date must fall inside the policy window around its
stated fiscal year: from 3 months before the fiscal year starts through
6 months after it ends, inclusive. The window is re-anchored for every
declared fiscal year, so a batch spanning several fiscal years is handled
row by row.
"""

from __future__ import annotations

import calendar
import datetime as dt
import logging
from typing import Any, Dict, List, Tuple

import pandas as pd

from ucoa_compliance.core.utils import parse_fiscal_year_start
from ..config import MONTHS_BEFORE_FISCAL_YEAR, WINDOW_MONTHS_FROM_START
from . import CheckContext

logger = logging.getLogger(__name__)


def fiscal_year_anchor(fiscal_year: int, fiscal_year_start) -> dt.date:
    """Date on which a fiscal year begins for an entity.

    A fiscal year is labelled by the calendar year in which it ends, so a
    fiscal year starting mid-year begins in the previous calendar year.

    Args:
        fiscal_year: Fiscal year label (e.g., 2018).
        fiscal_year_start: The entity's recurring fiscal year start; anything
            accepted by ``parse_fiscal_year_start``.

    Returns:
        The concrete start date. A Feb 29 start falls back to Feb 28 in
        non-leap years.

    Examples:
        >>> fiscal_year_anchor(2019, "01-01")
        datetime.date(2019, 1, 1)
        >>> fiscal_year_anchor(2018, "07-01")
        datetime.date(2017, 7, 1)
    """
    month, day = parse_fiscal_year_start(fiscal_year_start)
    anchor_year = int(fiscal_year) if month == 1 else int(fiscal_year) - 1
    last_day = calendar.monthrange(anchor_year, month)[1]
    return dt.date(anchor_year, month, min(day, last_day))


def posting_window(fiscal_year: int, fiscal_year_start) -> Tuple[dt.date, dt.date]:
    """Inclusive (first, last) valid posting dates for a fiscal year.

    Examples:
        >>> posting_window(2019, "01-01")
        (datetime.date(2018, 10, 1), datetime.date(2020, 6, 30))
    """
    anchor = pd.Timestamp(fiscal_year_anchor(fiscal_year, fiscal_year_start))
    first = anchor - pd.DateOffset(months=MONTHS_BEFORE_FISCAL_YEAR)
    last = anchor + pd.DateOffset(months=WINDOW_MONTHS_FROM_START) - pd.Timedelta(days=1)
    return first.date(), last.date()


def is_posting_date_valid(posting_date, fiscal_year: int, fiscal_year_start) -> bool:
    """Return True if posting_date lies inside the fiscal year's window.

    Examples:
        >>> is_posting_date_valid(dt.date(2018, 9, 30), 2019, "01-01")
        False
    """
    first, last = posting_window(fiscal_year, fiscal_year_start)
    return first <= pd.Timestamp(posting_date).date() <= last


def collect_date_violations(transactions: pd.DataFrame, fiscal_year_start) -> List[dt.date]:
    """Collect every out-of-window posting date in a batch.

    One entry per offending transaction, in transaction order; duplicates are
    kept. Rows without a posting date or fiscal year have no window to check
    against and are skipped. A fiscal year whose window falls outside the
    representable date range (e.g. 0 or 20190) cannot contain any posting
    date, so every date declared against it is reported.

    Args:
        transactions: DataFrame with posting_date and fiscal_year columns.
        fiscal_year_start: The entity's recurring fiscal year start.

    Returns:
        List of offending posting dates.
    """
    fiscal_year_start = parse_fiscal_year_start(fiscal_year_start)
    if transactions.empty:
        return []

    dates = pd.to_datetime(transactions["posting_date"], errors="coerce").dt.normalize()
    years = pd.to_numeric(transactions["fiscal_year"], errors="coerce")
    known = dates.notna() & years.notna()
    dates = dates[known]
    years = years[known].astype(int)

    windows = {}
    unplaceable = []
    for fy in years.unique():
        try:
            windows[fy] = posting_window(int(fy), fiscal_year_start)
        except (ValueError, OverflowError):
            unplaceable.append(int(fy))
    if unplaceable:
        logger.warning(
            "No posting window for fiscal years %s; their posting dates are reported as out of window",
            sorted(unplaceable),
        )

    no_window = years.isin(unplaceable)
    first = pd.to_datetime(years.map(lambda fy: windows[fy][0] if fy in windows else None))
    last = pd.to_datetime(years.map(lambda fy: windows[fy][1] if fy in windows else None))

    # Comparisons against NaT are False, so only no_window flags those rows
    outside = no_window | (dates < first) | (dates > last)
    return [ts.date() for ts in dates[outside]]


class PostingDateCheck:
    """Validate that posting dates fall inside the fiscal year window."""

    check_id = "posting_date"

    def validate(self, transactions: pd.DataFrame, context: CheckContext) -> Dict[str, Any]:
        """Check every transaction of the batch, whatever its type.

        Returns:
            ``{"date_violations": tuple of dates}``.
        """
        violations = collect_date_violations(transactions, context.fiscal_year_start)
        return {"date_violations": tuple(violations)}

    def applies_to_government_type(self, government_type: str) -> bool:
        """Posting dates are checked for every government type."""
        return True
