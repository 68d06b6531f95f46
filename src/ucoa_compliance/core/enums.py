"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum, IntEnum


class TransactionType(IntEnum):
    """Transaction type codes as stored on uploaded transactions."""

    EXPENSE = 1
    REVENUE = 2
    PAYROLL = 3
    BALANCE_SHEET = 7


class BatchStatus(str, Enum):
    """Batch upload statuses.

    DONTDELETE marks a batch whose transactions were later split across
    archival tables; it is otherwise equivalent to PROCESSED.
    """

    PROCESSED = "PROCESSED"
    DONTDELETE = "DONTDELETE"


class GovernmentType(str, Enum):
    """Government types of entities under review.

    Values match the registry's display strings.
    """

    CITY = "City"
    COUNTY = "County"
    SCHOOL_DISTRICT = "School District or Charter School"
    SPECIAL_DISTRICT = "Special District"
    TOWN = "Town"
    OTHER = "Other"


class ViolationCategory(str, Enum):
    """Account-code violation categories reported per batch."""

    BLANK_OR_NA = "any_blank_or_na"
    INCORRECT_FORMAT = "incorrect_format"
    INVALID_FUND = "invalid_fund"
    INVALID_FUNCTION = "invalid_funct"
    INVALID_ACCOUNT_EXP = "invalid_account_exp"
    INVALID_ACCOUNT_REV = "invalid_account_rev"


__all__ = ["TransactionType", "BatchStatus", "GovernmentType", "ViolationCategory"]
