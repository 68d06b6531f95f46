"""Shared pytest configuration and fixtures for audit testing."""

import datetime as dt
from typing import Dict, List

import pandas as pd
import pytest

from ucoa_compliance.codeset import ReferenceCodeset
from ucoa_compliance.core.schemas import get_required_fields


@pytest.fixture
def codeset() -> ReferenceCodeset:
    """Small reference codeset used across tests."""
    return ReferenceCodeset.from_codes(
        fund=["100", "200"],
        function=["110000", "120000"],
        expense=["51100000", "51200000"],
        revenue=["41100000", "41200000"],
    )


@pytest.fixture
def make_transactions():
    """Factory building a transaction DataFrame from (type, code, date, fiscal_year) tuples."""

    def _make(rows: List[tuple], batch_id: str = "B1") -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "batch_id": batch_id,
                    "type": txn_type,
                    "account_code": code,
                    "posting_date": pd.Timestamp(posting_date) if posting_date else pd.NaT,
                    "fiscal_year": fiscal_year,
                }
                for txn_type, code, posting_date, fiscal_year in rows
            ],
            columns=get_required_fields("transaction"),
        )

    return _make


@pytest.fixture
def make_entity():
    """Factory building an entity record."""

    def _make(
        entity_id: str = "E1",
        name: str = "Town of Example",
        government_type: str = "Town",
        fiscal_year_start: str = "01-01",
    ) -> Dict:
        return {
            "entity_id": entity_id,
            "external_id": f"X-{entity_id}",
            "name": name,
            "government_type": government_type,
            "fiscal_year_start": fiscal_year_start,
        }

    return _make


@pytest.fixture
def make_batches():
    """Factory building a batch DataFrame for one entity from batch ids."""

    def _make(batch_ids: List[str], entity_id: str = "E1") -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "batch_id": batch_id,
                    "entity_id": entity_id,
                    "status": "PROCESSED",
                    "upload_date": pd.Timestamp("2020-02-15"),
                    "upload_user": "clerk@example.gov",
                    "file_name": f"{batch_id}.csv",
                    "record_count": 3,
                    "total_amount": 1500.0,
                    "begin_txn_date": pd.Timestamp("2019-01-01"),
                    "end_txn_date": pd.Timestamp("2019-12-31"),
                }
                for batch_id in batch_ids
            ],
            columns=get_required_fields("batch"),
        )

    return _make


@pytest.fixture
def audit_inputs():
    """Entities, batches and transactions for a small end-to-end audit.

    - E1 "Alpha City": one batch with an invalid fund and a blank code
    - E2 "Beta Schools": school district with malformed codes (exempt)
    - E3 "Clean County": one clean batch
    - E4 "Dormant Town": no batches
    """
    entities = pd.DataFrame(
        [
            ("E1", "X1", "Alpha City", "City", "01-01"),
            ("E2", "X2", "Beta Schools", "School District or Charter School", "07-01"),
            ("E3", "X3", "Clean County", "County", "01-01"),
            ("E4", "X4", "Dormant Town", "Town", "01-01"),
        ],
        columns=get_required_fields("entity"),
    )
    batches = pd.DataFrame(
        [
            ("B1", "E1", "PROCESSED", "2020-01-10", "a@x.gov", "b1.csv", 2, 10.0, "2019-01-01", "2019-12-31"),
            ("B2", "E2", "DONTDELETE", "2020-01-11", "b@x.gov", "b2.csv", 1, 20.0, "2019-07-01", "2020-06-30"),
            ("B3", "E3", "PROCESSED", "2020-01-12", "c@x.gov", "b3.csv", 1, 30.0, "2019-01-01", "2019-12-31"),
        ],
        columns=get_required_fields("batch"),
    )
    transactions = pd.DataFrame(
        [
            ("B1", 1, "999-110000-51100000", pd.Timestamp("2019-03-01"), 2019),
            ("B1", 2, None, pd.Timestamp("2019-03-01"), 2019),
            ("B2", 1, "garbage", pd.Timestamp("2019-08-01"), 2020),
            ("B3", 1, "100-110000-51100000", pd.Timestamp("2019-03-01"), 2019),
        ],
        columns=get_required_fields("transaction"),
    )
    return entities, batches, transactions


@pytest.fixture
def run_date() -> dt.date:
    return dt.date(2024, 3, 1)
