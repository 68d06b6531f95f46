"""Unit tests for the check registry and audit runner."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from ucoa_compliance.codeset import CodesetError
from ucoa_compliance.validation import run_audit
from ucoa_compliance.validation.models import ComplianceReport
from ucoa_compliance.validation.registry import ALL_CHECKS


def test_all_checks_registered():
    assert [c.check_id for c in ALL_CHECKS] == ["account_code", "invalid_type", "posting_date"]


def test_run_audit_filters_checks_by_government_type(audit_inputs, codeset):
    """
    Checks that do not apply to a government type are never run for it.
    `ALL_CHECKS` is a list of INSTANCES, so we patch it with mock INSTANCES.
    """
    entities, batches, transactions = audit_inputs
    entities = entities[entities["entity_id"] == "E2"]

    mock_instances = []
    for original_instance in ALL_CHECKS:
        mock_instance = MagicMock(spec=original_instance)
        mock_instance.check_id = original_instance.check_id
        mock_instance.validate.return_value = {}
        applies = original_instance.applies_to_government_type("School District or Charter School")
        mock_instance.applies_to_government_type.return_value = applies
        mock_instances.append(mock_instance)

    with patch("ucoa_compliance.validation.registry.ALL_CHECKS", mock_instances):
        run_audit(entities, batches, transactions, codeset)

    for mock_instance in mock_instances:
        if mock_instance.applies_to_government_type.return_value:
            mock_instance.validate.assert_called_once()
        else:
            mock_instance.validate.assert_not_called()


def test_run_audit_end_to_end(audit_inputs, codeset):
    entities, batches, transactions = audit_inputs

    report = run_audit(entities, batches, transactions, codeset)

    assert isinstance(report, ComplianceReport)
    assert report.entity_count == 4
    assert report.batch_count == 3
    assert report.errors == []
    assert report.detail_table["batch_id"].tolist() == ["B1"]
    assert report.summary_table["entity_name"].tolist() == ["Alpha City"]
    assert report.listings["invalid_fund"] == {"Alpha City": ["999"]}
    # Every entity appears in the master table, Dormant Town as a placeholder
    assert sorted(report.all_entities_table["entity_name"]) == [
        "Alpha City",
        "Beta Schools",
        "Clean County",
        "Dormant Town",
    ]


def test_run_audit_school_district_is_exempt(audit_inputs, codeset):
    """Beta Schools uploads malformed codes but is not flagged for them."""
    entities, batches, transactions = audit_inputs

    report = run_audit(entities, batches, transactions, codeset)

    assert "Beta Schools" not in report.listings["incorrect_format"]


def test_run_audit_records_failing_entity_and_continues(audit_inputs, codeset):
    entities, batches, transactions = audit_inputs
    entities = entities.copy()
    entities.loc[entities["entity_id"] == "E3", "fiscal_year_start"] = "99-99"

    report = run_audit(entities, batches, transactions, codeset)

    assert report.entity_count == 3
    assert len(report.errors) == 1
    assert report.errors[0].startswith("Clean County:")


def test_run_audit_keeps_entity_with_out_of_range_fiscal_year(audit_inputs, codeset):
    """A mistyped fiscal year is a date violation, not an entity failure."""
    entities, batches, transactions = audit_inputs
    extra = pd.DataFrame(
        [
            ("B1", 1, "100-110000-51100000", pd.Timestamp("2019-03-01"), 20190),
            ("B3", 1, "100-110000-51100000", pd.Timestamp("2019-03-01"), 0),
        ],
        columns=transactions.columns,
    )
    transactions = pd.concat([transactions, extra], ignore_index=True)

    report = run_audit(entities, batches, transactions, codeset)

    assert report.errors == []
    assert report.entity_count == 4
    assert report.summary_table["entity_name"].tolist() == ["Alpha City"]
    detail = report.detail_table.set_index("batch_id")
    assert detail.loc["B1", "posting_date_violations"] == "2019-03-01"
    assert detail.loc["B1", "invalid_fund"] == "999"
    assert detail.loc["B3", "posting_date_violations"] == "2019-03-01"


def test_run_audit_requires_codeset(audit_inputs):
    entities, batches, transactions = audit_inputs
    with pytest.raises(CodesetError):
        run_audit(entities, batches, transactions, None)


@pytest.mark.parametrize(
    "index,column,kind",
    [(0, "fiscal_year_start", "Entity"), (1, "status", "Batch"), (2, "account_code", "Transaction")],
)
def test_run_audit_missing_columns(audit_inputs, codeset, index, column, kind):
    tables = list(audit_inputs)
    tables[index] = tables[index].drop(columns=column)

    with pytest.raises(ValueError, match=f"{kind} table missing columns: {column}"):
        run_audit(*tables, codeset)
