"""Pytest tests for compliance report assembly and rendering."""

import datetime as dt
import json

import pandas as pd
import pytest

from ucoa_compliance.validation.aggregator import summarize_entity
from ucoa_compliance.validation.models import (
    BatchRow,
    CodeViolation,
    ComplianceReport,
    EntityAggregate,
    EntitySummary,
    ViolationRecord,
)
from ucoa_compliance.validation.report import (
    BATCH_ROW_COLUMNS,
    SUMMARY_COLUMNS,
    assemble_report,
    build_listings,
)


def _aggregate(entity_id, name, records):
    fields = {
        "entity_id": entity_id,
        "external_id": f"X-{entity_id}",
        "entity_name": name,
        "government_type": "City",
    }
    if records:
        rows = tuple(BatchRow(**fields, batch_id=r.batch_id, record=r) for r in records)
    else:
        rows = (BatchRow(**fields),)
    return EntityAggregate(batch_rows=rows, summary=summarize_entity(fields, rows))


@pytest.fixture
def mock_aggregates():
    """Three entities: two violating (one with two batches) and one without batches."""
    return [
        _aggregate(
            "E2",
            "Beta City",
            [
                ViolationRecord(
                    batch_id="B20",
                    code=CodeViolation(invalid_fund=("999",)),
                    fiscal_years=(2020,),
                    transaction_types=("1",),
                )
            ],
        ),
        _aggregate(
            "E1",
            "Alpha City",
            [
                ViolationRecord(
                    batch_id="B11",
                    code=CodeViolation(incorrect_format=("abc",), invalid_funct=("999999",)),
                    fiscal_years=(2021,),
                    transaction_types=("1", "2"),
                ),
                ViolationRecord(
                    batch_id="B10",
                    code=CodeViolation(any_blank_or_na=True),
                    date_violations=(dt.date(2015, 5, 1),),
                    fiscal_years=(2019, 2020),
                    transaction_types=("2", "9"),
                ),
                ViolationRecord(batch_id="B12", fiscal_years=(2019,), transaction_types=("1",)),
            ],
        ),
        _aggregate("E3", "Gamma Town", []),
    ]


@pytest.fixture
def mock_report(mock_aggregates):
    return assemble_report(mock_aggregates, errors=["Broken Town: Invalid fiscal year start"])


def test_detail_table_holds_violating_batches_sorted(mock_report):
    """Detail rows are sorted by entity name, then earliest fiscal year."""
    detail = mock_report.detail_table

    assert list(detail.columns) == BATCH_ROW_COLUMNS
    assert detail["batch_id"].tolist() == ["B10", "B11", "B20"]
    assert detail["fiscal_year"].tolist() == ["2019, 2020", "2021", "2020"]


def test_detail_rows_render_multi_valued_fields(mock_report):
    row = mock_report.detail_table.iloc[0].to_dict()

    assert bool(row["any_blank_or_na"]) is True
    assert row["transaction_types"] == "REV, OTHER"
    assert row["posting_date_violations"] == "2015-05-01"
    assert pd.isna(row["invalid_fund"])


def test_summary_table_holds_violating_entities(mock_report):
    summary = mock_report.summary_table

    assert list(summary.columns) == SUMMARY_COLUMNS
    assert summary["entity_name"].tolist() == ["Beta City", "Alpha City"]
    alpha = summary.set_index("entity_name").loc["Alpha City"]
    assert bool(alpha["any_blank_or_na"]) is True
    assert alpha["number_invalid_funct"] == 1
    assert alpha["number_batches"] == 3
    assert alpha["number_date_violations"] == 1


def test_all_entities_table_includes_clean_batches_and_placeholders(mock_report):
    table = mock_report.all_entities_table

    assert len(table) == 5
    placeholder = table[table["entity_name"] == "Gamma Town"].iloc[0]
    assert pd.isna(placeholder["batch_id"])
    assert mock_report.entity_count == 3
    assert mock_report.batch_count == 4


def test_listings_are_keyed_by_entity_name(mock_report):
    listings = mock_report.listings

    assert listings["invalid_fund"] == {"Beta City": ["999"]}
    assert listings["invalid_funct"] == {"Alpha City": ["999999"]}
    assert listings["incorrect_format"] == {"Alpha City": ["abc"]}
    assert listings["invalid_account_exp"] == {}


def test_listings_merge_entities_sharing_a_name():
    first = _aggregate("E1", "Springfield", [ViolationRecord("B1", CodeViolation(invalid_fund=("300",)))])
    second = _aggregate("E2", "Springfield", [ViolationRecord("B2", CodeViolation(invalid_fund=("250", "300")))])

    listings = build_listings([first.summary, second.summary])

    assert listings["invalid_fund"] == {"Springfield": ["250", "300"]}


def test_listings_from_a_single_summary():
    summary = EntitySummary("E1", "X-E1", "Town of Example", "Town", invalid_fund=("999",))

    assert build_listings([summary])["invalid_fund"] == {"Town of Example": ["999"]}


def test_summary_text_counts_evaluated_entities_and_batches():
    empty = pd.DataFrame()
    report = ComplianceReport(empty, empty, empty, {}, entity_count=12, batch_count=140)

    assert report.summary().splitlines() == [
        "Audit Summary:",
        "  Entities: 12 evaluated (0 with violations)",
        "  Batches: 140 evaluated (0 with violations)",
    ]


def test_empty_report_has_all_columns():
    report = assemble_report([])

    assert report.detail_table.empty
    assert list(report.summary_table.columns) == SUMMARY_COLUMNS
    assert report.has_violations() is False


def test_get_category_counts(mock_report):
    counts = mock_report.get_category_counts()

    assert counts["any_blank_or_na"] == 1
    assert counts["invalid_fund"] == 1
    assert counts["incorrect_format"] == 1
    assert counts["posting_date_violations"] == 1
    assert counts["invalid_type"] == 0


def test_to_markdown_output(mock_report):
    """Test the Markdown report content."""
    markdown = mock_report.to_markdown()

    assert "# UCoA Compliance Report" in markdown
    assert "- **Entities evaluated:** 3" in markdown
    assert "- **Batches with violations:** 3" in markdown
    assert "## invalid_fund" in markdown
    assert "- **Beta City** (1): 999" in markdown
    assert "## Failed Entities" in markdown
    assert "- Broken Town: Invalid fiscal year start" in markdown
    assert "No Violations Found" not in markdown


def test_to_markdown_clean(mock_aggregates):
    report = assemble_report([mock_aggregates[2]])
    markdown = report.to_markdown()

    assert "## ✅ No Violations Found" in markdown
    assert "## Failed Entities" not in markdown


def test_to_json_output(mock_report):
    """Test the JSON report structure."""
    data = json.loads(mock_report.to_json())

    assert "generated_at" in data["metadata"]
    assert data["summary"]["entities"] == 3
    assert data["summary"]["entities_with_violations"] == 2
    assert data["summary"]["batches_with_violations"] == 3
    assert data["listings"]["invalid_fund"] == {"Beta City": ["999"]}
    assert data["errors"] == ["Broken Town: Invalid fiscal year start"]
    assert {e["entity_name"] for e in data["entities"]} == {"Alpha City", "Beta City"}


def test_to_console_summary_output(mock_report):
    output = mock_report.to_console_summary()

    assert "Audit Summary:" in output
    assert "❌ Beta City: invalid_fund=1" in output
    assert "❌ Alpha City: blank/NA codes; invalid_funct=1" in output
    assert "⚠️ Broken Town: Invalid fiscal year start" in output


def test_to_console_summary_clean(mock_aggregates):
    output = assemble_report([mock_aggregates[2]]).to_console_summary()
    assert "✅ No compliance violations found!" in output
