import pandas as pd
import pytest

from pmstandards.errors import DataSourceNotFound, ParseFailure
from pmstandards.ingest import (
    aggregate_comparisons,
    ingest_standards,
    load_comparisons,
    load_snapshot,
    normalise_standards_df,
    write_snapshot,
)

from conftest import write_csv


def _frame(rows):
    return pd.DataFrame(rows, columns=["Topic", "Standards", "Page", "Excerpt"])


def test_forward_fill_of_blank_topics():
    df = _frame(
        [
            ["A", "PMBOK 7", "1", "one"],
            ["", "PRINCE2", "2", "two"],
            ["  ", "ISO 21500", "3", "three"],
            ["B", "ISO 21502", "4", "four"],
        ]
    )
    report = normalise_standards_df(df)
    assert [r.topic for r in report.records] == ["A", "A", "A", "B"]
    assert [r.id for r in report.records] == [1, 2, 3, 4]


def test_row_with_empty_excerpt_is_dropped():
    df = _frame(
        [
            ["A", "PMBOK 7", "1", "   "],
            ["A", "PRINCE2", "2", "kept"],
        ]
    )
    report = normalise_standards_df(df)
    assert [r.standard for r in report.records] == ["PRINCE2"]
    assert report.rejections[0].row_number == 1
    assert report.rejections[0].reason == "missing excerpt"


def test_leading_blank_topic_is_rejected():
    df = _frame([["", "PMBOK 7", "1", "orphan"], ["A", "PMBOK 7", "2", "ok"]])
    report = normalise_standards_df(df)
    assert report.accepted == 1
    assert report.rejections[0].reason == "missing topic"


def test_ingest_standards_from_csv(data_dir):
    report = ingest_standards(data_dir / "standards.csv")
    assert report.accepted == 5
    assert [(r.row_number, r.reason) for r in report.rejections] == [
        (5, "missing excerpt"),
        (6, "missing standard"),
    ]
    first = report.records[0]
    assert first.topic == "Risk Management"
    assert first.standard == "PMBOK 7"
    assert first.page == first.section_reference == "120"
    assert first.deep_link == "#pmbok-7-risk-management-page-120"
    assert report.records[2].page == "-"


def test_ingesting_same_csv_twice_is_identical(data_dir):
    first = ingest_standards(data_dir / "standards.csv")
    second = ingest_standards(data_dir / "standards.csv")
    assert [r.model_dump() for r in first.records] == [r.model_dump() for r in second.records]


def test_missing_file_raises_not_found(tmp_path):
    with pytest.raises(DataSourceNotFound):
        ingest_standards(tmp_path / "standards.csv")


def test_unterminated_quote_raises_parse_failure(tmp_path):
    path = write_csv(tmp_path / "standards.csv", 'Topic,Standards,Page,Excerpt\nA,PMBOK 7,1,"never closed\n')
    with pytest.raises(ParseFailure):
        ingest_standards(path)


def test_undecodable_bytes_raise_parse_failure(tmp_path):
    path = tmp_path / "standards.csv"
    path.write_bytes(b"Topic,Standards,Page,Excerpt\nA,PMBOK 7,1,\xff\xfe\xfa\n")
    with pytest.raises(ParseFailure):
        ingest_standards(path)


def test_missing_column_rejects_rows(tmp_path):
    path = write_csv(tmp_path / "standards.csv", "Topic,Standards,Page\nA,PMBOK 7,1\n")
    report = ingest_standards(path)
    assert report.accepted == 0
    assert report.rejections[0].reason == "missing excerpt"


def test_empty_file_yields_no_rows(tmp_path):
    path = write_csv(tmp_path / "standards.csv", "")
    report = ingest_standards(path)
    assert report.accepted == 0
    assert report.rejections == []


def test_comparisons_pass_through_and_aggregate(data_dir):
    rows = load_comparisons(data_dir / "comparisons.csv")
    assert len(rows) == 2
    assert rows[0]["Differences"] == "PRINCE2 uses themes"
    summary = aggregate_comparisons(rows)
    assert summary.similarities == "All address risk\n\nShared stakeholder focus"
    assert summary.differences == "PRINCE2 uses themes"
    assert summary.unique_prince2 == "Tolerances"
    assert summary.unique_iso21502 == "Governance"


def test_snapshot_round_trip(data_dir, tmp_path):
    report = ingest_standards(data_dir / "standards.csv")
    comparisons = load_comparisons(data_dir / "comparisons.csv")
    db = write_snapshot(report.records, comparisons, tmp_path / "out" / "standards.db")

    records, loaded_comparisons = load_snapshot(db)
    assert [r.model_dump() for r in records] == [r.model_dump() for r in report.records]
    assert loaded_comparisons == comparisons


def test_snapshot_rewrite_replaces_tables(data_dir, tmp_path):
    report = ingest_standards(data_dir / "standards.csv")
    db = tmp_path / "standards.db"
    write_snapshot(report.records, [], db)
    write_snapshot(report.records[:2], None, db)

    records, comparisons = load_snapshot(db)
    assert len(records) == 2
    assert comparisons is None


def test_missing_snapshot_raises_not_found(tmp_path):
    with pytest.raises(DataSourceNotFound):
        load_snapshot(tmp_path / "nope.db")


def test_excerpt_is_stored_trimmed():
    df = _frame([["A", " PMBOK 7 ", " 12 ", "  padded excerpt  "]])
    record = normalise_standards_df(df).records[0]
    assert record.excerpt == "padded excerpt"
    assert record.standard == "PMBOK 7"
    assert record.page == "12"


def test_snapshot_keeps_comparison_column_named_id(tmp_path):
    rows = [{"id": "7", "Similarities": "x"}, {"id": "3", "Similarities": "y"}]
    db = write_snapshot([], rows, tmp_path / "standards.db")

    records, comparisons = load_snapshot(db)
    assert records == []
    assert comparisons == rows


def test_snapshot_write_failure_raises_parse_failure(tmp_path):
    # a directory cannot be opened as a database file
    with pytest.raises(ParseFailure):
        write_snapshot([], [], tmp_path)
