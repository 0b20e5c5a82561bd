import sys

import pytest
from loguru import logger

from pmstandards import cli


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "LOG_DIR", tmp_path / "logs")
    yield tmp_path / "logs"
    logger.remove()
    logger.add(sys.stderr)


def _sources(data_dir):
    return [
        "--standards", str(data_dir / "standards.csv"),
        "--comparisons", str(data_dir / "comparisons.csv"),
    ]


def test_ingest_prints_report(data_dir, capsys):
    assert cli.main(_sources(data_dir) + ["ingest"]) == 0
    out = capsys.readouterr().out
    assert "Accepted 5 rows from standards.csv" in out
    assert "skipped row 5: missing excerpt" in out
    assert "skipped row 6: missing standard" in out


def test_search_prints_ranked_hits(data_dir, capsys):
    assert cli.main(_sources(data_dir) + ["search", "stakeholders"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "[1] PMBOK 7 - Stakeholder Engagement (page 30) #pmbok-7-stakeholder-engagement-page-30"
    ]


def test_search_without_hits(data_dir, capsys):
    assert cli.main(_sources(data_dir) + ["search", "procurement"]) == 0
    assert capsys.readouterr().out.strip() == "No results found"


def test_snapshot_then_topics_from_sqlite(data_dir, tmp_path, capsys):
    db = str(tmp_path / "standards.db")
    assert cli.main(_sources(data_dir) + ["--db", db, "snapshot"]) == 0
    capsys.readouterr()

    assert cli.main(["--db", db, "--backend", "sqlite", "topics"]) == 0
    assert capsys.readouterr().out.splitlines() == ["Quality", "Risk Management", "Stakeholder Engagement"]


def test_missing_source_exits_with_error(tmp_path, log_dir):
    assert cli.main(["--standards", str(tmp_path / "absent.csv"), "ingest"]) == 1
    assert (log_dir / "pmstandards.log").exists()
