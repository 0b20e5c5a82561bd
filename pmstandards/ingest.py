from __future__ import annotations

"""
Ingestion of standards excerpts and comparison tables.

This module reads the spreadsheet exports (``standards.csv`` and
``comparisons.csv``), forward-fills the topic column that spreadsheets
leave blank under merged cells, validates every row into a
:class:`~pmstandards.config.StandardExcerpt` and records why rejected
rows were dropped.  Comparison rows are passed through untouched and
additionally folded into a :class:`~pmstandards.config.ComparisonSummary`.

The same records can be materialised into a SQLite snapshot and read
back later, so the API can serve from either the CSV files or the
database.
"""

import sqlite3
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd
from loguru import logger

from .config import (
    COL_EXCERPT,
    COL_PAGE,
    COL_STANDARD,
    COL_TOPIC,
    COMPARISON_SUMMARY_COLUMNS,
    REQUIRED_STANDARD_COLUMNS,
    SUMMARY_JOINER,
    ComparisonSummary,
    RowRejection,
    StandardExcerpt,
)
from .errors import DataSourceNotFound, ParseFailure
from .normalize import build_deep_link, clean_cell

ComparisonRow = Dict[str, str]

STANDARDS_TABLE = "standards"
COMPARISONS_TABLE = "comparisons"
_STAGING_SUFFIX = "__staging"
# reserved column holding the row order of the free-form comparisons table
_ROW_COLUMN = "__row"

STANDARD_FIELDS = ["id", "topic", "standard", "page", "excerpt", "deep_link", "section_reference"]


@dataclass
class IngestReport:
    """Outcome of one standards ingestion pass."""

    source: str
    records: List[StandardExcerpt] = field(default_factory=list)
    rejections: List[RowRejection] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return len(self.records)


# ---------------------------
# Raw CSV reading
# ---------------------------

def read_csv_rows(path: Path) -> pd.DataFrame:
    """
    Read a CSV file with every cell as a string.

    Blank cells come back as ``""`` rather than NaN so that the
    validation rules only ever deal with text.  A missing file raises
    :class:`DataSourceNotFound`; a malformed or undecodable stream
    raises :class:`ParseFailure`.  A completely empty file yields an
    empty frame.
    """
    path = Path(path)
    if not path.exists():
        raise DataSourceNotFound(path.name)
    logger.info("Reading rows from {}", path)
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except pd.errors.EmptyDataError:
        logger.warning("{} is empty; treating it as zero rows", path.name)
        return pd.DataFrame()
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ParseFailure(path.name, str(e)) from e
    except OSError as e:
        raise ParseFailure(path.name, str(e)) from e
    logger.info("Read {} raw rows from {}", len(df), path.name)
    return df


# ---------------------------
# Standards
# ---------------------------

def _rejection_reason(topic: str, standard: str, excerpt: str) -> Optional[str]:
    if not topic:
        return "missing topic"
    if not standard:
        return "missing standard"
    if not excerpt:
        return "missing excerpt"
    return None


def normalise_standards_df(df_raw: pd.DataFrame, source: str = "standards.csv") -> IngestReport:
    """
    Main normalisation pipeline for standards excerpts.

    Input: raw frame with the ``Topic``, ``Standards``, ``Page`` and
    ``Excerpt`` headers (case-sensitive).
    Output: an :class:`IngestReport` whose records keep input order.

    A blank topic inherits the last non-blank topic seen above it.  A
    row is accepted when topic, standard and excerpt are all non-empty
    after trimming; page is optional.
    """
    report = IngestReport(source=source)

    missing = [c for c in REQUIRED_STANDARD_COLUMNS if c not in df_raw.columns]
    if missing and len(df_raw.columns):
        logger.warning("{} is missing required columns: {}", source, missing)

    last_topic = ""
    for row_number, row in enumerate(df_raw.to_dict(orient="records"), 1):
        raw_topic = clean_cell(row.get(COL_TOPIC))
        if raw_topic:
            last_topic = raw_topic
        topic = raw_topic or last_topic

        standard = clean_cell(row.get(COL_STANDARD))
        page = clean_cell(row.get(COL_PAGE))
        excerpt = clean_cell(row.get(COL_EXCERPT))

        reason = _rejection_reason(topic, standard, excerpt)
        if reason:
            logger.debug("Skipping {} row {}: {}", source, row_number, reason)
            report.rejections.append(RowRejection(row_number=row_number, reason=reason))
            continue

        report.records.append(
            StandardExcerpt(
                id=len(report.records) + 1,
                topic=topic,
                standard=standard,
                page=page,
                excerpt=excerpt,
                deep_link=build_deep_link(standard, topic, page),
                section_reference=page,
            )
        )

    logger.info(
        "Standards ingestion complete for {}: {} accepted, {} skipped",
        source,
        report.accepted,
        len(report.rejections),
    )
    return report


def ingest_standards(path: Path) -> IngestReport:
    """End-to-end: read ``standards.csv`` and validate its rows."""
    path = Path(path)
    return normalise_standards_df(read_csv_rows(path), source=path.name)


# ---------------------------
# Comparisons
# ---------------------------

def load_comparisons(path: Path) -> List[ComparisonRow]:
    """Return comparison rows exactly as they appear in the CSV."""
    df = read_csv_rows(Path(path))
    rows = [{str(k): clean_cell(v) for k, v in r.items()} for r in df.to_dict(orient="records")]
    logger.info("Loaded {} comparison rows", len(rows))
    return rows


def aggregate_comparisons(rows: List[ComparisonRow]) -> ComparisonSummary:
    """
    Fold every comparison row into a single summary.

    For each summary field the non-blank cells of its source column
    are trimmed and joined with a blank line, in row order.
    """
    parts: Dict[str, List[str]] = {name: [] for name in COMPARISON_SUMMARY_COLUMNS}
    for row in rows:
        for name, column in COMPARISON_SUMMARY_COLUMNS.items():
            value = clean_cell(row.get(column))
            if value:
                parts[name].append(value)
    return ComparisonSummary(**{name: SUMMARY_JOINER.join(vals) for name, vals in parts.items()})


# ---------------------------
# SQLite snapshot
# ---------------------------

def _swap_in(conn: sqlite3.Connection, table: str) -> None:
    staging = table + _STAGING_SUFFIX
    try:
        conn.execute("BEGIN")
        conn.execute(f'DROP TABLE IF EXISTS "{table}"')
        conn.execute(f'ALTER TABLE "{staging}" RENAME TO "{table}"')
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise


def write_snapshot(
    records: Optional[List[StandardExcerpt]],
    comparisons: Optional[List[ComparisonRow]],
    db_path: Path,
) -> Path:
    """
    Materialise standards and comparisons into SQLite.

    Each table is first written under a staging name and then renamed
    over the live table inside one transaction, so a reader never sees
    a half-written table.  ``None`` for a source drops its table.
    Any SQLite failure is raised as :class:`ParseFailure`.
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Writing snapshot to {}", db_path)

    frames: Dict[str, Optional[pd.DataFrame]] = {
        STANDARDS_TABLE: None,
        COMPARISONS_TABLE: None,
    }
    if records is not None:
        frames[STANDARDS_TABLE] = pd.DataFrame(
            [r.model_dump() for r in records], columns=STANDARD_FIELDS
        )
    if comparisons is not None:
        frames[COMPARISONS_TABLE] = pd.DataFrame(
            comparisons, index=pd.RangeIndex(1, len(comparisons) + 1, name=_ROW_COLUMN)
        )

    try:
        with closing(sqlite3.connect(db_path)) as conn:
            for table, frame in frames.items():
                if frame is None:
                    conn.execute(f'DROP TABLE IF EXISTS "{table}"')
                    conn.commit()
                    continue
                staging = table + _STAGING_SUFFIX
                frame.to_sql(staging, conn, if_exists="replace", index=table == COMPARISONS_TABLE)
                _swap_in(conn, table)
                logger.info("Snapshot table {} written with {} rows", table, len(frame))
    except (sqlite3.Error, pd.errors.DatabaseError) as e:
        raise ParseFailure(db_path.name, str(e)) from e
    return db_path


def _table_exists(conn: sqlite3.Connection, table: str) -> bool:
    cur = conn.execute("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,))
    return cur.fetchone() is not None


def load_snapshot(
    db_path: Path,
) -> Tuple[Optional[List[StandardExcerpt]], Optional[List[ComparisonRow]]]:
    """
    Read standards and comparisons back from a SQLite snapshot.

    A missing database file raises :class:`DataSourceNotFound`; a
    missing table comes back as ``None`` for that source.
    """
    db_path = Path(db_path)
    if not db_path.exists():
        raise DataSourceNotFound(db_path.name)
    logger.info("Loading snapshot from {}", db_path)

    records: Optional[List[StandardExcerpt]] = None
    comparisons: Optional[List[ComparisonRow]] = None
    try:
        with closing(sqlite3.connect(db_path)) as conn:
            if _table_exists(conn, STANDARDS_TABLE):
                df = pd.read_sql_query(f'SELECT * FROM "{STANDARDS_TABLE}" ORDER BY id', conn)
                records = [
                    StandardExcerpt(
                        id=int(r["id"]),
                        **{k: clean_cell(r[k]) for k in STANDARD_FIELDS if k != "id"},
                    )
                    for r in df.to_dict(orient="records")
                ]
            if _table_exists(conn, COMPARISONS_TABLE):
                df = pd.read_sql_query(
                    f'SELECT * FROM "{COMPARISONS_TABLE}" ORDER BY "{_ROW_COLUMN}"', conn
                )
                df = df.drop(columns=[_ROW_COLUMN])
                comparisons = [
                    {str(k): clean_cell(v) for k, v in r.items()}
                    for r in df.to_dict(orient="records")
                ]
    except (sqlite3.DatabaseError, pd.errors.DatabaseError) as e:
        raise ParseFailure(db_path.name, str(e)) from e

    logger.info(
        "Loaded snapshot: {} standards, {} comparisons",
        "missing" if records is None else len(records),
        "missing" if comparisons is None else len(comparisons),
    )
    return records, comparisons


if __name__ == "__main__":
    # python -m pmstandards.ingest
    from .config import COMPARISONS_CSV_PATH, SNAPSHOT_DB_PATH, STANDARDS_CSV_PATH

    rep = ingest_standards(STANDARDS_CSV_PATH)
    write_snapshot(rep.records, load_comparisons(COMPARISONS_CSV_PATH), SNAPSHOT_DB_PATH)
