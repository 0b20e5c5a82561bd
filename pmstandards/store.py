from __future__ import annotations

"""
In-memory data store for the standards browser.

A :class:`DataSet` is an immutable bundle of everything one load
produced: the validated excerpts, the raw comparison rows, their
aggregated summary and the search index built over the excerpts.
:class:`DataStore` owns the current data set and exposes the read
operations used by the API.

Re-ingestion builds a complete new data set first and only then
replaces the reference, so a request that already picked up the old
data set keeps a consistent view and a failed reload leaves the old
one in place.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from loguru import logger

from .comparison import build_comparison_view, dashboard_stats, resolve_topic
from .config import (
    BACKEND,
    COMPARISONS_CSV_PATH,
    SNAPSHOT_DB_PATH,
    STANDARDS_CSV_PATH,
    ComparisonSummary,
    ComparisonView,
    DashboardStats,
    RowRejection,
    SearchResult,
    StandardExcerpt,
)
from .errors import DataSourceNotFound
from .ingest import (
    ComparisonRow,
    aggregate_comparisons,
    ingest_standards,
    load_comparisons,
    load_snapshot,
)
from .normalize import topic_match_key
from .search_index import SearchIndex


@dataclass(frozen=True)
class DataSet:
    """
    One fully built generation of data.

    ``standards`` or ``comparisons`` is ``None`` when its backing source
    was absent at load time; queries against it raise
    :class:`DataSourceNotFound`.
    """

    standards: Optional[tuple] = None
    comparisons: Optional[tuple] = None
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)
    index: SearchIndex = field(default_factory=lambda: SearchIndex({}))
    rejections: tuple = ()
    standards_source: str = "standards"
    comparisons_source: str = "comparisons"

    @classmethod
    def from_records(
        cls,
        standards: Optional[Sequence[StandardExcerpt]],
        comparisons: Optional[Sequence[ComparisonRow]],
        rejections: Sequence[RowRejection] = (),
        standards_source: str = "standards",
        comparisons_source: str = "comparisons",
    ) -> "DataSet":
        std = tuple(standards) if standards is not None else None
        cmp_rows = tuple(comparisons) if comparisons is not None else None
        return cls(
            standards=std,
            comparisons=cmp_rows,
            summary=aggregate_comparisons(list(cmp_rows or ())),
            index=SearchIndex.build(std or ()),
            rejections=tuple(rejections),
            standards_source=standards_source,
            comparisons_source=comparisons_source,
        )

    def require_standards(self) -> tuple:
        if self.standards is None:
            raise DataSourceNotFound(self.standards_source)
        return self.standards

    def require_comparisons(self) -> tuple:
        if self.comparisons is None:
            raise DataSourceNotFound(self.comparisons_source)
        return self.comparisons


# ---------------------------
# Loaders
# ---------------------------

Loader = Callable[[], DataSet]


def csv_loader(
    standards_path: Path = STANDARDS_CSV_PATH,
    comparisons_path: Path = COMPARISONS_CSV_PATH,
) -> Loader:
    """
    Loader that re-parses both CSV files.

    A missing file leaves its side of the data set empty (``None``);
    a parse failure propagates and aborts the whole load.
    """
    standards_path = Path(standards_path)
    comparisons_path = Path(comparisons_path)

    def _load() -> DataSet:
        standards: Optional[List[StandardExcerpt]] = None
        rejections: List[RowRejection] = []
        comparisons: Optional[List[ComparisonRow]] = None
        try:
            report = ingest_standards(standards_path)
            standards, rejections = report.records, report.rejections
        except DataSourceNotFound:
            logger.warning("{} not found at {}", standards_path.name, standards_path.parent)
        try:
            comparisons = load_comparisons(comparisons_path)
        except DataSourceNotFound:
            logger.warning("{} not found at {}", comparisons_path.name, comparisons_path.parent)
        return DataSet.from_records(
            standards,
            comparisons,
            rejections,
            standards_source=standards_path.name,
            comparisons_source=comparisons_path.name,
        )

    return _load


def sqlite_loader(db_path: Path = SNAPSHOT_DB_PATH) -> Loader:
    """Loader that reads a snapshot written by :func:`ingest.write_snapshot`."""
    db_path = Path(db_path)

    def _load() -> DataSet:
        try:
            standards, comparisons = load_snapshot(db_path)
        except DataSourceNotFound:
            logger.warning("Snapshot {} not found", db_path)
            standards, comparisons = None, None
        return DataSet.from_records(
            standards,
            comparisons,
            standards_source=f"{db_path.name}:standards",
            comparisons_source=f"{db_path.name}:comparisons",
        )

    return _load


def default_loader() -> Loader:
    if BACKEND == "sqlite":
        return sqlite_loader()
    return csv_loader()


# ---------------------------
# Store
# ---------------------------

class DataStore:
    """
    Holds the current :class:`DataSet` and answers queries against it.

    Each operation reads the current data set reference once, so it
    works on a single generation even if a reload lands meanwhile.
    """

    def __init__(self, loader: Optional[Loader] = None, data: Optional[DataSet] = None):
        self._loader = loader or default_loader()
        self._lock = threading.Lock()
        self._data = data if data is not None else DataSet()

    @property
    def data(self) -> DataSet:
        return self._data

    def reload(self) -> DataSet:
        """
        Re-ingest from the loader and swap the result in.

        If the loader raises, the previous data set stays current and
        the exception propagates to the caller.
        """
        with self._lock:
            fresh = self._loader()
            self._data = fresh
        logger.info(
            "Data set swapped in: {} standards, {} comparisons, {} rows skipped",
            "missing" if fresh.standards is None else len(fresh.standards),
            "missing" if fresh.comparisons is None else len(fresh.comparisons),
            len(fresh.rejections),
        )
        return fresh

    # -- queries ---------------------------------------------------------

    def list_standards(self) -> List[StandardExcerpt]:
        return list(self._data.require_standards())

    def list_comparisons(self) -> List[ComparisonRow]:
        return [dict(r) for r in self._data.require_comparisons()]

    def comparison_summary(self) -> ComparisonSummary:
        data = self._data
        data.require_comparisons()
        return data.summary

    def comparisons_by_topic(self, topic: str) -> List[StandardExcerpt]:
        """Excerpts whose topic equals ``topic``, ignoring case and edge whitespace."""
        key = topic_match_key(topic)
        return [r for r in self._data.require_standards() if topic_match_key(r.topic) == key]

    def distinct_topics(self) -> List[str]:
        return sorted({r.topic for r in self._data.require_standards()})

    def search(self, query: str) -> List[SearchResult]:
        data = self._data
        data.require_standards()
        return data.index.search(query)

    def comparison_view(self, topic: str) -> ComparisonView:
        return build_comparison_view(topic.strip(), self.comparisons_by_topic(topic))

    def dashboard(self) -> DashboardStats:
        data = self._data
        return dashboard_stats(data.require_standards(), data.comparisons or ())

    def resolve_topic(self, keyword: str) -> str:
        return resolve_topic(keyword, self.distinct_topics())
