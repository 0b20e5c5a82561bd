# pmstandards/cli.py
"""
Command-line runner for the PM standards browser.

- ingest: parse standards.csv and print the accepted/skipped report
- snapshot: ingest both CSV files and write the SQLite snapshot
- search / topics: query a freshly loaded data store without the API
- serve: run the FastAPI app with uvicorn
"""

from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from pmstandards.config import (
    COMPARISONS_CSV_PATH,
    LOG_DIR,
    SNAPSHOT_DB_PATH,
    STANDARDS_CSV_PATH,
)
from pmstandards.errors import StandardsError
from pmstandards.ingest import ingest_standards, load_comparisons, write_snapshot
from pmstandards.store import DataStore, csv_loader, sqlite_loader


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.add(LOG_DIR / "pmstandards.log", level="DEBUG", rotation="5 MB", retention=5)


def _build_store(args: argparse.Namespace) -> DataStore:
    if args.backend == "sqlite":
        return DataStore(sqlite_loader(Path(args.db)))
    return DataStore(csv_loader(Path(args.standards), Path(args.comparisons)))


def _store_from_args(args: argparse.Namespace) -> DataStore:
    store = _build_store(args)
    store.reload()
    return store


def cmd_ingest(args: argparse.Namespace) -> int:
    report = ingest_standards(Path(args.standards))
    print(f"Accepted {report.accepted} rows from {report.source}")
    for rej in report.rejections:
        print(f"  skipped row {rej.row_number}: {rej.reason}")
    return 0


def cmd_snapshot(args: argparse.Namespace) -> int:
    report = ingest_standards(Path(args.standards))
    comparisons = load_comparisons(Path(args.comparisons))
    out = write_snapshot(report.records, comparisons, Path(args.db))
    print(f"Wrote {report.accepted} standards and {len(comparisons)} comparisons to {out}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    store = _store_from_args(args)
    results = store.search(args.query)
    if not results:
        print("No results found")
        return 0
    for hit in results:
        print(f"[{hit.relevance_score}] {hit.standard} - {hit.topic} (page {hit.page or '-'}) {hit.deep_link}")
    return 0


def cmd_topics(args: argparse.Namespace) -> int:
    store = _store_from_args(args)
    for topic in store.distinct_topics():
        print(topic)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from pmstandards.api import create_app

    uvicorn.run(create_app(_build_store(args)), host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="pmstandards")
    ap.add_argument("--standards", default=str(STANDARDS_CSV_PATH), help="standards CSV file")
    ap.add_argument("--comparisons", default=str(COMPARISONS_CSV_PATH), help="comparisons CSV file")
    ap.add_argument("--db", default=str(SNAPSHOT_DB_PATH), help="SQLite snapshot path")
    ap.add_argument("--backend", choices=["csv", "sqlite"], default="csv")
    ap.add_argument("-v", "--verbose", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("ingest", help="validate standards.csv and report skipped rows").set_defaults(func=cmd_ingest)
    sub.add_parser("snapshot", help="write the SQLite snapshot").set_defaults(func=cmd_snapshot)

    sp = sub.add_parser("search", help="keyword search over excerpts")
    sp.add_argument("query")
    sp.set_defaults(func=cmd_search)

    sub.add_parser("topics", help="list distinct topics").set_defaults(func=cmd_topics)

    sv = sub.add_parser("serve", help="run the JSON API")
    sv.add_argument("--host", default="127.0.0.1")
    sv.add_argument("--port", type=int, default=3000)
    sv.set_defaults(func=cmd_serve)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        return args.func(args)
    except StandardsError as e:
        logger.error("{}", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
