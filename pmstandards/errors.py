from __future__ import annotations

"""
Exceptions raised while loading or querying the standards data.

Rows that fail validation are not errors: ingestion records them as
:class:`~pmstandards.config.RowRejection` entries and keeps going.
"""


class StandardsError(Exception):
    """Base class for data-store failures surfaced to callers."""


class DataSourceNotFound(StandardsError, FileNotFoundError):
    """The backing CSV file or snapshot table does not exist."""

    def __init__(self, source: str) -> None:
        super().__init__(f"{source} not found")
        self.source = source


class ParseFailure(StandardsError, OSError):
    """The backing source exists but could not be read as a row stream."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Failed to read {source}: {reason}")
        self.source = source
        self.reason = reason
