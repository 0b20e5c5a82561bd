"""
Top-level package for the project-management standards browser.

This package contains modules for ingesting standards excerpts and
comparison tables from CSV, holding them in a swappable in-memory data
store (optionally snapshotted to SQLite), building the keyword search
index, assembling topic comparison views and serving everything through
a small JSON API.  There are no side-effects on import and each module
can be executed as a script for ad-hoc debugging.
"""
