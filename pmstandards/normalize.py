from __future__ import annotations

"""
Text normalization utilities used across the standards browser.

These helpers perform cell cleaning, slug construction for deep links,
whitespace tokenization for the keyword search index and the loose
topic keys used to resolve hand-typed topic names.  Keeping the rules
here ensures ingestion, search and the comparison views agree on how
text is treated.
"""

import re
from typing import List

import pandas as pd

from .config import SEARCH_MIN_TOKEN_LEN


# ---------------------------
# Basic helpers
# ---------------------------

def clean_cell(value) -> str:
    """
    Coerce a raw CSV cell into a trimmed string.  Missing values
    (``None``, NaN) become the empty string.
    """
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


# ---------------------------
# Deep links
# ---------------------------

_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_STRIP_RE = re.compile(r"[^\w-]")


def slugify(text: str) -> str:
    """
    Lowercase, turn whitespace runs into hyphens and drop every
    character that is neither a word character nor a hyphen.
    """
    s = (text or "").strip().lower()
    s = _SLUG_SPACE_RE.sub("-", s)
    return _SLUG_STRIP_RE.sub("", s)


def build_deep_link(standard: str, topic: str, page: str) -> str:
    """
    Anchor used to jump straight to a rendered excerpt, e.g.
    ``#pmbok-7-risk-management-page-42``.
    """
    return f"#{slugify(standard)}-{slugify(topic)}-page-{slugify(page)}"


# ---------------------------
# Tokenization
# ---------------------------

def whitespace_tokens(text: str) -> List[str]:
    """
    Lowercase and split on whitespace only.  Punctuation stays attached
    to its word; the search index relies on substring matching to
    cope with that.
    """
    if not text:
        return []
    return text.lower().split()


def index_tokens(text: str, min_len: int = SEARCH_MIN_TOKEN_LEN) -> List[str]:
    """Whitespace tokens long enough to be indexed or queried."""
    return [t for t in whitespace_tokens(text) if len(t) >= min_len]


# ---------------------------
# Topic keys
# ---------------------------

_TOPIC_KEY_RE = re.compile(r"[^a-z0-9]+")


def topic_key(text: str) -> str:
    """
    Loose comparison key for topics: lowercase, every run of
    non-alphanumerics becomes one space.  ``"10. Risk & Uncertainty"``
    becomes ``"10 risk uncertainty"``.
    """
    return _TOPIC_KEY_RE.sub(" ", str(text or "").lower()).strip()


def topic_match_key(text: str) -> str:
    """Key used by the case-insensitive exact topic filter."""
    return (text or "").strip().lower()


if __name__ == "__main__":
    sample = "  PMBOK 7 ", " 10. Risk & Uncertainty Management ", "42"
    print("DEEP LINK:", build_deep_link(*sample))
    print("TOPIC KEY:", topic_key(sample[1]))
    print("TOKENS:", index_tokens("Identify risks, and the RISK register."))
