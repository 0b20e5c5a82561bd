from __future__ import annotations

"""
View models for the comparison and dashboard pages.

This module turns topic-filtered excerpts into the structure the
comparison page renders: one card per known standard (with a
placeholder when the standard says nothing about the topic), links
into the PDF viewer, aggregate counts and the similarity / difference
/ unique-aspect texts.  It also computes the dashboard counters and
resolves loosely typed topic names.  All presentation aggregation is
kept here so ``api.py`` stays thin.
"""

from collections import Counter
from typing import Dict, Iterable, List, Sequence
from urllib.parse import quote

from loguru import logger

from .config import (
    BOOK_TITLES,
    BOOK_URLS,
    KNOWN_STANDARDS,
    PDF_VIEWER_PAGE,
    STANDARD_BADGES,
    UNIQUE_PREVIEW_CHARS,
    ComparisonCard,
    ComparisonStats,
    ComparisonView,
    DashboardStats,
    ExcerptBlock,
    StandardExcerpt,
    UniqueAspect,
)
from .normalize import topic_key


def book_link(standard: str, page: str) -> str:
    """
    Link into the PDF viewer at ``page`` of the standard's book, or
    ``"#"`` when no book is known for the standard.
    """
    url = BOOK_URLS.get(standard)
    title = BOOK_TITLES.get(standard)
    if not url or not title:
        return "#"
    return f"{PDF_VIEWER_PAGE}?file={quote(url, safe='')}&title={quote(title, safe='')}&page={page}"


def _to_block(row: StandardExcerpt) -> ExcerptBlock:
    if row.has_page_reference():
        return ExcerptBlock(
            excerpt=row.excerpt,
            deep_link=row.deep_link,
            page=row.page,
            page_link=book_link(row.standard, row.page),
        )
    return ExcerptBlock(excerpt=row.excerpt, deep_link=row.deep_link)


def build_cards(rows: Sequence[StandardExcerpt]) -> List[ComparisonCard]:
    """One card per known standard, in display order."""
    cards: List[ComparisonCard] = []
    for standard in KNOWN_STANDARDS:
        items = [r for r in rows if r.standard == standard]
        badge = STANDARD_BADGES.get(standard, "")
        if not items:
            cards.append(
                ComparisonCard(
                    standard=standard,
                    badge=badge,
                    has_data=False,
                    placeholder=f"No content available for this topic in {standard}",
                )
            )
            continue
        cards.append(
            ComparisonCard(
                standard=standard,
                badge=badge,
                has_data=True,
                blocks=[_to_block(r) for r in items],
            )
        )
    return cards


def comparison_stats(rows: Sequence[StandardExcerpt]) -> ComparisonStats:
    return ComparisonStats(
        standards_with_data=len({r.standard for r in rows}),
        total_excerpts=len(rows),
        pages_referenced=sum(1 for r in rows if r.has_page_reference()),
    )


def unique_aspects(topic: str, rows: Sequence[StandardExcerpt]) -> List[UniqueAspect]:
    out: List[UniqueAspect] = []
    for standard in KNOWN_STANDARDS:
        first = next((r for r in rows if r.standard == standard), None)
        if first is None:
            text = f"No specific content for {topic} in this standard."
        else:
            text = f"Unique perspective: {first.excerpt[:UNIQUE_PREVIEW_CHARS]}..."
        out.append(UniqueAspect(standard=standard, text=text))
    return out


def build_comparison_view(topic: str, rows: Sequence[StandardExcerpt]) -> ComparisonView:
    """
    Assemble the comparison page for ``topic``.

    ``rows`` are the excerpts already filtered to the topic.
    """
    lowered = topic.lower()
    similarities = (
        f"All standards recognize the importance of {lowered} in project management, "
        "though they approach it with different levels of detail and emphasis."
    )
    differences = (
        f"The standards differ in their approach to {lowered}, "
        "with varying levels of prescription and methodology."
    )

    view = ComparisonView(
        topic=topic,
        cards=build_cards(rows),
        stats=comparison_stats(rows),
        similarities=similarities,
        differences=differences,
        unique_aspects=unique_aspects(topic, rows),
    )
    logger.info(
        "Comparison view for {!r}: {} excerpts across {} standards",
        topic,
        view.stats.total_excerpts,
        view.stats.standards_with_data,
    )
    return view


# ---------------------------
# Dashboard
# ---------------------------

def standards_by_framework(records: Iterable[StandardExcerpt]) -> Dict[str, int]:
    """Excerpt counts per standard name, in first-seen order."""
    return dict(Counter(r.standard for r in records))


def dashboard_stats(
    records: Sequence[StandardExcerpt],
    comparisons: Sequence[Dict[str, str]],
) -> DashboardStats:
    return DashboardStats(
        total_standards=len(records),
        total_topics=len({r.topic for r in records}),
        total_comparisons=len(comparisons),
        standards_by_framework=standards_by_framework(records),
    )


# ---------------------------
# Topic resolution
# ---------------------------

def resolve_topic(keyword: str, topics: Sequence[str]) -> str:
    """
    Map a loosely typed topic onto one of ``topics``.

    Handles numbering prefixes such as ``"10. Risk & Uncertainty
    Management"``: an exact match on the normalised key wins, then the
    first topic whose key contains the keyword's key.  Returns ``""``
    when nothing matches.
    """
    if not keyword:
        return ""
    key = topic_key(keyword)
    if not key:
        return ""
    for t in topics:
        if topic_key(t) == key:
            return t
    for t in topics:
        if key in topic_key(t):
            return t
    return ""
