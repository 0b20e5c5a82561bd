from __future__ import annotations

"""
Keyword search over standards excerpts.

The index maps every lowercase whitespace token (longer than two
characters) of ``standard + topic + excerpt`` to the records that
contain it, once per occurrence of the token.  Queries are not exact lookups: each query token is
compared against every indexed token and matches when it is a
substring of it, so ``"risk"`` finds ``"risks,"`` and ``"risk-based"``
as well.  Every (query token, index token) match adds one point to
each record in that token's bucket; the ten best records are returned
with ties kept in the order they were first matched.

Example::

    from pmstandards.search_index import SearchIndex
    index = SearchIndex.build(records)
    for hit in index.search("risk appetite"):
        print(hit.relevance_score, hit.deep_link)

"""

from typing import Dict, Iterable, List, Tuple

from loguru import logger

from .config import SEARCH_MIN_TOKEN_LEN, SEARCH_RESULT_LIMIT, SearchResult, StandardExcerpt
from .normalize import index_tokens


def searchable_text(record: StandardExcerpt) -> str:
    """Text a record is indexed under."""
    return " ".join([record.standard, record.topic, record.excerpt])


class SearchIndex:
    """
    Token -> records buckets over a fixed set of excerpts.

    Instances are built once per data set and never mutated afterwards,
    so they can be shared between concurrent readers.
    """

    def __init__(self, buckets: Dict[str, List[StandardExcerpt]]):
        self._buckets = buckets

    @classmethod
    def build(cls, records: Iterable[StandardExcerpt]) -> "SearchIndex":
        buckets: Dict[str, List[StandardExcerpt]] = {}
        count = 0
        for record in records:
            count += 1
            # one entry per occurrence, so repeated words weigh more
            for token in index_tokens(searchable_text(record)):
                buckets.setdefault(token, []).append(record)
        logger.info("Built search index: {} tokens over {} records", len(buckets), count)
        return cls(buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, token: str) -> bool:
        return token in self._buckets

    def bucket(self, token: str) -> List[StandardExcerpt]:
        return list(self._buckets.get(token, []))

    def score(self, query: str) -> List[Tuple[StandardExcerpt, int]]:
        """
        Accumulate relevance for every record matched by ``query``.

        Returned in first-match order, unsorted.  Query tokens shorter
        than ``SEARCH_MIN_TOKEN_LEN`` are dropped.
        """
        scores: Dict[int, int] = {}
        hits: Dict[int, StandardExcerpt] = {}
        for q_token in index_tokens(query, SEARCH_MIN_TOKEN_LEN):
            for token, records in self._buckets.items():
                if q_token not in token:
                    continue
                for record in records:
                    if record.id not in hits:
                        hits[record.id] = record
                        scores[record.id] = 0
                    scores[record.id] += 1
        return [(hits[rid], scores[rid]) for rid in hits]

    def search(self, query: str, limit: int = SEARCH_RESULT_LIMIT) -> List[SearchResult]:
        """Top ``limit`` records by relevance, ties in first-match order."""
        scored = self.score(query)
        # sorted() is stable, so equal scores keep encounter order
        scored = sorted(scored, key=lambda pair: -pair[1])[:limit]
        results = [
            SearchResult(**record.model_dump(), relevance_score=score)
            for record, score in scored
        ]
        logger.debug("Search {!r} matched {} records", query, len(results))
        return results
