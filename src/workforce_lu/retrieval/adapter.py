"""Retrieval Adapter: queries -> Evidence, read-through the evidence cache."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from workforce_lu.retrieval.sources import EvidenceSource, default_sources
from workforce_lu.types.evidence import Evidence, RetrievalResult, SourceTag
from workforce_lu.utils.cache import CacheStore, cache_key, format_key, get_default_cache
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)


class RetrievalAdapter:
    """Turns retrieval queries into Evidence for one domain at a time.

    Cached fetch results are re-materialized on every call, so each returned
    Evidence item gets a fresh ID and today's date even on a cache hit.

    Args:
        sources: Source per domain tag. Defaults to `default_sources()`.
        cache: Evidence cache. Defaults to the process-wide cache.
        clock: Time source for `retrieved_at`. Defaults to datetime.now.
    """

    def __init__(
        self,
        sources: Mapping[SourceTag, EvidenceSource] | None = None,
        cache: CacheStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.sources = dict(sources) if sources is not None else default_sources()
        self.cache = cache if cache is not None else get_default_cache()
        self._clock = clock or datetime.now

    def _source_for(self, domain_tag: SourceTag | str) -> tuple[SourceTag, EvidenceSource]:
        try:
            tag = SourceTag(domain_tag)
            return tag, self.sources[tag]
        except (ValueError, KeyError):
            raise ValueError(
                f"Unknown domain tag: {domain_tag!r}. "
                f"Known tags: {', '.join(str(t) for t in self.sources)}"
            ) from None

    async def _fetch_one(
        self, tag: SourceTag, source: EvidenceSource, query: str, language: str
    ) -> list[RetrievalResult]:
        """Results for one query: cached if live, otherwise fetched and cached.

        A failing fetch yields no results and leaves the cache untouched.
        """
        key = cache_key(tag, query)

        entry = self.cache.get(key)
        if entry is not None:
            return list(entry.results)

        try:
            results = await source.fetch(query, language)
        except Exception as e:
            logger.error(
                "Retrieval fetch failed",
                extra={"stage": "retrieval", "key": format_key(key), "error": str(e)},
            )
            return []

        self.cache.put(key, results)
        return list(results)

    async def retrieve(
        self,
        domain_tag: SourceTag | str,
        queries: Iterable[str],
        language: str,
    ) -> list[Evidence]:
        """Retrieve evidence for every query against one domain.

        Queries run concurrently; the returned list follows query order. Blank
        queries are skipped.

        Raises:
            ValueError: If `domain_tag` has no source.
        """
        tag, source = self._source_for(domain_tag)
        live_queries = [q for q in queries if q and q.strip()]

        per_query = await asyncio.gather(
            *(self._fetch_one(tag, source, q, language) for q in live_queries)
        )

        today = self._clock().date()
        evidence = [
            Evidence.from_result(result, source=tag, retrieved_at=today)
            for results in per_query
            for result in results
        ]

        logger.info(
            "Retrieved evidence",
            extra={
                "stage": "retrieval",
                "domain": str(tag),
                "num_queries": len(live_queries),
                "num_evidence": len(evidence),
            },
        )
        return evidence

    def clear_cache(self) -> int:
        return self.cache.clear()

    def cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()


_default_adapter: RetrievalAdapter | None = None


def get_default_adapter() -> RetrievalAdapter:
    """Get or create the process-wide Retrieval Adapter."""
    global _default_adapter
    if _default_adapter is None:
        _default_adapter = RetrievalAdapter()
    return _default_adapter
