"""
Short-lived in-process cache for hot read endpoints.

Paper details are kept for ``PAPER_CACHE_TTL_SECONDS``; trending papers and
trending topics for ``TRENDING_CACHE_TTL_SECONDS``.  Any write that changes
a paper drops its detail entry and every trending-papers entry; recomputing
trending topics drops the topics entries.

Usage
-----
    from paperforum.services.cache import response_cache

    cached = response_cache.get_paper(paper_id)
    ...
    response_cache.invalidate_paper(paper_id)
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Hashable, Optional

from cachetools import TTLCache

from paperforum.config import settings

logger = logging.getLogger(__name__)


class ResponseCache:
    def __init__(
        self,
        paper_ttl: float = settings.PAPER_CACHE_TTL_SECONDS,
        trending_ttl: float = settings.TRENDING_CACHE_TTL_SECONDS,
        maxsize: int = settings.CACHE_MAX_ENTRIES,
        enabled: bool = settings.CACHE_ENABLED,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.enabled = enabled
        self.papers: TTLCache = TTLCache(maxsize=maxsize, ttl=paper_ttl, timer=timer)
        self.trending_papers: TTLCache = TTLCache(maxsize=maxsize, ttl=trending_ttl, timer=timer)
        self.trending_topics: TTLCache = TTLCache(maxsize=maxsize, ttl=trending_ttl, timer=timer)

    # ------------------------------------------------------------------
    # Generic access
    # ------------------------------------------------------------------

    def lookup(self, bucket: TTLCache, key: Hashable) -> Optional[Any]:
        if not self.enabled:
            return None
        return bucket.get(key)

    def store(self, bucket: TTLCache, key: Hashable, value: Any) -> None:
        if self.enabled:
            bucket[key] = value

    # ------------------------------------------------------------------
    # Papers
    # ------------------------------------------------------------------

    def get_paper(self, paper_id: int) -> Optional[Any]:
        return self.lookup(self.papers, paper_id)

    def set_paper(self, paper_id: int, value: Any) -> None:
        self.store(self.papers, paper_id, value)

    def invalidate_paper(self, paper_id: Optional[int] = None) -> None:
        """Drop one paper (or all papers when *paper_id* is None) plus trending lists."""
        if paper_id is None:
            self.papers.clear()
        else:
            self.papers.pop(paper_id, None)
        self.trending_papers.clear()

    def invalidate_topics(self) -> None:
        self.trending_topics.clear()

    def clear(self) -> None:
        self.papers.clear()
        self.trending_papers.clear()
        self.trending_topics.clear()


response_cache = ResponseCache()
