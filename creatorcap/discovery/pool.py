"""Discovery aggregator: merged creator coin listings for autocomplete.

Several bulk listings are fetched concurrently, flattened and
de-duplicated by address (first occurrence wins, so listing order is
priority order). The merged pool is cached for a short staleness window
and searched locally by name/symbol prefix.
"""

import asyncio
import logging
from collections.abc import Iterable

from ..core.cache import QueryCache
from ..core.models import DiscoveryCandidate
from ..providers.zora import ZoraProvider

logger = logging.getLogger(__name__)

DEFAULT_LIST_TYPES = ("MOST_VALUABLE", "NEW", "TOP_VOLUME_24H")
DEFAULT_SEARCH_LIMIT = 5
POOL_KEY = "discovery-pool"


def merge_candidates(
    listings: Iterable[Iterable[DiscoveryCandidate]],
) -> list[DiscoveryCandidate]:
    """Flatten listings and keep the first candidate per address (case-insensitive)."""
    seen: set[str] = set()
    merged = []
    for listing in listings:
        for candidate in listing:
            key = candidate.address.lower()
            if key in seen:
                continue
            seen.add(key)
            merged.append(candidate)
    return merged


def search(
    pool: Iterable[DiscoveryCandidate],
    query: str,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[DiscoveryCandidate]:
    """Case-insensitive prefix match on name or symbol, capped at ``limit``."""
    needle = query.strip().lower()
    if not needle:
        return []
    matches = []
    for candidate in pool:
        if candidate.name.lower().startswith(needle) or candidate.symbol.lower().startswith(needle):
            matches.append(candidate)
            if len(matches) >= limit:
                break
    return matches


class DiscoveryAggregator:
    """Owns the discovery pool and its refresh policy."""

    def __init__(
        self,
        zora: ZoraProvider,
        list_types: Iterable[str] = DEFAULT_LIST_TYPES,
        count_per_list: int = 20,
        cache: QueryCache | None = None,
        ttl_seconds: float = 60.0,
    ):
        """
        Args:
            zora: Creator registry providing the bulk listings
            list_types: Listings to merge, in priority order
            count_per_list: Nodes requested per listing
            cache: Cache owning the pool (a private one by default)
            ttl_seconds: Staleness window for a private cache
        """
        self.zora = zora
        self.list_types = list(list_types)
        self.count_per_list = count_per_list
        self.cache = cache if cache is not None else QueryCache(ttl_seconds, name="discovery")

    async def refresh_pool(self) -> list[DiscoveryCandidate]:
        """Cached merged pool; refetched once the window elapses."""
        pool = await self.cache.get_or_fetch(POOL_KEY, self._fetch_pool)
        return pool or []

    async def search(
        self,
        query: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[DiscoveryCandidate]:
        """Prefix search over the current pool."""
        if not query.strip():
            return []
        return search(await self.refresh_pool(), query, limit)

    async def _fetch_pool(self) -> list[DiscoveryCandidate] | None:
        listings = await asyncio.gather(
            *(self._fetch_listing(list_type) for list_type in self.list_types)
        )
        merged = merge_candidates(listings)
        logger.info(
            f"Discovery pool refreshed: {len(merged)} candidates "
            f"from {len(self.list_types)} listings"
        )
        # an empty pool is not cached so the next call retries
        return merged or None

    async def _fetch_listing(self, list_type: str) -> list[DiscoveryCandidate]:
        try:
            return await self.zora.explore_candidates(list_type, self.count_per_list)
        except Exception as e:
            logger.warning(f"Discovery listing {list_type} failed: {e}")
            return []
