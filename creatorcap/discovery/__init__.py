"""Discovery: creator coin pool and market listings."""

from .market import FALLBACK_TOP_TOKENS, MarketListings
from .pool import DiscoveryAggregator, merge_candidates, search

__all__ = [
    "DiscoveryAggregator",
    "FALLBACK_TOP_TOKENS",
    "MarketListings",
    "merge_candidates",
    "search",
]
