"""Token resolution: identifier classification, fallback chains, selection."""

from .creator_coin import CreatorCoinAggregator
from .identifiers import classify, is_address
from .selection import SelectionHolder
from .strategies import ChainOutcome, first_success
from .token_resolver import TokenResolver, pick_search_match

__all__ = [
    "ChainOutcome",
    "CreatorCoinAggregator",
    "SelectionHolder",
    "TokenResolver",
    "classify",
    "first_success",
    "is_address",
    "pick_search_match",
]
