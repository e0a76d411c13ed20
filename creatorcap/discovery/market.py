"""Market listings: top coins by market cap and search autocomplete."""

import logging
from collections.abc import Iterable

from ..core.cache import QueryCache
from ..core.models import TokenData
from ..core.types import DataSource
from ..providers.coingecko import CoinGeckoProvider

logger = logging.getLogger(__name__)

DEFAULT_STABLECOINS = ("usdc", "usdt", "dai", "tusd", "fdusd")
MIN_QUERY_LENGTH = 2
AUTOCOMPLETE_LIMIT = 5

# Served when the market endpoint is down or throttled
FALLBACK_TOP_TOKENS = [
    TokenData(
        id="bitcoin",
        symbol="btc",
        name="Bitcoin",
        current_price=95000,
        market_cap=1_800_000_000_000,
        market_cap_rank=1,
        image="https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
        source=DataSource.MANUAL,
    ),
    TokenData(
        id="ethereum",
        symbol="eth",
        name="Ethereum",
        current_price=2600,
        market_cap=310_000_000_000,
        market_cap_rank=2,
        image="https://assets.coingecko.com/coins/images/279/large/ethereum.png",
        source=DataSource.MANUAL,
    ),
    TokenData(
        id="solana",
        symbol="sol",
        name="Solana",
        current_price=180,
        market_cap=85_000_000_000,
        market_cap_rank=5,
        image="https://assets.coingecko.com/coins/images/4128/large/solana.png",
        source=DataSource.MANUAL,
    ),
    TokenData(
        id="binancecoin",
        symbol="bnb",
        name="BNB",
        current_price=600,
        market_cap=88_000_000_000,
        market_cap_rank=4,
        image="https://assets.coingecko.com/coins/images/825/large/binance-coin.png",
        source=DataSource.MANUAL,
    ),
    TokenData(
        id="ripple",
        symbol="xrp",
        name="XRP",
        current_price=2.50,
        market_cap=140_000_000_000,
        market_cap_rank=3,
        image="https://assets.coingecko.com/coins/images/44/large/xrp.png",
        source=DataSource.MANUAL,
    ),
]


class MarketListings:
    """Top-by-market-cap listing and free-text autocomplete."""

    def __init__(
        self,
        coingecko: CoinGeckoProvider,
        stablecoins: Iterable[str] = DEFAULT_STABLECOINS,
        top_cache: QueryCache | None = None,
        search_cache: QueryCache | None = None,
    ):
        self.coingecko = coingecko
        self.stablecoins = {s.lower() for s in stablecoins}
        self.top_cache = top_cache if top_cache is not None else QueryCache(300, name="top-tokens")
        self.search_cache = search_cache if search_cache is not None else QueryCache(300, name="search")

    async def top_tokens(
        self,
        limit: int = 100,
        category: str | None = None,
    ) -> list[TokenData]:
        """
        Top tokens by market cap, stablecoins removed.

        Falls back to a static list when the upstream call fails and no
        category was requested; a failed category request returns [].
        """
        key = f"top:{category or 'all'}:{limit}"

        async def fetch() -> list[TokenData]:
            tokens = await self.coingecko.get_markets(per_page=limit, category=category)
            return [t for t in tokens if t.symbol.lower() not in self.stablecoins]

        try:
            return await self.top_cache.get_or_fetch(key, fetch)
        except Exception as e:
            if category:
                logger.warning(f"Top tokens for category {category} unavailable: {e}")
                return []
            logger.warning(f"Top tokens unavailable, serving static fallback: {e}")
            return list(FALLBACK_TOP_TOKENS)

    async def autocomplete(self, query: str, limit: int = AUTOCOMPLETE_LIMIT) -> list[TokenData]:
        """Search suggestions; queries shorter than 2 characters return nothing."""
        needle = query.strip()
        if len(needle) < MIN_QUERY_LENGTH:
            return []

        async def fetch() -> list[TokenData]:
            return await self.coingecko.search(needle)

        try:
            results = await self.search_cache.get_or_fetch(f"search:{needle.lower()}", fetch)
        except Exception as e:
            logger.warning(f"Search for {needle!r} failed: {e}")
            return []
        return results[:limit]
