"""CoinGecko market data provider.

Covers the market-data-by-id, market-data-by-contract, free-text search
and simple price endpoints. Works without an API key (public tier);
with a key it switches to the pro base URL.
"""

import logging
from typing import Any

from ..core.exceptions import SchemaMismatchError
from ..core.models import TokenData
from ..core.numeric import parse_non_negative
from ..core.types import DataSource
from .base import HTTPProvider

logger = logging.getLogger(__name__)

PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"


def normalize_image(image: Any) -> str | None:
    """
    Collapse a CoinGecko image field to one URL.

    The field is either a plain string (``/coins/markets``) or a sized
    variant object (``/coins/{id}``, ``/search``): large > thumb > small.
    """
    if isinstance(image, str):
        return image or None
    if isinstance(image, dict):
        for key in ("large", "thumb", "small"):
            value = image.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def _usd(block: Any) -> Any:
    """Extract the ``usd`` entry of a market_data sub-object."""
    if isinstance(block, dict):
        return block.get("usd")
    return None


class CoinGeckoProvider(HTTPProvider):
    """Async client for the CoinGecko v3 API."""

    SOURCE = DataSource.COINGECKO
    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: str | None = None,
        platform: str = "base",
        rate_limit_calls: int = 30,
        rate_limit_period: int = 60,
        **kwargs: Any,
    ):
        """
        Initialize CoinGecko provider.

        Args:
            api_key: Optional CoinGecko Pro API key
            platform: Asset platform used for contract lookups
            rate_limit_calls: Rate limit per period
            rate_limit_period: Period in seconds
        """
        if api_key and "base_url" not in kwargs:
            kwargs["base_url"] = PRO_BASE_URL
        super().__init__(
            rate_limit_calls=rate_limit_calls,
            rate_limit_period=rate_limit_period,
            **kwargs,
        )
        self.api_key = api_key
        self.platform = platform

    def is_available(self) -> bool:
        # Public API works without a key
        return True

    def _default_headers(self) -> dict[str, str]:
        headers = super()._default_headers()
        if self.api_key:
            headers["x-cg-pro-api-key"] = self.api_key
        return headers

    def _market_item_to_token(self, item: dict[str, Any]) -> TokenData | None:
        """Normalize one ``/coins/markets`` row."""
        symbol = item.get("symbol") or ""
        if not item.get("id") or not symbol:
            return None
        return TokenData(
            id=item["id"],
            symbol=symbol,
            name=item.get("name") or symbol,
            image=normalize_image(item.get("image")),
            current_price=item.get("current_price"),
            market_cap=item.get("market_cap"),
            market_cap_rank=item.get("market_cap_rank"),
            price_change_percentage_24h=item.get("price_change_percentage_24h"),
            ath=item.get("ath"),
            source=DataSource.COINGECKO,
        )

    async def get_markets(
        self,
        ids: list[str] | None = None,
        category: str | None = None,
        per_page: int = 100,
        page: int = 1,
    ) -> list[TokenData]:
        """
        Fetch market rows, ordered by market cap descending.

        Args:
            ids: Restrict to these CoinGecko ids
            category: Optional CoinGecko category slug
            per_page: Page size (max 250)
            page: Page number

        Returns:
            List of TokenData, in upstream order
        """
        params: dict[str, Any] = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": per_page,
            "page": page,
            "sparkline": "false",
        }
        if ids:
            params["ids"] = ",".join(ids)
        if category:
            params["category"] = category

        data = await self._request_json("/coins/markets", params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise SchemaMismatchError(self.SOURCE.value, "/coins/markets did not return a list")

        tokens = []
        for item in data:
            if not isinstance(item, dict):
                continue
            token = self._market_item_to_token(item)
            if token is not None:
                tokens.append(token)
        return tokens

    async def get_token_by_id(self, coin_id: str) -> TokenData | None:
        """Fetch one token's market data by its CoinGecko id."""
        tokens = await self.get_markets(ids=[coin_id], per_page=1)
        for token in tokens:
            if token.id == coin_id:
                return token
        return tokens[0] if tokens else None

    async def get_token_by_contract(
        self,
        address: str,
        platform: str | None = None,
    ) -> TokenData | None:
        """
        Fetch a token by contract address on an asset platform.

        Returns:
            TokenData with ``address`` set, or None if CoinGecko does not
            list the contract
        """
        platform = platform or self.platform
        endpoint = f"/coins/{platform}/contract/{address.lower()}"
        data = await self._request_json(endpoint)
        if not data:
            return None
        if not isinstance(data, dict):
            raise SchemaMismatchError(self.SOURCE.value, f"{endpoint} did not return an object")

        symbol = data.get("symbol") or ""
        if not symbol:
            return None

        market_data = data.get("market_data") or {}
        return TokenData(
            id=data.get("id") or address.lower(),
            symbol=symbol,
            name=data.get("name") or symbol,
            image=normalize_image(data.get("image")),
            current_price=_usd(market_data.get("current_price")),
            market_cap=_usd(market_data.get("market_cap")),
            market_cap_rank=data.get("market_cap_rank"),
            price_change_percentage_24h=market_data.get("price_change_percentage_24h"),
            ath=_usd(market_data.get("ath")),
            address=address,
            decimals=_platform_decimals(data, platform),
            source=DataSource.COINGECKO,
        )

    async def search(self, query: str) -> list[TokenData]:
        """
        Free-text search.

        Search rows carry no price data; numeric fields stay at the 0
        "unknown" sentinel except ``market_cap_rank``.
        """
        data = await self._request_json("/search", params={"query": query})
        if not data:
            return []
        coins = data.get("coins") if isinstance(data, dict) else None
        if not isinstance(coins, list):
            raise SchemaMismatchError(self.SOURCE.value, "/search response has no coins list")

        results = []
        for coin in coins:
            if not isinstance(coin, dict) or not coin.get("id") or not coin.get("symbol"):
                continue
            results.append(
                TokenData(
                    id=coin["id"],
                    symbol=coin["symbol"],
                    name=coin.get("name") or coin["symbol"],
                    image=coin.get("large") or coin.get("thumb"),
                    market_cap_rank=coin.get("market_cap_rank"),
                    source=DataSource.COINGECKO,
                )
            )
        return results

    async def get_simple_prices(self, ids: list[str]) -> dict[str, float]:
        """Fetch USD spot prices for CoinGecko ids."""
        if not ids:
            return {}
        data = await self._request_json(
            "/simple/price",
            params={"ids": ",".join(ids), "vs_currencies": "usd"},
        )
        if not isinstance(data, dict):
            return {}
        prices = {}
        for coin_id, quote in data.items():
            price = parse_non_negative(_usd(quote))
            if price > 0:
                prices[coin_id] = price
        return prices

    async def get_btc_price(self) -> float:
        """Bitcoin spot price in USD, 0 when unknown."""
        prices = await self.get_simple_prices(["bitcoin"])
        return prices.get("bitcoin", 0.0)


def _platform_decimals(data: dict[str, Any], platform: str) -> int | None:
    details = data.get("detail_platforms")
    if isinstance(details, dict):
        entry = details.get(platform)
        if isinstance(entry, dict) and entry.get("decimal_place") is not None:
            return entry["decimal_place"]
    return None
