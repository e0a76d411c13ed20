"""Zora coins API provider (creator-token registry).

Coin records are looked up by address, creator profiles by handle or
wallet, and bulk listings come from the explore endpoint. Every coin node
carries a ``coinType`` discriminator; only ``CREATOR`` coins are trusted
as creator tokens.
"""

import logging
from typing import Any

from ..core.exceptions import SchemaMismatchError
from ..core.models import DiscoveryCandidate, TokenData
from ..core.numeric import parse_decimal_or_zero, parse_non_negative
from ..core.types import CoinType, DataSource
from .base import HTTPProvider

logger = logging.getLogger(__name__)

BASE_CHAIN_ID = 8453


def normalize_image(node: dict[str, Any]) -> str | None:
    """
    Collapse ``mediaContent`` to one URL.

    Preference: previewImage.medium > originalUri > previewImage.small.
    """
    media = node.get("mediaContent")
    if not isinstance(media, dict):
        return None
    preview = media.get("previewImage")
    if not isinstance(preview, dict):
        preview = {}
    for candidate in (preview.get("medium"), media.get("originalUri"), preview.get("small")):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def coin_price(node: dict[str, Any]) -> float:
    """USDC price if reported, else market cap / total supply."""
    token_price = node.get("tokenPrice")
    if isinstance(token_price, dict):
        price = parse_non_negative(token_price.get("priceInUsdc"))
        if price > 0:
            return price
    supply = parse_non_negative(node.get("totalSupply"))
    if supply <= 0:
        return 0.0
    return parse_non_negative(node.get("marketCap")) / supply


def coin_change_24h(node: dict[str, Any]) -> float:
    """Percent change derived from marketCapDelta24h."""
    market_cap = parse_non_negative(node.get("marketCap"))
    delta = parse_decimal_or_zero(node.get("marketCapDelta24h"))
    previous = market_cap - delta
    if previous <= 0:
        return 0.0
    return delta / previous * 100


def coin_to_token(node: dict[str, Any]) -> TokenData | None:
    """Normalize a coin node; None when it has no address or symbol."""
    address = node.get("address")
    symbol = node.get("symbol") or ""
    if not isinstance(address, str) or not address or not symbol:
        return None
    return TokenData(
        id=address.lower(),
        symbol=symbol,
        name=node.get("name") or symbol,
        image=normalize_image(node),
        current_price=coin_price(node),
        market_cap=node.get("marketCap"),
        price_change_percentage_24h=coin_change_24h(node),
        address=address,
        source=DataSource.ZORA,
    )


def coin_to_candidate(node: dict[str, Any], listing: str | None = None) -> DiscoveryCandidate | None:
    address = node.get("address")
    symbol = node.get("symbol") or ""
    if not isinstance(address, str) or not address or not symbol:
        return None
    return DiscoveryCandidate(
        address=address,
        name=node.get("name") or symbol,
        symbol=symbol,
        image=normalize_image(node),
        listing=listing,
    )


class ZoraProvider(HTTPProvider):
    """Async client for the Zora coins REST API."""

    SOURCE = DataSource.ZORA
    BASE_URL = "https://api-sdk.zora.engineering"

    def __init__(
        self,
        api_key: str | None = None,
        chain_id: int = BASE_CHAIN_ID,
        rate_limit_calls: int = 60,
        rate_limit_period: int = 60,
        **kwargs: Any,
    ):
        super().__init__(
            rate_limit_calls=rate_limit_calls,
            rate_limit_period=rate_limit_period,
            **kwargs,
        )
        self.api_key = api_key
        self.chain_id = chain_id

    def is_available(self) -> bool:
        # Anonymous access is allowed at a lower rate limit
        return True

    def _default_headers(self) -> dict[str, str]:
        headers = super()._default_headers()
        if self.api_key:
            headers["api-key"] = self.api_key
        return headers

    async def get_coin(self, address: str) -> dict[str, Any] | None:
        """Raw coin node for ``address``, or None."""
        data = await self._request_json(
            "/coin",
            params={"address": address, "chain": self.chain_id},
        )
        if not isinstance(data, dict):
            return None
        node = data.get("zora20Token")
        return node if isinstance(node, dict) else None

    async def get_creator_token(self, address: str) -> TokenData | None:
        """
        Look up ``address`` and accept it only if it is a creator coin.

        Raises:
            SchemaMismatchError: the record exists but is not a creator coin
        """
        node = await self.get_coin(address)
        if node is None:
            return None

        coin_type = CoinType.parse(node.get("coinType"))
        if coin_type != CoinType.CREATOR:
            raise SchemaMismatchError(
                self.SOURCE.value,
                f"{address} is a {coin_type.value} coin, not a creator coin",
            )
        return coin_to_token(node)

    async def get_profile_coin_address(self, identifier: str) -> str | None:
        """
        Map a handle or wallet address to its creator coin address.

        Returns:
            The profile's creator coin address, or None
        """
        data = await self._request_json("/profile", params={"identifier": identifier})
        if not isinstance(data, dict):
            return None
        profile = data.get("profile")
        if not isinstance(profile, dict):
            return None
        coin = profile.get("creatorCoin")
        if isinstance(coin, dict) and isinstance(coin.get("address"), str):
            return coin["address"]
        return None

    async def explore(self, list_type: str, count: int = 20) -> list[dict[str, Any]]:
        """Raw coin nodes of one bulk listing, in upstream order."""
        data = await self._request_json(
            "/explore",
            params={"listType": list_type, "count": count},
        )
        if not isinstance(data, dict):
            return []
        explore_list = data.get("exploreList")
        if not isinstance(explore_list, dict):
            raise SchemaMismatchError(self.SOURCE.value, "explore response has no exploreList")
        nodes = []
        for edge in explore_list.get("edges") or []:
            node = edge.get("node") if isinstance(edge, dict) else None
            if isinstance(node, dict):
                nodes.append(node)
        return nodes

    async def explore_candidates(self, list_type: str, count: int = 20) -> list[DiscoveryCandidate]:
        """One bulk listing as discovery candidates."""
        candidates = []
        for node in await self.explore(list_type, count):
            candidate = coin_to_candidate(node, listing=list_type)
            if candidate is not None:
                candidates.append(candidate)
        return candidates
