"""DexScreener pair lookup provider.

One HTTP call fetches every pair for up to 30 comma-joined token
addresses. The resolver uses the most liquid pair per token; the wallet
aggregator builds first-seen price and image maps from the raw pairs.
"""

import logging
from typing import Any

from ..core.models import TokenData
from ..core.numeric import parse_decimal_or_zero, parse_non_negative
from ..core.types import DataSource
from .base import HTTPProvider

logger = logging.getLogger(__name__)

MAX_ADDRESSES_PER_CALL = 30
CDN_IMAGE_URL = "https://dd.dexscreener.com/ds-data/tokens/{chain}/{address}.png"


def normalize_image(pair: dict[str, Any], chain: str, address: str) -> str:
    """``info.imageUrl``, else the DexScreener CDN URL for the token."""
    info = pair.get("info")
    if isinstance(info, dict):
        url = info.get("imageUrl")
        if isinstance(url, str) and url:
            return url
    return CDN_IMAGE_URL.format(chain=chain, address=address.lower())


def pair_liquidity(pair: dict[str, Any]) -> float:
    liquidity = pair.get("liquidity")
    if isinstance(liquidity, dict):
        return parse_non_negative(liquidity.get("usd"))
    return parse_non_negative(liquidity)


def pair_market_cap(pair: dict[str, Any]) -> float:
    """Fully-diluted value when present and non-zero, else marketCap."""
    fdv = parse_non_negative(pair.get("fdv"))
    if fdv > 0:
        return fdv
    return parse_non_negative(pair.get("marketCap"))


def base_token_address(pair: dict[str, Any]) -> str:
    token = pair.get("baseToken")
    if isinstance(token, dict) and isinstance(token.get("address"), str):
        return token["address"].lower()
    return ""


def build_price_maps(
    pairs: list[dict[str, Any]],
) -> tuple[dict[str, float], dict[str, str]]:
    """
    Build price and image maps keyed by lower-cased base token address.

    The first priced pair seen for an address wins. Only explicit
    ``info.imageUrl`` values enter the image map.
    """
    prices: dict[str, float] = {}
    images: dict[str, str] = {}
    for pair in pairs:
        address = base_token_address(pair)
        price = parse_non_negative(pair.get("priceUsd"))
        if not address or price <= 0:
            continue
        prices.setdefault(address, price)
        info = pair.get("info")
        image = info.get("imageUrl") if isinstance(info, dict) else None
        if isinstance(image, str) and image:
            images.setdefault(address, image)
    return prices, images


class DexScreenerProvider(HTTPProvider):
    """Async client for the DexScreener latest/dex API."""

    SOURCE = DataSource.DEXSCREENER
    BASE_URL = "https://api.dexscreener.com"

    def __init__(
        self,
        chain: str = "base",
        rate_limit_calls: int = 300,
        rate_limit_period: int = 60,
        **kwargs: Any,
    ):
        super().__init__(
            rate_limit_calls=rate_limit_calls,
            rate_limit_period=rate_limit_period,
            **kwargs,
        )
        self.chain = chain

    def is_available(self) -> bool:
        return True

    async def get_pairs(self, addresses: list[str]) -> list[dict[str, Any]]:
        """
        Fetch all pairs for up to 30 token addresses in one call.

        Pairs on other chains are dropped.

        Raises:
            ValueError: more than 30 addresses
        """
        if not addresses:
            return []
        if len(addresses) > MAX_ADDRESSES_PER_CALL:
            raise ValueError(
                f"At most {MAX_ADDRESSES_PER_CALL} addresses per call, got {len(addresses)}"
            )

        joined = ",".join(addresses)
        data = await self._request_json(f"/latest/dex/tokens/{joined}")
        if not isinstance(data, dict):
            return []
        pairs = data.get("pairs") or []
        if not isinstance(pairs, list):
            return []

        return [
            pair
            for pair in pairs
            if isinstance(pair, dict)
            and (not pair.get("chainId") or pair.get("chainId") == self.chain)
        ]

    async def get_token_by_address(self, address: str) -> TokenData | None:
        """
        Build a TokenData from the most liquid pair whose base token is
        ``address``. ATH and rank are not available from pairs.
        """
        pairs = await self.get_pairs([address])
        wanted = address.lower()
        candidates = [pair for pair in pairs if base_token_address(pair) == wanted]
        if not candidates:
            logger.debug(f"[dexscreener] No pairs with base token {address}")
            return None

        pair = max(candidates, key=pair_liquidity)
        base = pair.get("baseToken") or {}
        symbol = base.get("symbol") or ""
        if not symbol:
            return None

        price_change = pair.get("priceChange")
        change_24h = price_change.get("h24") if isinstance(price_change, dict) else None

        return TokenData(
            id=wanted,
            symbol=symbol,
            name=base.get("name") or symbol,
            image=normalize_image(pair, self.chain, wanted),
            current_price=pair.get("priceUsd"),
            market_cap=pair_market_cap(pair),
            price_change_percentage_24h=parse_decimal_or_zero(change_24h),
            address=address,
            source=DataSource.DEXSCREENER,
        )
