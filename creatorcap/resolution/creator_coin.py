"""Creator coin aggregation.

Combines on-chain ERC-20 metadata, a DEX price, optional registry media
and the owner's ENS profile into one record. Creator coins vest half of
their supply to the protocol, so market cap is computed against
``total_supply * circulating_fraction`` (0.5 by default).
"""

import asyncio
import logging
from typing import Any

from ..core.models import CreatorCoinDetails, CreatorProfile, TokenData
from ..core.numeric import finite_or_zero, format_units, parse_decimal_or_zero
from ..core.types import DataSource
from ..providers.coingecko import CoinGeckoProvider
from ..providers.dexscreener import CDN_IMAGE_URL, DexScreenerProvider, build_price_maps
from ..providers.names import NameRegistryProvider, shorten_address
from ..providers.onchain import Erc20Metadata, OnchainProvider
from ..providers.zora import ZoraProvider, normalize_image

logger = logging.getLogger(__name__)

DEFAULT_CIRCULATING_FRACTION = 0.5
BTC_CIRCULATING_SUPPLY = 19_700_000


class CreatorCoinAggregator:
    """Builds creator coin records from on-chain reads plus pricing."""

    def __init__(
        self,
        onchain: OnchainProvider,
        dexscreener: DexScreenerProvider,
        coingecko: CoinGeckoProvider | None = None,
        names: NameRegistryProvider | None = None,
        zora: ZoraProvider | None = None,
        circulating_fraction: float = DEFAULT_CIRCULATING_FRACTION,
        chain: str = "base",
    ):
        self.onchain = onchain
        self.dexscreener = dexscreener
        self.coingecko = coingecko
        self.names = names
        self.zora = zora
        self.circulating_fraction = circulating_fraction
        self.chain = chain

    async def get_token(self, address: str) -> TokenData | None:
        """
        Creator coin as a canonical record.

        Returns None when the contract has no readable symbol or no
        price could be found (a zero market cap is useless downstream).
        """
        built = await self._build(address)
        if built is None:
            return None
        token, _, _ = built
        if not token.has_market_cap:
            logger.info(f"Creator coin {address} has no price, deferring to other sources")
            return None
        return token

    async def get_details(self, address: str) -> CreatorCoinDetails | None:
        """Creator coin record plus supply, creator profile and BTC comparison."""
        built = await self._build(address, with_owner=True)
        if built is None:
            return None
        token, metadata, owner = built

        total_supply = parse_decimal_or_zero(
            format_units(metadata.total_supply_raw, metadata.decimals)
        )
        btc_price = await self._btc_price()
        btc_market_cap = BTC_CIRCULATING_SUPPLY * btc_price
        ratio = finite_or_zero(token.market_cap / btc_market_cap) if btc_market_cap > 0 else 0.0

        return CreatorCoinDetails(
            token=token,
            total_supply=total_supply,
            circulating_supply=total_supply * self.circulating_fraction,
            creator=await self._creator_profile(owner),
            btc_market_cap_ratio=ratio,
            insights=(
                f"At current prices, {token.symbol} is {ratio * 100:.6f}% "
                f"of Bitcoin's potential market cap."
            ),
        )

    async def _build(
        self,
        address: str,
        with_owner: bool = False,
    ) -> tuple[TokenData, Erc20Metadata, str | None] | None:
        metadata = await self.onchain.read_token_metadata(address)
        if not metadata.is_token:
            logger.debug(f"{address} has no readable symbol, not an ERC-20")
            return None

        pairs_result, zora_result = await asyncio.gather(
            self.dexscreener.get_pairs([address]),
            self._zora_node(address),
            return_exceptions=True,
        )
        if isinstance(pairs_result, Exception):
            logger.warning(f"Price lookup failed for creator coin {address}: {pairs_result}")
            pairs_result = []
        if isinstance(zora_result, Exception):
            logger.debug(f"Registry metadata unavailable for {address}: {zora_result}")
            zora_result = None

        prices, images = build_price_maps(pairs_result)
        key = address.lower()
        price = prices.get(key, 0.0)

        total_supply = parse_decimal_or_zero(
            format_units(metadata.total_supply_raw, metadata.decimals)
        )
        circulating = total_supply * self.circulating_fraction

        image = None
        owner = metadata.owner
        if zora_result:
            image = normalize_image(zora_result)
            owner = zora_result.get("creatorAddress") or owner
        image = image or images.get(key) or CDN_IMAGE_URL.format(chain=self.chain, address=key)

        token = TokenData(
            id=key,
            symbol=metadata.symbol,
            name=metadata.name or metadata.symbol,
            image=image,
            current_price=price,
            market_cap=finite_or_zero(circulating * price),
            address=address,
            decimals=metadata.decimals,
            source=DataSource.CREATOR_COIN,
        )
        return token, metadata, owner if with_owner else None

    async def _zora_node(self, address: str) -> dict[str, Any] | None:
        if self.zora is None:
            return None
        return await self.zora.get_coin(address)

    async def _btc_price(self) -> float:
        if self.coingecko is None:
            return 0.0
        try:
            return await self.coingecko.get_btc_price()
        except Exception as e:
            logger.warning(f"BTC price unavailable: {e}")
            return 0.0

    async def _creator_profile(self, owner: str | None) -> CreatorProfile:
        if not owner:
            return CreatorProfile(name="Unknown")

        ens_name = None
        avatar = None
        if self.names is not None:
            try:
                ens_name = await self.names.lookup_name(owner)
                if ens_name:
                    avatar = await self.names.get_avatar(ens_name)
            except Exception as e:
                logger.debug(f"Reverse lookup failed for {owner}: {e}")

        return CreatorProfile(
            name=ens_name or shorten_address(owner),
            avatar=avatar,
            ens=ens_name,
            address=owner,
        )
