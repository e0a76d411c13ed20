"""Wallet holdings aggregator.

Merges the native balance, the official portfolio listing and the block
explorer token list for one wallet, prices every holding through DEX
pairs and ranks by USD value. Each step is fault tolerant on its own:
a failed source contributes nothing, a failed pricing step leaves the
list unpriced and unsorted.
"""

import asyncio
import logging
from collections.abc import Iterable

from ..core.cache import QueryCache
from ..core.models import Holding, WalletToken
from ..core.numeric import finite_or_zero, format_units, parse_decimal_or_zero
from ..core.types import DataSource
from ..providers.blockscout import BlockscoutProvider
from ..providers.dexscreener import (
    CDN_IMAGE_URL,
    MAX_ADDRESSES_PER_CALL,
    DexScreenerProvider,
    build_price_maps,
)
from ..providers.onchain import OnchainProvider
from ..providers.portfolio import CoinbasePortfolioProvider
from ..resolution.identifiers import is_address

logger = logging.getLogger(__name__)

WETH_BASE = "0x4200000000000000000000000000000000000006"
ETH_IMAGE = "https://assets.coingecko.com/coins/images/279/large/ethereum.png"


def merge_holdings(sources: Iterable[Iterable[Holding]]) -> list[Holding]:
    """
    Merge holdings in source order, dropping zero balances and duplicates.

    A holding is a duplicate when its address (case-insensitive) was
    already seen, or when it has no address and its symbol was seen.
    """
    merged: list[Holding] = []
    seen_addresses: set[str] = set()
    seen_symbols: set[str] = set()

    for source in sources:
        for holding in source:
            if holding.balance_raw <= 0:
                continue
            symbol = holding.symbol.lower()
            if holding.address:
                key = holding.address.lower()
                if key in seen_addresses:
                    continue
                seen_addresses.add(key)
            elif symbol in seen_symbols:
                continue
            seen_symbols.add(symbol)
            merged.append(holding)
    return merged


def chunked(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class WalletHoldingsAggregator:
    """Loads and ranks every priced holding of one wallet."""

    def __init__(
        self,
        dexscreener: DexScreenerProvider,
        blockscout: BlockscoutProvider | None = None,
        portfolio: CoinbasePortfolioProvider | None = None,
        onchain: OnchainProvider | None = None,
        chain: str = "base",
        wrapped_native: str = WETH_BASE,
        chunk_size: int = MAX_ADDRESSES_PER_CALL,
        cache: QueryCache | None = None,
        ttl_seconds: float = 30.0,
    ):
        """
        Args:
            dexscreener: Pair lookup used for pricing
            blockscout: Explorer token list (secondary source)
            portfolio: Official portfolio source (primary source)
            onchain: Native balance reads
            wrapped_native: Token whose price stands in for the native asset
            chunk_size: Addresses per pricing call
            cache: Cache owning wallet listings (a private one by default)
        """
        self.dexscreener = dexscreener
        self.blockscout = blockscout
        self.portfolio = portfolio
        self.onchain = onchain
        self.chain = chain
        self.wrapped_native = wrapped_native.lower()
        self.chunk_size = chunk_size
        self.cache = cache if cache is not None else QueryCache(ttl_seconds, name="wallet")

    async def load_wallet_tokens(self, address: str) -> list[WalletToken]:
        """Priced holdings of ``address``, highest USD value first."""
        if not is_address(address):
            logger.info(f"Not a wallet address: {address!r}")
            return []
        tokens = await self.cache.get_or_fetch(
            f"wallet:{address.lower()}",
            lambda: self._load(address),
        )
        return tokens or []

    async def _load(self, address: str) -> list[WalletToken] | None:
        native, from_portfolio, from_explorer = await asyncio.gather(
            self._native_holding(address),
            self._holdings(self.portfolio, address),
            self._holdings(self.blockscout, address),
        )
        holdings = merge_holdings(
            [[native] if native else [], from_portfolio, from_explorer]
        )
        logger.info(
            f"Wallet {address}: {len(holdings)} holdings "
            f"(portfolio {len(from_portfolio)}, explorer {len(from_explorer)})"
        )
        if not holdings:
            return None

        priced = await self._price(holdings)
        if priced is None:
            logger.warning(f"Pricing failed for wallet {address}, returning unsorted list")
            return [self._to_wallet_token(h, 0.0, None) for h in holdings]

        prices, images = priced
        tokens = [
            self._to_wallet_token(h, prices.get(self._price_key(h), 0.0), images.get(self._price_key(h)))
            for h in holdings
        ]
        tokens.sort(key=lambda t: t.value_usd, reverse=True)
        return tokens

    async def _native_holding(self, address: str) -> Holding | None:
        if self.onchain is None:
            return None
        try:
            balance = await self.onchain.get_native_balance(address)
        except Exception as e:
            logger.warning(f"Native balance unavailable for {address}: {e}")
            return None
        if balance <= 0:
            return None
        return Holding(
            address=None,
            symbol="ETH",
            name="Ether",
            decimals=18,
            balance_raw=balance,
            image=ETH_IMAGE,
            source=DataSource.ONCHAIN,
        )

    async def _holdings(
        self,
        provider: CoinbasePortfolioProvider | BlockscoutProvider | None,
        address: str,
    ) -> list[Holding]:
        if provider is None or not provider.is_available():
            return []
        try:
            return await provider.get_holdings(address)
        except Exception as e:
            logger.warning(f"[{provider.SOURCE.value}] Holdings unavailable for {address}: {e}")
            return []

    def _price_key(self, holding: Holding) -> str:
        return holding.address.lower() if holding.address else self.wrapped_native

    async def _price(
        self,
        holdings: list[Holding],
    ) -> tuple[dict[str, float], dict[str, str]] | None:
        """
        Price every distinct address in chunks.

        Returns:
            (prices, images) keyed by lower-cased address, or None when
            every chunk failed
        """
        addresses: list[str] = []
        for holding in holdings:
            key = self._price_key(holding)
            if key not in addresses:
                addresses.append(key)

        chunks = chunked(addresses, self.chunk_size)
        results = await asyncio.gather(
            *(self.dexscreener.get_pairs(chunk) for chunk in chunks),
            return_exceptions=True,
        )

        prices: dict[str, float] = {}
        images: dict[str, str] = {}
        failures = 0
        for chunk, result in zip(chunks, results):
            if isinstance(result, Exception):
                failures += 1
                logger.warning(f"Pricing chunk of {len(chunk)} failed: {result}")
                continue
            chunk_prices, chunk_images = build_price_maps(result)
            for key, price in chunk_prices.items():
                prices.setdefault(key, price)
            for key, image in chunk_images.items():
                images.setdefault(key, image)

        if chunks and failures == len(chunks):
            return None
        return prices, images

    def _to_wallet_token(
        self,
        holding: Holding,
        price: float,
        pair_image: str | None,
    ) -> WalletToken:
        balance = format_units(holding.balance_raw, holding.decimals)
        if holding.address:
            token_id = holding.address.lower()
            image = pair_image or holding.image or CDN_IMAGE_URL.format(
                chain=self.chain, address=token_id
            )
        else:
            token_id = f"native:{holding.symbol.lower()}"
            image = holding.image or pair_image

        return WalletToken(
            id=token_id,
            symbol=holding.symbol,
            name=holding.name,
            image=image,
            current_price=price,
            address=holding.address,
            decimals=holding.decimals,
            source=holding.source,
            balance=balance,
            balance_raw=holding.balance_raw,
            value_usd=finite_or_zero(parse_decimal_or_zero(balance) * price),
        )
