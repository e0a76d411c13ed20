"""Main orchestrator wiring providers, resolvers and aggregators.

Builds every adapter from one CreatorCapConfig, shares a single
httpx.AsyncClient among the HTTP adapters, and exposes the operations the
CLI (or any other presentation layer) needs.
"""

import asyncio
import logging
import time
from typing import Any

import httpx

from .calculator.valuation import ValuationCalculator
from .core.cache import Clock, QueryCache
from .core.config import CreatorCapConfig, get_config
from .core.exceptions import TokenNotFoundError
from .core.models import (
    AuditEntry,
    ComparisonResult,
    CreatorCoinDetails,
    DiscoveryCandidate,
    TokenData,
    WalletToken,
)
from .core.types import IdentifierKind
from .discovery.market import MarketListings
from .discovery.pool import DiscoveryAggregator
from .providers.base import BaseProvider
from .providers.blockscout import BlockscoutProvider
from .providers.coingecko import CoinGeckoProvider
from .providers.dexscreener import DexScreenerProvider
from .providers.names import NameRegistryProvider
from .providers.onchain import OnchainProvider
from .providers.portfolio import CoinbasePortfolioProvider
from .providers.zora import ZoraProvider
from .resolution.creator_coin import CreatorCoinAggregator
from .resolution.identifiers import classify
from .resolution.token_resolver import TokenResolver
from .wallet.holdings import WalletHoldingsAggregator

logger = logging.getLogger(__name__)


class CapComparisonOrchestrator:
    """Entry point for comparisons, listings, wallets and creator coins."""

    def __init__(
        self,
        config: CreatorCapConfig | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Clock = time.monotonic,
        **providers: Any,
    ):
        """
        Initialize the orchestrator with all providers.

        Args:
            config: Configuration (the process-wide one by default)
            client: Shared HTTP client; created and owned when omitted
            clock: Time source for every cache
            **providers: Prebuilt providers overriding the defaults
                (coingecko, dexscreener, zora, onchain, names, portfolio,
                blockscout)
        """
        self.config = config or get_config()
        cfg = self.config

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=cfg.request_timeout)

        # Initialize providers
        self.coingecko: CoinGeckoProvider = providers.get("coingecko") or CoinGeckoProvider(
            api_key=cfg.coingecko_api_key, platform=cfg.chain, client=self.client
        )
        self.dexscreener: DexScreenerProvider = providers.get("dexscreener") or DexScreenerProvider(
            chain=cfg.chain, client=self.client
        )
        self.zora: ZoraProvider = providers.get("zora") or ZoraProvider(
            api_key=cfg.zora_api_key, client=self.client
        )
        self.portfolio: CoinbasePortfolioProvider = providers.get("portfolio") or CoinbasePortfolioProvider(
            api_key=cfg.cdp_api_key, network=cfg.chain, client=self.client
        )
        self.blockscout: BlockscoutProvider = providers.get("blockscout") or BlockscoutProvider(
            chain=cfg.chain, client=self.client
        )
        self.onchain: OnchainProvider = providers.get("onchain") or OnchainProvider(
            rpc_url=cfg.base_rpc_url, timeout=cfg.request_timeout
        )
        self.names: NameRegistryProvider = providers.get("names") or NameRegistryProvider(
            base_rpc_url=cfg.base_rpc_url,
            mainnet_rpc_url=cfg.mainnet_rpc_url,
            timeout=cfg.request_timeout,
        )

        # Initialize processors
        self.creator_coins = CreatorCoinAggregator(
            onchain=self.onchain,
            dexscreener=self.dexscreener,
            coingecko=self.coingecko,
            names=self.names,
            zora=self.zora,
            chain=cfg.chain,
        )
        self.discovery = DiscoveryAggregator(
            zora=self.zora,
            list_types=cfg.discovery_lists,
            cache=QueryCache(cfg.discovery_ttl, clock=clock, name="discovery"),
        )
        self.market = MarketListings(
            coingecko=self.coingecko,
            stablecoins=cfg.stablecoins,
            top_cache=QueryCache(cfg.top_tokens_ttl, clock=clock, name="top-tokens"),
            search_cache=QueryCache(cfg.search_ttl, clock=clock, name="search"),
        )
        self.resolver = TokenResolver(
            coingecko=self.coingecko,
            dexscreener=self.dexscreener,
            zora=self.zora,
            creator_coins=self.creator_coins,
            names=self.names,
            discovery=self.discovery,
            fallback_order=cfg.fallback_order,
            creator_aliases=cfg.creator_aliases,
            cache=QueryCache(cfg.token_ttl, clock=clock, name="token"),
        )
        self.wallet = WalletHoldingsAggregator(
            dexscreener=self.dexscreener,
            blockscout=self.blockscout,
            portfolio=self.portfolio,
            onchain=self.onchain,
            chain=cfg.chain,
            cache=QueryCache(cfg.wallet_ttl, clock=clock, name="wallet"),
        )
        self.valuation_calculator = ValuationCalculator()

    async def __aenter__(self) -> "CapComparisonOrchestrator":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for provider in self._providers():
            await provider.aclose()
        if self._owns_client:
            await self.client.aclose()

    def _providers(self) -> list[BaseProvider]:
        return [
            self.coingecko,
            self.dexscreener,
            self.zora,
            self.portfolio,
            self.blockscout,
            self.onchain,
            self.names,
        ]

    def get_audit_trail(self) -> list[AuditEntry]:
        """Audit entries from every provider, oldest first."""
        entries: list[AuditEntry] = []
        for provider in self._providers():
            entries.extend(provider.get_audit_trail())
        return sorted(entries, key=lambda e: e.timestamp)

    def clear_audit_trail(self) -> None:
        for provider in self._providers():
            provider.clear_audit_trail()

    async def resolve(self, identifier: str) -> TokenData | None:
        """Resolve any identifier to canonical TokenData, or None."""
        return await self.resolver.resolve(identifier)

    async def compare(
        self,
        token_a: str,
        token_b: str | None = None,
        use_all_time_high: bool = False,
        amount: float = 1.0,
        target_market_cap: float | None = None,
    ) -> ComparisonResult:
        """
        Value token A at token B's (or a custom) market cap.

        Raises:
            ValueError: neither token_b nor target_market_cap was given
            TokenNotFoundError: a required token could not be resolved
        """
        if token_b is None and target_market_cap is None:
            raise ValueError("Either token_b or target_market_cap is required")

        logger.info(f"Comparing {token_a} against {token_b or 'custom market cap'}")
        if token_b is not None:
            resolved_a, resolved_b = await asyncio.gather(
                self.resolver.resolve(token_a),
                self.resolver.resolve(token_b),
            )
        else:
            resolved_a, resolved_b = await self.resolver.resolve(token_a), None

        if resolved_a is None:
            raise TokenNotFoundError(token_a, self.resolver.attempted_sources(token_a))
        if token_b is not None and resolved_b is None and target_market_cap is None:
            raise TokenNotFoundError(token_b, self.resolver.attempted_sources(token_b))

        valuation = self.valuation_calculator.calculate(
            resolved_a,
            resolved_b,
            use_all_time_high=use_all_time_high,
            amount=amount,
            target_market_cap=target_market_cap,
        )
        return ComparisonResult(token_a=resolved_a, token_b=resolved_b, valuation=valuation)

    async def search(self, query: str, limit: int = 5) -> list[TokenData]:
        """Market search autocomplete."""
        return await self.market.autocomplete(query, limit)

    async def search_creators(self, query: str, limit: int = 5) -> list[DiscoveryCandidate]:
        """Prefix search over the creator coin discovery pool."""
        return await self.discovery.search(query, limit)

    async def top_tokens(self, limit: int = 100, category: str | None = None) -> list[TokenData]:
        return await self.market.top_tokens(limit, category)

    async def wallet_tokens(self, wallet: str) -> list[WalletToken]:
        """Priced holdings of a wallet address or ENS name."""
        address = await self._to_address(wallet, prefer_creator_coin=False)
        if address is None:
            logger.info(f"Could not resolve wallet {wallet!r}")
            return []
        return await self.wallet.load_wallet_tokens(address)

    async def creator_coin(self, identifier: str) -> CreatorCoinDetails | None:
        """Creator coin details for an address, alias, name or handle."""
        address = await self._to_address(identifier, prefer_creator_coin=True)
        if address is None:
            return None
        try:
            return await self.creator_coins.get_details(address)
        except Exception as e:
            logger.warning(f"Creator coin lookup failed for {identifier!r}: {e}")
            return None

    async def _to_address(self, identifier: str, prefer_creator_coin: bool) -> str | None:
        """Alias, address, name or handle to a chain address."""
        query = classify(identifier)
        alias = self.config.creator_aliases.get(query.normalized)
        if alias:
            return alias
        if query.kind == IdentifierKind.ADDRESS:
            return query.normalized

        address = None
        if query.kind == IdentifierKind.ENS_NAME:
            try:
                address = await self.names.resolve(query.normalized)
            except Exception as e:
                logger.warning(f"Name resolution failed for {query.normalized}: {e}")
                return None
            if address is None or not prefer_creator_coin:
                return address
        elif not prefer_creator_coin or query.kind == IdentifierKind.INVALID_ADDRESS:
            return None

        try:
            coin = await self.zora.get_profile_coin_address(address or query.normalized.lstrip("@"))
        except Exception as e:
            logger.debug(f"Profile lookup failed for {identifier!r}: {e}")
            coin = None
        return coin or address
