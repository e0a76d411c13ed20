"""Token resolution - turns any identifier into one canonical TokenData.

This module handles the ambiguity of token identification:
- User might provide a CoinGecko id (ethereum), a symbol (eth), a
  contract address, an ENS name or basename, or a creator handle
- Each kind has its own ordered chain of sources; the first source that
  returns a record with a symbol wins
- Any source failure means "try the next one"; total failure is None
"""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence

from ..core.cache import QueryCache
from ..core.config import DEFAULT_FALLBACK_ORDER
from ..core.models import ResolutionQuery, TokenData
from ..core.types import IdentifierKind, ResolutionStrategy
from ..discovery.pool import DiscoveryAggregator
from ..providers.coingecko import CoinGeckoProvider
from ..providers.dexscreener import DexScreenerProvider
from ..providers.names import NameRegistryProvider
from ..providers.zora import ZoraProvider
from .creator_coin import CreatorCoinAggregator
from .identifiers import classify, is_address
from .strategies import ChainOutcome, first_success

logger = logging.getLogger(__name__)

StrategyFn = Callable[[str], Awaitable[TokenData | None]]

# identifiers whose last attempt list is kept for not-found reporting
MAX_TRACKED_ATTEMPTS = 256


def has_symbol(token: TokenData) -> bool:
    return bool(token.symbol.strip())


def pick_search_match(results: Sequence[TokenData], query: str) -> TokenData | None:
    """
    Choose among search results: exact symbol match first (highest rank
    wins ties), otherwise the first result.
    """
    if not results:
        return None
    exact = [r for r in results if r.same_symbol(query)]
    if len(exact) > 1:
        exact.sort(key=lambda r: r.market_cap_rank or 9999)
        logger.warning(
            f"Multiple tokens with symbol '{query}', using highest ranked: {exact[0].id}"
        )
    if exact:
        return exact[0]
    logger.info(f"No exact symbol match for '{query}', using best search result: {results[0].id}")
    return results[0]


class TokenResolver:
    """Resolves identifiers through per-kind fallback chains."""

    def __init__(
        self,
        coingecko: CoinGeckoProvider | None = None,
        dexscreener: DexScreenerProvider | None = None,
        zora: ZoraProvider | None = None,
        creator_coins: CreatorCoinAggregator | None = None,
        names: NameRegistryProvider | None = None,
        discovery: DiscoveryAggregator | None = None,
        fallback_order: Mapping[IdentifierKind, Sequence[ResolutionStrategy]] | None = None,
        creator_aliases: Mapping[str, str] | None = None,
        cache: QueryCache | None = None,
        ttl_seconds: float = 60.0,
    ):
        """
        Initialize the token resolver.

        Any provider may be omitted; strategies that need it are skipped.

        Args:
            fallback_order: Strategy order per identifier kind
            creator_aliases: name -> token address, checked before any lookup
            cache: Cache owning resolved records (a private one by default)
            ttl_seconds: Staleness window for a private cache
        """
        self.coingecko = coingecko
        self.dexscreener = dexscreener
        self.zora = zora
        self.creator_coins = creator_coins
        self.names = names
        self.discovery = discovery
        self.fallback_order = {
            kind: list(steps)
            for kind, steps in (fallback_order or DEFAULT_FALLBACK_ORDER).items()
        }
        self.creator_aliases = {k.lower(): v for k, v in (creator_aliases or {}).items()}
        self.cache = cache if cache is not None else QueryCache(ttl_seconds, name="token")
        self._attempts: dict[str, list[str]] = {}

        self._strategies: dict[ResolutionStrategy, tuple[object | None, StrategyFn]] = {
            ResolutionStrategy.CREATOR_REGISTRY: (zora, self._from_creator_registry),
            ResolutionStrategy.CREATOR_COIN: (creator_coins, self._from_creator_coin),
            ResolutionStrategy.MARKET_BY_CONTRACT: (coingecko, self._from_market_by_contract),
            ResolutionStrategy.DEX_PAIR: (dexscreener, self._from_dex_pair),
            ResolutionStrategy.MARKET_BY_ID: (coingecko, self._from_market_by_id),
            ResolutionStrategy.MARKET_SEARCH: (coingecko, self._from_market_search),
            ResolutionStrategy.DISCOVERY_POOL: (discovery, self._from_discovery_pool),
            ResolutionStrategy.CREATOR_PROFILE: (zora, self._from_creator_profile),
        }

    async def resolve(self, identifier: str) -> TokenData | None:
        """
        Resolve an identifier to canonical TokenData.

        Never raises: every failure path ends in None. Results are cached
        per normalized identifier for the staleness window, and concurrent
        resolves of the same identifier share one lookup.
        """
        query = classify(identifier)
        if not query.normalized:
            return None
        if query.kind == IdentifierKind.INVALID_ADDRESS:
            logger.info(f"Rejecting malformed address {identifier!r}")
            return None

        try:
            return await self.cache.get_or_fetch(
                f"token:{query.normalized}",
                lambda: self._resolve_query(query),
            )
        except Exception as e:
            logger.warning(f"Resolution of {identifier!r} failed: {e}")
            return None

    def attempted_sources(self, identifier: str) -> list[str]:
        """Strategy names tried during the last uncached resolve of ``identifier``."""
        return list(self._attempts.get(classify(identifier).normalized, []))

    def _start_attempts(self, key: str) -> None:
        self._attempts.pop(key, None)
        while len(self._attempts) >= MAX_TRACKED_ATTEMPTS:
            del self._attempts[next(iter(self._attempts))]
        self._attempts[key] = []

    async def _resolve_query(self, query: ResolutionQuery) -> TokenData | None:
        logger.info(f"Resolving token: {query.normalized} ({query.kind.value})")
        self._start_attempts(query.normalized)

        alias = self.creator_aliases.get(query.normalized)
        if alias:
            logger.debug(f"Alias {query.normalized} -> {alias}")
            return await self._resolve_address(alias, query.normalized)

        if query.kind == IdentifierKind.ADDRESS:
            return await self._resolve_address(query.normalized, query.normalized)

        if query.kind == IdentifierKind.ENS_NAME:
            return await self._resolve_name(query)

        outcome = await self._run_chain(query.kind, query.normalized)
        self._attempts[query.normalized].extend(outcome.attempted)
        return outcome.value

    async def _resolve_name(self, query: ResolutionQuery) -> TokenData | None:
        """ENS-like names: a failed name lookup is terminal."""
        if self.names is None:
            logger.info(f"No name registry configured, cannot resolve {query.normalized}")
            return None
        try:
            address = await self.names.resolve(query.normalized)
        except Exception as e:
            logger.warning(f"Name resolution failed for {query.normalized}: {e}")
            return None
        if not address:
            logger.info(f"Name {query.normalized} has no address record")
            return None

        # The name usually points at a wallet; its creator coin comes first
        coin_address = await self._profile_coin_address(address)
        for candidate in (coin_address, address):
            if not candidate:
                continue
            token = await self._resolve_address(candidate, query.normalized)
            if token is not None:
                return token
        return None

    async def _resolve_address(self, address: str, attempts_key: str) -> TokenData | None:
        if not is_address(address):
            logger.info(f"Skipping malformed address {address!r}")
            return None
        outcome = await self._run_chain(IdentifierKind.ADDRESS, address)
        self._attempts.setdefault(attempts_key, []).extend(outcome.attempted)
        return outcome.value

    async def _run_chain(self, kind: IdentifierKind, subject: str) -> ChainOutcome:
        strategies = []
        for step in self.fallback_order.get(kind, []):
            provider, fn = self._strategies[step]
            if provider is None:
                continue
            strategies.append((step.value, fn))
        return await first_success(subject, strategies, accept=has_symbol)

    async def _profile_coin_address(self, identifier: str) -> str | None:
        if self.zora is None:
            return None
        try:
            return await self.zora.get_profile_coin_address(identifier)
        except Exception as e:
            logger.debug(f"Profile lookup failed for {identifier}: {e}")
            return None

    # Strategies

    async def _from_creator_registry(self, address: str) -> TokenData | None:
        return await self.zora.get_creator_token(address)

    async def _from_creator_coin(self, address: str) -> TokenData | None:
        return await self.creator_coins.get_token(address)

    async def _from_market_by_contract(self, address: str) -> TokenData | None:
        return await self.coingecko.get_token_by_contract(address)

    async def _from_dex_pair(self, address: str) -> TokenData | None:
        return await self.dexscreener.get_token_by_address(address)

    async def _from_market_by_id(self, coin_id: str) -> TokenData | None:
        return await self.coingecko.get_token_by_id(coin_id)

    async def _from_market_search(self, text: str) -> TokenData | None:
        match = pick_search_match(await self.coingecko.search(text), text)
        if match is None:
            return None
        # search rows carry no prices
        full = await self.coingecko.get_token_by_id(match.id)
        return full or match

    async def _from_discovery_pool(self, text: str) -> TokenData | None:
        candidates = await self.discovery.search(text)
        if not candidates:
            return None
        exact = [c for c in candidates if text in (c.symbol.lower(), c.name.lower())]
        candidate = exact[0] if exact else candidates[0]
        logger.debug(f"Discovery pool matched {text!r} to {candidate.symbol} ({candidate.address})")
        outcome = await self._run_chain(IdentifierKind.ADDRESS, candidate.address)
        return outcome.value

    async def _from_creator_profile(self, text: str) -> TokenData | None:
        address = await self.zora.get_profile_coin_address(text.lstrip("@"))
        if not address:
            return None
        outcome = await self._run_chain(IdentifierKind.ADDRESS, address)
        return outcome.value
