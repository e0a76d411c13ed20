"""Tests for token resolution fallback chains."""

import pytest

from conftest import (
    CREATOR_COIN,
    WALLET,
    StubCoinGecko,
    StubDexScreener,
    StubNames,
    StubZora,
)
from creatorcap.core.cache import QueryCache
from creatorcap.core.models import DiscoveryCandidate, TokenData
from creatorcap.core.types import DataSource, IdentifierKind, ResolutionStrategy
from creatorcap.discovery.pool import DiscoveryAggregator
from creatorcap.resolution import token_resolver
from creatorcap.resolution.strategies import first_success
from creatorcap.resolution.token_resolver import TokenResolver, pick_search_match


def dex_token(address: str, symbol: str = "DEX", market_cap: float = 1_000_000) -> TokenData:
    return TokenData(
        id=address.lower(),
        symbol=symbol,
        name=symbol,
        current_price=0.5,
        market_cap=market_cap,
        address=address,
        source=DataSource.DEXSCREENER,
    )


class TestFirstSuccess:
    """Tests for the generic ordered fallback combinator."""

    @pytest.mark.asyncio
    async def test_stops_at_first_result(self):
        calls = []

        def strategy(name, value):
            async def run(query):
                calls.append(name)
                return value
            return run

        outcome = await first_success(
            "q",
            [("a", strategy("a", None)), ("b", strategy("b", "B")), ("c", strategy("c", "C"))],
        )

        assert outcome.value == "B"
        assert outcome.winner == "b"
        assert calls == ["a", "b"]

    @pytest.mark.asyncio
    async def test_exception_moves_to_next(self):
        async def broken(query):
            raise RuntimeError("down")

        async def works(query):
            return "ok"

        outcome = await first_success("q", [("broken", broken), ("works", works)])

        assert outcome.value == "ok"
        assert "broken" in outcome.errors

    @pytest.mark.asyncio
    async def test_rejected_value_counts_as_empty(self):
        async def empty_symbol(query):
            return ""

        outcome = await first_success("q", [("x", empty_symbol)], accept=bool)
        assert outcome.found is False
        assert outcome.attempted == ["x"]


class TestPickSearchMatch:
    """Tests for choosing among search results."""

    def test_exact_symbol_wins(self):
        results = [
            TokenData(id="pepe-fork", symbol="pepe2", name="Pepe 2", market_cap_rank=10),
            TokenData(id="pepe", symbol="pepe", name="Pepe", market_cap_rank=40),
        ]
        assert pick_search_match(results, "PEPE").id == "pepe"

    def test_highest_rank_breaks_ties(self):
        results = [
            TokenData(id="unranked", symbol="uni", name="Unranked"),
            TokenData(id="uniswap", symbol="uni", name="Uniswap", market_cap_rank=20),
        ]
        assert pick_search_match(results, "uni").id == "uniswap"

    def test_falls_back_to_first_result(self):
        results = [TokenData(id="first", symbol="fst", name="First")]
        assert pick_search_match(results, "zzz").id == "first"
        assert pick_search_match([], "zzz") is None


class TestTokenResolver:
    """Tests for TokenResolver with stub providers."""

    @pytest.mark.asyncio
    async def test_bare_id_resolves_via_market(self, eth_token):
        resolver = TokenResolver(coingecko=StubCoinGecko(by_id={"ethereum": eth_token}))

        token = await resolver.resolve("ethereum")

        assert token is not None
        assert token.symbol == "eth"
        assert token.market_cap > 0

    @pytest.mark.asyncio
    async def test_malformed_address_makes_no_calls(self):
        coingecko = StubCoinGecko()
        dex = StubDexScreener()
        resolver = TokenResolver(coingecko=coingecko, dexscreener=dex)

        assert await resolver.resolve("0xInvalidLength") is None
        assert coingecko.calls == []
        assert dex.pair_calls == []

    @pytest.mark.asyncio
    async def test_symbol_falls_back_to_search(self, eth_token):
        """No id match: search picks the exact symbol then fetches full data."""
        search_row = TokenData(id="ethereum", symbol="eth", name="Ethereum", market_cap_rank=2)
        coingecko = StubCoinGecko(
            by_id={"ethereum": eth_token},
            search_results={"eth": [search_row]},
        )
        resolver = TokenResolver(coingecko=coingecko)

        token = await resolver.resolve("ETH")

        assert token == eth_token
        assert resolver.attempted_sources("eth") == ["market_by_id", "market_search"]

    @pytest.mark.asyncio
    async def test_address_chain_order(self):
        """Registry first; later sources only run after earlier ones miss."""
        address = "0x" + "ab" * 20
        coingecko = StubCoinGecko()
        dex = StubDexScreener(tokens={address: dex_token(address)})
        resolver = TokenResolver(coingecko=coingecko, dexscreener=dex, zora=StubZora())

        token = await resolver.resolve(address)

        assert token.source == DataSource.DEXSCREENER
        assert resolver.attempted_sources(address) == [
            "creator_registry",
            "market_by_contract",
            "dex_pair",
        ]
        assert ("by_contract", address) in coingecko.calls

    @pytest.mark.asyncio
    async def test_source_failure_tries_next(self):
        address = "0x" + "cd" * 20
        dex = StubDexScreener(tokens={address: dex_token(address)})
        resolver = TokenResolver(coingecko=StubCoinGecko(fail=True), dexscreener=dex)

        token = await resolver.resolve(address)
        assert token is not None
        assert token.symbol == "DEX"

    @pytest.mark.asyncio
    async def test_empty_symbol_is_rejected(self):
        """A record without a symbol never wins."""
        address = "0x" + "ef" * 20
        blank = TokenData(id=address, symbol="", name="", address=address)
        good = dex_token(address)
        resolver = TokenResolver(
            coingecko=StubCoinGecko(by_contract={address: blank}),
            dexscreener=StubDexScreener(tokens={address: good}),
        )

        assert await resolver.resolve(address) == good

    @pytest.mark.asyncio
    async def test_all_sources_fail(self):
        resolver = TokenResolver(
            coingecko=StubCoinGecko(fail=True),
            dexscreener=StubDexScreener(fail=True),
        )
        assert await resolver.resolve("nothing-here") is None

    @pytest.mark.asyncio
    async def test_name_resolution_failure_is_terminal(self, eth_token):
        """A failed name lookup does not fall through to search."""
        coingecko = StubCoinGecko(search_results={"vitalik.eth": [eth_token]})
        resolver = TokenResolver(coingecko=coingecko, names=StubNames(fail=True))

        assert await resolver.resolve("vitalik.eth") is None
        assert coingecko.calls == []

    @pytest.mark.asyncio
    async def test_name_prefers_profile_creator_coin(self, creator_token):
        names = StubNames(records={"scott.base.eth": WALLET})
        zora = StubZora(
            creator_tokens={CREATOR_COIN: creator_token},
            profiles={WALLET: CREATOR_COIN},
        )
        resolver = TokenResolver(zora=zora, names=names)

        token = await resolver.resolve("scott.base.eth")

        assert token == creator_token
        assert zora.profile_calls == [WALLET]

    @pytest.mark.asyncio
    async def test_alias_bypasses_lookup(self, creator_token):
        names = StubNames()
        resolver = TokenResolver(
            zora=StubZora(creator_tokens={CREATOR_COIN: creator_token}),
            names=names,
            creator_aliases={"scottexplores.base.eth": CREATOR_COIN},
        )

        assert await resolver.resolve("ScottExplores.base.eth") == creator_token
        assert names.resolve_calls == []

    @pytest.mark.asyncio
    async def test_non_creator_coin_is_skipped(self):
        """A registry record with the wrong discriminator defers to the next source."""

        class RejectingZora(StubZora):
            async def get_creator_token(self, address):
                raise ValueError("CONTENT coin, not a creator coin")

        address = "0x" + "12" * 20
        resolver = TokenResolver(
            zora=RejectingZora(),
            dexscreener=StubDexScreener(tokens={address: dex_token(address)}),
        )

        token = await resolver.resolve(address)
        assert token.source == DataSource.DEXSCREENER

    @pytest.mark.asyncio
    async def test_results_are_cached(self, eth_token, fake_clock):
        """Repeated resolves inside the window hit the cache."""
        coingecko = StubCoinGecko(by_id={"ethereum": eth_token})
        resolver = TokenResolver(coingecko=coingecko, cache=QueryCache(60, clock=fake_clock))

        first = await resolver.resolve("ethereum")
        second = await resolver.resolve("Ethereum")
        assert first == second
        assert len(coingecko.calls) == 1

        fake_clock.advance(61)
        await resolver.resolve("ethereum")
        assert len(coingecko.calls) == 2

    @pytest.mark.asyncio
    async def test_attempt_log_is_bounded(self, monkeypatch):
        """Only the most recent identifiers keep their attempt lists."""
        monkeypatch.setattr(token_resolver, "MAX_TRACKED_ATTEMPTS", 2)
        resolver = TokenResolver(coingecko=StubCoinGecko())

        for identifier in ("aaa", "bbb", "ccc"):
            assert await resolver.resolve(identifier) is None

        assert resolver.attempted_sources("aaa") == []
        assert resolver.attempted_sources("bbb") == ["market_by_id", "market_search"]
        assert resolver.attempted_sources("ccc") == ["market_by_id", "market_search"]

    @pytest.mark.asyncio
    async def test_custom_fallback_order(self, eth_token):
        coingecko = StubCoinGecko(
            by_id={"eth": eth_token},
            search_results={"eth": [eth_token]},
        )
        resolver = TokenResolver(
            coingecko=coingecko,
            fallback_order={IdentifierKind.SYMBOL_OR_ID: [ResolutionStrategy.MARKET_SEARCH]},
        )

        await resolver.resolve("eth")
        assert coingecko.calls[0] == ("search", "eth")

    @pytest.mark.asyncio
    async def test_free_text_via_discovery_pool(self, creator_token):
        candidate = DiscoveryCandidate(address=CREATOR_COIN, name="scottexplores", symbol="scottexplores")
        zora = StubZora(
            creator_tokens={CREATOR_COIN: creator_token},
            listings={"MOST_VALUABLE": [candidate]},
        )
        discovery = DiscoveryAggregator(zora, list_types=["MOST_VALUABLE"])
        resolver = TokenResolver(zora=zora, discovery=discovery)

        assert await resolver.resolve("scott explores") is None
        assert await resolver.resolve("scottexplores") == creator_token

    @pytest.mark.asyncio
    async def test_free_text_skips_live_search_by_default(self, eth_token):
        """Free text is matched locally; the market search is never queried."""
        coingecko = StubCoinGecko(search_results={"ether coin": [eth_token]})
        zora = StubZora()
        resolver = TokenResolver(
            coingecko=coingecko,
            zora=zora,
            discovery=DiscoveryAggregator(zora, list_types=["MOST_VALUABLE"]),
        )

        assert await resolver.resolve("ether coin") is None
        assert coingecko.calls == []
        assert "market_search" not in resolver.attempted_sources("ether coin")

    @pytest.mark.asyncio
    async def test_handle_via_creator_profile(self, creator_token):
        zora = StubZora(
            creator_tokens={CREATOR_COIN: creator_token},
            profiles={"scott": CREATOR_COIN},
        )
        resolver = TokenResolver(zora=zora)

        assert await resolver.resolve("@scott") == creator_token
