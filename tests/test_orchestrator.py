"""Tests for the orchestrator wiring, with every provider stubbed."""

import pytest

from conftest import (
    CREATOR_COIN,
    WALLET,
    StubCoinGecko,
    StubDexScreener,
    StubHoldings,
    StubNames,
    StubOnchain,
    StubZora,
    dex_pair,
)
from creatorcap.core.config import CreatorCapConfig
from creatorcap.core.exceptions import TokenNotFoundError
from creatorcap.core.models import Holding
from creatorcap.orchestrator import CapComparisonOrchestrator
from creatorcap.providers.onchain import Erc20Metadata


@pytest.fixture
def providers(eth_token, btc_token):
    metadata = Erc20Metadata(
        address=CREATOR_COIN,
        name="scottexplores",
        symbol="scottexplores",
        total_supply_raw=1_000_000_000 * 10**18,
    )
    return {
        "coingecko": StubCoinGecko(by_id={"ethereum": eth_token, "bitcoin": btc_token}, btc_price=95_000),
        "dexscreener": StubDexScreener(pairs={CREATOR_COIN: [dex_pair(CREATOR_COIN, 0.001, "scottexplores")]}),
        "zora": StubZora(),
        "names": StubNames(records={"wallet.eth": WALLET}),
        "onchain": StubOnchain(metadata={CREATOR_COIN: metadata}),
        "portfolio": StubHoldings(available=False),
        "blockscout": StubHoldings([
            Holding(address=CREATOR_COIN, symbol="scottexplores", name="scottexplores", balance_raw=10**21),
        ]),
    }


@pytest.fixture
def orchestrator(providers) -> CapComparisonOrchestrator:
    return CapComparisonOrchestrator(CreatorCapConfig(), **providers)


class TestCapComparisonOrchestrator:
    """End-to-end flows over stub providers."""

    @pytest.mark.asyncio
    async def test_compare_two_tokens(self, orchestrator):
        async with orchestrator:
            result = await orchestrator.compare("ethereum", "bitcoin")

        assert result.token_a.symbol == "eth"
        assert result.token_b.symbol == "btc"
        assert result.valuation.multiplier == pytest.approx(1_800_000_000_000 / 310_000_000_000)

    @pytest.mark.asyncio
    async def test_compare_against_custom_market_cap(self, orchestrator):
        result = await orchestrator.compare("ethereum", target_market_cap=620_000_000_000, amount=2)

        assert result.token_b is None
        assert result.valuation.multiplier == pytest.approx(2)
        assert result.valuation.total_value == pytest.approx(2 * 2600 * 2)

    @pytest.mark.asyncio
    async def test_unknown_token_raises_with_sources(self, orchestrator):
        with pytest.raises(TokenNotFoundError) as exc:
            await orchestrator.compare("nonexistent-coin", "bitcoin")

        assert exc.value.token_identifier == "nonexistent-coin"
        assert "market_by_id" in exc.value.sources_checked

    @pytest.mark.asyncio
    async def test_compare_requires_target(self, orchestrator):
        with pytest.raises(ValueError):
            await orchestrator.compare("ethereum")

    @pytest.mark.asyncio
    async def test_creator_coin_by_address(self, orchestrator):
        details = await orchestrator.creator_coin(CREATOR_COIN)

        assert details.token.market_cap == pytest.approx(500_000)
        assert details.creator.name == "Unknown"

    @pytest.mark.asyncio
    async def test_creator_coin_by_alias(self, providers):
        config = CreatorCapConfig(creator_aliases={"scott.base.eth": CREATOR_COIN})
        orchestrator = CapComparisonOrchestrator(config, **providers)

        details = await orchestrator.creator_coin("scott.base.eth")

        assert details is not None
        assert providers["names"].resolve_calls == []

    @pytest.mark.asyncio
    async def test_wallet_by_name(self, orchestrator):
        tokens = await orchestrator.wallet_tokens("wallet.eth")

        assert len(tokens) == 1
        assert tokens[0].balance == "1000"
        assert tokens[0].value_usd == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_wallet_unresolvable_name(self, orchestrator):
        assert await orchestrator.wallet_tokens("nobody.eth") == []


class TestCacheWiring:
    """Configured staleness windows and the clock reach every cache."""

    def test_configured_ttls_are_used(self, providers, fake_clock):
        config = CreatorCapConfig()
        config.apply_dict({"ttl": {"token": 5, "wallet": 7, "discovery": 9, "search": 11, "top_tokens": 13}})

        orchestrator = CapComparisonOrchestrator(config, clock=fake_clock, **providers)

        assert orchestrator.resolver.cache.ttl_seconds == 5
        assert orchestrator.wallet.cache.ttl_seconds == 7
        assert orchestrator.discovery.cache.ttl_seconds == 9
        assert orchestrator.market.search_cache.ttl_seconds == 11
        assert orchestrator.market.top_cache.ttl_seconds == 13

    @pytest.mark.asyncio
    async def test_token_window_follows_injected_clock(self, providers, fake_clock):
        config = CreatorCapConfig()
        config.apply_dict({"ttl": {"token": 5}})
        orchestrator = CapComparisonOrchestrator(config, clock=fake_clock, **providers)
        coingecko = providers["coingecko"]

        await orchestrator.resolve("ethereum")
        fake_clock.advance(4)
        await orchestrator.resolve("ethereum")
        assert coingecko.calls.count(("by_id", "ethereum")) == 1

        fake_clock.advance(2)
        await orchestrator.resolve("ethereum")
        assert coingecko.calls.count(("by_id", "ethereum")) == 2
