"""Tests for wallet holdings aggregation."""

import pytest

from conftest import (
    USDC_BASE,
    WALLET,
    StubDexScreener,
    StubHoldings,
    StubOnchain,
    dex_pair,
)
from creatorcap.core.models import Holding
from creatorcap.core.types import DataSource
from creatorcap.wallet.holdings import WETH_BASE, WalletHoldingsAggregator, chunked, merge_holdings

DEGEN = "0x4ed4E862860beD51a9570b96d89aF5E1B0Efefed"


def holding(address: str | None, symbol: str, raw: int, decimals: int = 18, **extra) -> Holding:
    return Holding(address=address, symbol=symbol, name=symbol, decimals=decimals, balance_raw=raw, **extra)


class TestMergeHoldings:
    """Tests for merging holdings across sources."""

    def test_same_address_different_case_is_one_entry(self):
        portfolio = [holding(USDC_BASE, "USDC", 5_000_000, decimals=6, source=DataSource.COINBASE_PORTFOLIO)]
        explorer = [holding(USDC_BASE.lower(), "USDC", 5_000_000, decimals=6, source=DataSource.BLOCKSCOUT)]

        merged = merge_holdings([portfolio, explorer])

        assert len(merged) == 1
        assert merged[0].source == DataSource.COINBASE_PORTFOLIO

    def test_zero_balances_are_dropped(self):
        merged = merge_holdings([[holding(USDC_BASE, "USDC", 0), holding(DEGEN, "DEGEN", 1)]])
        assert [h.symbol for h in merged] == ["DEGEN"]

    def test_native_dedupes_by_symbol(self):
        merged = merge_holdings([[holding(None, "ETH", 10)], [holding(None, "eth", 10)]])
        assert len(merged) == 1

    def test_chunked(self):
        assert chunked(["a", "b", "c"], 2) == [["a", "b"], ["c"]]


class TestWalletHoldingsAggregator:
    """Tests for the priced, sorted wallet listing."""

    @pytest.mark.asyncio
    async def test_duplicate_sources_produce_single_sorted_entry(self):
        """Two sources reporting one contract in different casing yield one row."""
        dex = StubDexScreener(pairs={
            USDC_BASE.lower(): [dex_pair(USDC_BASE, 1.0, "USDC")],
            DEGEN.lower(): [dex_pair(DEGEN, 0.01, "DEGEN", image="https://img/degen.png")],
        })
        aggregator = WalletHoldingsAggregator(
            dexscreener=dex,
            portfolio=StubHoldings([holding(USDC_BASE, "USDC", 5_000_000, decimals=6)]),
            blockscout=StubHoldings([
                holding(USDC_BASE.lower(), "USDC", 5_000_000, decimals=6),
                holding(DEGEN, "DEGEN", 100 * 10**18),
            ]),
        )

        tokens = await aggregator.load_wallet_tokens(WALLET)

        usdc_rows = [t for t in tokens if t.address and t.address.lower() == USDC_BASE.lower()]
        assert len(usdc_rows) == 1
        assert [t.symbol for t in tokens] == ["USDC", "DEGEN"]
        assert tokens[0].value_usd == pytest.approx(5.0)
        assert tokens[1].value_usd == pytest.approx(1.0)
        assert tokens[1].image == "https://img/degen.png"

    @pytest.mark.asyncio
    async def test_native_balance_priced_with_wrapped_token(self):
        dex = StubDexScreener(pairs={WETH_BASE: [dex_pair(WETH_BASE, 2000.0, "WETH")]})
        aggregator = WalletHoldingsAggregator(
            dexscreener=dex,
            onchain=StubOnchain(native_balance=2 * 10**18),
        )

        tokens = await aggregator.load_wallet_tokens(WALLET)

        assert len(tokens) == 1
        assert tokens[0].id == "native:eth"
        assert tokens[0].balance == "2"
        assert tokens[0].value_usd == pytest.approx(4000.0)

    @pytest.mark.asyncio
    async def test_pricing_failure_returns_unsorted(self):
        aggregator = WalletHoldingsAggregator(
            dexscreener=StubDexScreener(fail=True),
            blockscout=StubHoldings([
                holding(DEGEN, "DEGEN", 1),
                holding(USDC_BASE, "USDC", 10**9, decimals=6),
            ]),
        )

        tokens = await aggregator.load_wallet_tokens(WALLET)

        assert [t.symbol for t in tokens] == ["DEGEN", "USDC"]
        assert all(t.value_usd == 0 for t in tokens)

    @pytest.mark.asyncio
    async def test_failed_source_contributes_nothing(self):
        aggregator = WalletHoldingsAggregator(
            dexscreener=StubDexScreener(),
            portfolio=StubHoldings(fail=True),
            blockscout=StubHoldings([holding(DEGEN, "DEGEN", 10**18)]),
            onchain=StubOnchain(fail_native=True),
        )

        tokens = await aggregator.load_wallet_tokens(WALLET)
        assert [t.symbol for t in tokens] == ["DEGEN"]

    @pytest.mark.asyncio
    async def test_unavailable_portfolio_is_skipped(self):
        portfolio = StubHoldings([holding(DEGEN, "DEGEN", 10**18)], available=False)
        aggregator = WalletHoldingsAggregator(dexscreener=StubDexScreener(), portfolio=portfolio)

        assert await aggregator.load_wallet_tokens(WALLET) == []

    @pytest.mark.asyncio
    async def test_pricing_is_chunked(self):
        addresses = [f"0x{i:040x}" for i in range(1, 66)]
        dex = StubDexScreener()
        aggregator = WalletHoldingsAggregator(
            dexscreener=dex,
            blockscout=StubHoldings([holding(a, f"T{i}", 10**18) for i, a in enumerate(addresses)]),
        )

        await aggregator.load_wallet_tokens(WALLET)

        assert [len(call) for call in dex.pair_calls] == [30, 30, 5]

    @pytest.mark.asyncio
    async def test_image_falls_back_to_cdn(self):
        aggregator = WalletHoldingsAggregator(
            dexscreener=StubDexScreener(),
            blockscout=StubHoldings([holding(DEGEN, "DEGEN", 10**18)]),
        )

        tokens = await aggregator.load_wallet_tokens(WALLET)
        assert tokens[0].image == f"https://dd.dexscreener.com/ds-data/tokens/base/{DEGEN.lower()}.png"

    @pytest.mark.asyncio
    async def test_invalid_wallet_address(self):
        dex = StubDexScreener()
        aggregator = WalletHoldingsAggregator(dexscreener=dex)

        assert await aggregator.load_wallet_tokens("0x1234") == []
        assert dex.pair_calls == []
