"""Tests for output formatters."""

import json

import pytest

from creatorcap.calculator.valuation import ValuationCalculator
from creatorcap.core.models import AuditEntry, ComparisonResult, TokenData, WalletToken
from creatorcap.core.types import DataSource
from creatorcap.output.audit_trail import AuditTrailFormatter
from creatorcap.output.formatters import (
    JSONFormatter,
    TableFormatter,
    format_market_cap,
    format_money,
    format_multiplier,
    format_percent_change,
)


@pytest.fixture
def comparison(eth_token, btc_token) -> ComparisonResult:
    valuation = ValuationCalculator().calculate(eth_token, btc_token, amount=2)
    return ComparisonResult(token_a=eth_token, token_b=btc_token, valuation=valuation)


class TestDisplayHelpers:
    """Tests for number rendering."""

    def test_format_multiplier(self):
        assert format_multiplier(5.806) == "5.81x"
        assert format_multiplier(0.001234) == "0.00123x"
        assert format_multiplier(0) == "0x"

    def test_format_money(self):
        assert format_money(1234.5) == "$1,234.50"
        assert format_money(0.5) == "$0.50"
        assert format_money(0.001234) == "$0.001234"
        assert format_money(0.00001234) == "$0.00001234"
        assert format_money(0) == "$0.00"

    def test_format_market_cap(self):
        assert format_market_cap(1_800_000_000_000) == "$1.80T"
        assert format_market_cap(310_000_000_000) == "$310.00B"
        assert format_market_cap(4_200_000) == "$4.20M"
        assert format_market_cap(950_000) == "$950.00K"
        assert format_market_cap(812) == "$812"

    def test_format_percent_change(self):
        assert format_percent_change(480.6) == "+480.60%"
        assert format_percent_change(-50) == "-50.00%"


class TestJSONFormatter:
    """Tests for JSON output."""

    def test_comparison_round_trips_to_dict(self, comparison):
        data = json.loads(JSONFormatter().format(comparison))

        assert data["token_a"]["symbol"] == "eth"
        assert data["token_a"]["source"] == "coingecko"
        assert data["valuation"]["amount"] == 2
        assert isinstance(data["calculated_at"], str)

    def test_list_and_none(self, eth_token):
        assert json.loads(JSONFormatter().format([eth_token]))[0]["id"] == "ethereum"
        assert JSONFormatter().format(None) == "null"


class TestTableFormatter:
    """Tests for rich table output (colors off)."""

    def test_comparison_table(self, comparison):
        output = TableFormatter(color=False).format_comparison(comparison)

        assert "Market Cap Comparison" in output
        assert "ETH" in output
        assert "BTC market cap" in output
        assert "$1.80T" in output

    def test_empty_token_list(self):
        assert "No results" in TableFormatter(color=False).format_tokens([])

    def test_wallet_total(self):
        tokens = [
            WalletToken(id="a", symbol="AAA", name="A", balance="2", balance_raw=2, current_price=1.5, value_usd=3.0),
            WalletToken(id="b", symbol="BBB", name="B", balance="1", balance_raw=1, current_price=1.0, value_usd=1.0),
        ]
        output = TableFormatter(color=False, width=120).format_wallet(tokens, "0xabc")

        assert "TOTAL" in output
        assert "$4.00" in output


class TestAuditTrailFormatter:
    """Tests for the audit summary."""

    def test_summary_groups_by_source(self):
        entries = [
            AuditEntry(source=DataSource.COINGECKO, action="fetch", endpoint="/coins/markets"),
            AuditEntry(source=DataSource.COINGECKO, action="fetch", endpoint="/search", success=False, error_message="HTTP 500"),
            AuditEntry(source=DataSource.DEXSCREENER, action="fetch", endpoint="/latest/dex/tokens/0x1"),
        ]

        summary = AuditTrailFormatter().format_summary(entries)

        assert "coingecko: OK" in summary
        assert "Calls: 2 (1 successful)" in summary
        assert "Error: HTTP 500" in summary

    def test_empty_trail(self):
        assert "No upstream calls" in AuditTrailFormatter().format_summary([])
