"""Output formatters for comparison, listing and wallet results.

Provides:
- Display helpers: multiplier, money, compact market cap, percent change
- JSON: machine-readable, complete data
- Table: human-readable CLI output (rich)
"""

import json
import logging
from datetime import datetime
from io import StringIO
from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.models import ComparisonResult, CreatorCoinDetails, TokenData, WalletToken

logger = logging.getLogger(__name__)

_COMPACT_UNITS = (
    (1e12, "T"),
    (1e9, "B"),
    (1e6, "M"),
    (1e3, "K"),
)


def format_multiplier(multiplier: float) -> str:
    """
    Render a multiplier; values under 0.01 keep three significant digits
    so they never show as "0.00x".
    """
    if multiplier == 0:
        return "0x"
    if abs(multiplier) < 0.01:
        return f"{multiplier:.3g}x"
    return f"{multiplier:,.2f}x"


def _trim_fraction(text: str, min_digits: int = 2) -> str:
    whole, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")
    if len(fraction) < min_digits:
        fraction = fraction.ljust(min_digits, "0")
    return f"{whole}.{fraction}"


def format_money(value: float) -> str:
    """
    Render a USD amount.

    >= $1: two decimals. Below $1: up to 6 fraction digits, or up to 10
    below $0.0001, trailing zeros trimmed to a minimum of two.
    """
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == 0:
        return "$0.00"
    if value >= 1:
        return f"{sign}${value:,.2f}"
    digits = 6 if value >= 0.0001 else 10
    return f"{sign}${_trim_fraction(f'{value:.{digits}f}')}"


def format_market_cap(value: float) -> str:
    """Compact market cap: $1.80T, $310.00B, $4.20M, $950.00K, $812."""
    for threshold, suffix in _COMPACT_UNITS:
        if value >= threshold:
            return f"${value / threshold:,.2f}{suffix}"
    return f"${value:,.0f}"


def format_percent_change(percent: float) -> str:
    return f"{percent:+,.2f}%"


class JSONFormatter:
    """Formats results as JSON."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def _serialize(self, obj: Any) -> Any:
        """Custom serialization for complex types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        if hasattr(obj, "model_dump"):
            return obj.model_dump()
        if hasattr(obj, "value"):
            # Enum
            return obj.value
        return str(obj)

    def format(self, result: BaseModel | list[BaseModel] | None) -> str:
        """Format one model, a list of models, or None as JSON."""
        if result is None:
            data: Any = None
        elif isinstance(result, list):
            data = [item.model_dump() for item in result]
        else:
            data = result.model_dump()
        return json.dumps(data, default=self._serialize, indent=self.indent)

    def format_to_file(self, result: BaseModel | list[BaseModel], filepath: str) -> None:
        """Write JSON to file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.format(result))


class TableFormatter:
    """Formats results as rich tables for CLI output."""

    def __init__(self, width: int = 100, color: bool = True):
        """
        Args:
            width: Maximum table width
            color: Emit ANSI colors (disable for files and tests)
        """
        self.width = width
        self.color = color

    def _console(self) -> tuple[Console, StringIO]:
        output = StringIO()
        console = Console(
            file=output,
            force_terminal=self.color,
            no_color=not self.color,
            width=self.width,
        )
        return console, output

    def format_comparison(self, result: ComparisonResult) -> str:
        console, output = self._console()
        a = result.token_a
        v = result.valuation

        if result.token_b is not None and not v.used_custom_market_cap:
            target_label = f"{result.token_b.display_symbol} market cap"
            if v.used_all_time_high:
                target_label += " at ATH"
        else:
            target_label = "custom market cap"

        style = "green" if v.is_upside else "red"
        console.print(Panel(
            f"[bold cyan]{a.display_symbol}[/] with the {target_label}\n"
            f"[bold {style}]{format_money(v.projected_price)}[/] "
            f"([{style}]{format_multiplier(v.multiplier)}[/], "
            f"{format_percent_change(v.percent_change)})",
            title="Market Cap Comparison",
            expand=False,
        ))

        table = Table(show_header=True)
        table.add_column("Token", style="cyan")
        table.add_column("Price", justify="right")
        table.add_column("Market Cap", justify="right")
        table.add_column("ATH", justify="right", style="dim")
        table.add_column("Source", style="dim")
        for token in (a, result.token_b):
            if token is None:
                continue
            table.add_row(
                f"{token.display_symbol} ({token.name})",
                format_money(token.current_price),
                format_market_cap(token.market_cap) if token.market_cap else "[yellow]Unknown[/]",
                format_money(token.ath) if token.ath else "-",
                token.source.value,
            )
        console.print(table)

        values = Table(show_header=False)
        values.add_column("Metric", style="cyan")
        values.add_column("Value", style="green")
        values.add_row("Target Market Cap", format_market_cap(v.target_market_cap))
        values.add_row("Multiplier", format_multiplier(v.multiplier))
        values.add_row("Projected Price", format_money(v.projected_price))
        values.add_row("Amount", f"{v.amount:,.6g}")
        values.add_row("Total Value", format_money(v.total_value))
        console.print(values)

        return output.getvalue()

    def format_tokens(self, tokens: list[TokenData], title: str = "Tokens") -> str:
        console, output = self._console()
        if not tokens:
            console.print("[yellow]No results[/]")
            return output.getvalue()

        table = Table(title=title)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Symbol", style="cyan")
        table.add_column("Name")
        table.add_column("Price", justify="right")
        table.add_column("Market Cap", justify="right", style="green")
        table.add_column("24h", justify="right")
        table.add_column("Id", style="dim")
        for token in tokens:
            change = token.price_change_percentage_24h
            change_style = "green" if change >= 0 else "red"
            table.add_row(
                str(token.market_cap_rank) if token.market_cap_rank else "-",
                token.display_symbol,
                token.name,
                format_money(token.current_price) if token.current_price else "-",
                format_market_cap(token.market_cap) if token.market_cap else "-",
                f"[{change_style}]{format_percent_change(change)}[/]" if change else "-",
                token.address or token.id,
            )
        console.print(table)
        return output.getvalue()

    def format_wallet(self, tokens: list[WalletToken], address: str) -> str:
        console, output = self._console()
        if not tokens:
            console.print(f"[yellow]No holdings found for {address}[/]")
            return output.getvalue()

        table = Table(title=f"Holdings of {address}")
        table.add_column("Symbol", style="cyan")
        table.add_column("Balance", justify="right")
        table.add_column("Price", justify="right")
        table.add_column("Value", justify="right", style="green")
        table.add_column("Source", style="dim")
        total = 0.0
        for token in tokens:
            total += token.value_usd
            table.add_row(
                token.display_symbol,
                token.balance,
                format_money(token.current_price) if token.current_price else "-",
                format_money(token.value_usd),
                token.source.value,
            )
        table.add_row("", "", "", "", "", end_section=True)
        table.add_row("[bold]TOTAL[/]", "", "", f"[bold]{format_money(total)}[/]", "")
        console.print(table)
        return output.getvalue()

    def format_creator(self, details: CreatorCoinDetails) -> str:
        console, output = self._console()
        token = details.token
        creator = details.creator

        console.print(Panel(
            f"[bold cyan]{token.display_symbol}[/] - {token.name}\n"
            f"[dim]{token.address}[/]\n"
            f"Creator: {creator.name}",
            title="Creator Coin",
            expand=False,
        ))

        table = Table(show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Price", format_money(token.current_price))
        table.add_row("Total Supply", f"{details.total_supply:,.0f}")
        table.add_row("Circulating Supply", f"{details.circulating_supply:,.0f}")
        table.add_row("Market Cap", format_market_cap(token.market_cap))
        table.add_row("vs Bitcoin", f"{details.btc_market_cap_ratio * 100:.6f}%")
        if creator.ens:
            table.add_row("ENS", creator.ens)
        console.print(table)

        if details.insights:
            console.print(f"[dim]{details.insights}[/]")
        return output.getvalue()
