"""CLI entry point for creator cap.

Usage:
    creator-cap compare ethereum bitcoin
    creator-cap compare 0xf5546bf64475b8ece6ac031e92e4f91a88d9dc5e bitcoin --amount 1000
    creator-cap compare pepe --market-cap 1e9 --output json
    creator-cap wallet vitalik.eth
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..core.config import CreatorCapConfig, reload_config
from ..core.exceptions import CreatorCapError, TokenNotFoundError
from ..orchestrator import CapComparisonOrchestrator
from ..output.audit_trail import AuditTrailFormatter
from ..output.formatters import JSONFormatter, TableFormatter

# Initialize app
app = typer.Typer(
    name="creator-cap",
    help="Value any token at another token's market cap",
    add_completion=False,
)

console = Console()

OUTPUT_FORMATS = ("table", "json")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )
    # Per-request lines from the HTTP stack are noise below debug
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load_config(config: Optional[Path]) -> CreatorCapConfig:
    try:
        return reload_config(config_file=config)
    except CreatorCapError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)


def _check_output(output: str) -> str:
    output_lower = output.lower()
    if output_lower not in OUTPUT_FORMATS:
        console.print(f"[red]Invalid output format: {output}[/]")
        console.print(f"Valid formats: {', '.join(OUTPUT_FORMATS)}")
        raise typer.Exit(1)
    return output_lower


def _run(
    config: CreatorCapConfig,
    action: Callable[[CapComparisonOrchestrator], Awaitable[Any]],
    audit: bool = False,
    verbose: bool = False,
) -> Any:
    """Run one orchestrator call inside a fresh event loop."""

    async def runner() -> Any:
        async with CapComparisonOrchestrator(config) as orchestrator:
            try:
                return await action(orchestrator)
            finally:
                if audit:
                    console.print(AuditTrailFormatter().format_summary(orchestrator.get_audit_trail()))

    try:
        return asyncio.run(runner())
    except TokenNotFoundError as e:
        console.print(f"[red]Token not found: {e.token_identifier}[/]")
        if e.sources_checked:
            console.print(f"[dim]Sources tried: {', '.join(e.sources_checked)}[/]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)


def _emit(formatted: str, output: str) -> None:
    if output == "table":
        console.print(formatted)
    else:
        print(formatted)


@app.command()
def compare(
    token_a: str = typer.Argument(..., help="Token to value (symbol, id, address, name)"),
    token_b: Optional[str] = typer.Argument(None, help="Token whose market cap is applied"),
    ath: bool = typer.Option(
        False,
        "--ath",
        help="Use token B's all-time-high market cap",
    ),
    amount: float = typer.Option(
        1.0,
        "--amount", "-n",
        help="Number of token A units held",
    ),
    market_cap: Optional[float] = typer.Option(
        None,
        "--market-cap", "-m",
        help="Custom target market cap (USD) instead of token B",
    ),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save", "-s",
        help="Save output to file",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML config file",
    ),
    audit: bool = typer.Option(
        False,
        "--audit", "-a",
        help="Print every upstream call made",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Show what token A would be worth at token B's market cap.

    Examples:
        creator-cap compare ethereum bitcoin
        creator-cap compare pepe bitcoin --ath --amount 1000000
        creator-cap compare scottexplores.base.eth --market-cap 1e9
    """
    setup_logging(verbose)
    output_lower = _check_output(output)

    if token_b is None and market_cap is None:
        console.print("[red]Provide TOKEN_B or --market-cap[/]")
        raise typer.Exit(1)
    if amount < 0:
        console.print("[red]--amount must be non-negative[/]")
        raise typer.Exit(1)

    cfg = _load_config(config)
    result = _run(
        cfg,
        lambda o: o.compare(
            token_a,
            token_b,
            use_all_time_high=ath,
            amount=amount,
            target_market_cap=market_cap,
        ),
        audit=audit,
        verbose=verbose,
    )

    formatter = JSONFormatter() if output_lower == "json" else TableFormatter()
    formatted = formatter.format(result) if output_lower == "json" else formatter.format_comparison(result)
    _emit(formatted, output_lower)

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        save_path = save.with_suffix(".json")
        JSONFormatter().format_to_file(result, str(save_path))
        console.print(f"[green]Saved to {save_path}[/]")


@app.command()
def resolve(
    identifier: str = typer.Argument(..., help="Symbol, id, address, ENS name or handle"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config file"),
    audit: bool = typer.Option(False, "--audit", "-a", help="Print every upstream call made"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Resolve an identifier to its canonical token record."""
    setup_logging(verbose)
    output_lower = _check_output(output)
    cfg = _load_config(config)

    async def action(orchestrator: CapComparisonOrchestrator) -> Any:
        token = await orchestrator.resolve(identifier)
        if token is None:
            raise TokenNotFoundError(identifier, orchestrator.resolver.attempted_sources(identifier))
        return token

    token = _run(cfg, action, audit=audit, verbose=verbose)
    if output_lower == "json":
        _emit(JSONFormatter().format(token), output_lower)
    else:
        _emit(TableFormatter().format_tokens([token], title="Resolved Token"), output_lower)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search text (at least 2 characters)"),
    creators: bool = typer.Option(
        False,
        "--creators",
        help="Search the creator coin discovery pool instead of the market",
    ),
    limit: int = typer.Option(5, "--limit", "-l", help="Maximum results"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Autocomplete token names and symbols."""
    setup_logging(verbose)
    output_lower = _check_output(output)
    cfg = _load_config(config)

    if creators:
        candidates = _run(cfg, lambda o: o.search_creators(query, limit), verbose=verbose)
        if output_lower == "json":
            _emit(JSONFormatter().format(candidates), output_lower)
            return
        if not candidates:
            console.print("[yellow]No creator coins matched[/]")
            return
        for candidate in candidates:
            console.print(
                f"[cyan]{candidate.symbol}[/] {candidate.name} "
                f"[dim]{candidate.address} ({candidate.listing})[/]"
            )
        return

    tokens = _run(cfg, lambda o: o.search(query, limit), verbose=verbose)
    if output_lower == "json":
        _emit(JSONFormatter().format(tokens), output_lower)
    else:
        _emit(TableFormatter().format_tokens(tokens, title=f"Results for '{query}'"), output_lower)


@app.command()
def top(
    limit: int = typer.Option(20, "--limit", "-l", help="Number of tokens"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Market category id"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List top tokens by market cap, stablecoins excluded."""
    setup_logging(verbose)
    output_lower = _check_output(output)
    cfg = _load_config(config)

    tokens = _run(cfg, lambda o: o.top_tokens(limit, category), verbose=verbose)
    if output_lower == "json":
        _emit(JSONFormatter().format(tokens), output_lower)
    else:
        _emit(TableFormatter().format_tokens(tokens, title="Top Tokens"), output_lower)


@app.command()
def wallet(
    address: str = typer.Argument(..., help="Wallet address or ENS / basename"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config file"),
    audit: bool = typer.Option(False, "--audit", "-a", help="Print every upstream call made"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Show a wallet's priced holdings, highest value first."""
    setup_logging(verbose)
    output_lower = _check_output(output)
    cfg = _load_config(config)

    tokens = _run(cfg, lambda o: o.wallet_tokens(address), audit=audit, verbose=verbose)
    if output_lower == "json":
        _emit(JSONFormatter().format(tokens), output_lower)
    else:
        _emit(TableFormatter().format_wallet(tokens, address), output_lower)


@app.command()
def creator(
    identifier: str = typer.Argument(..., help="Creator coin address, basename, ENS name or handle"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config file"),
    audit: bool = typer.Option(False, "--audit", "-a", help="Print every upstream call made"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Show creator coin supply, market cap and creator profile."""
    setup_logging(verbose)
    output_lower = _check_output(output)
    cfg = _load_config(config)

    details = _run(cfg, lambda o: o.creator_coin(identifier), audit=audit, verbose=verbose)
    if details is None:
        console.print(f"[red]No creator coin found for {identifier}[/]")
        raise typer.Exit(1)

    if output_lower == "json":
        _emit(JSONFormatter().format(details), output_lower)
    else:
        _emit(TableFormatter().format_creator(details), output_lower)


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"Creator Cap v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
