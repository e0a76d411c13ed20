"""Valuation engine: token A priced at token B's market cap.

All calculations use explicit formulas:
- Target Market Cap = market_cap_B (× ath_B / price_B when using the ATH)
- Multiplier = target_market_cap / market_cap_A
- Projected Price = price_A × multiplier
- Total Value = projected_price × amount

Degenerate inputs never raise and never produce NaN/Infinity: a zero
price makes the ATH ratio neutral (1), a zero market cap for A makes the
multiplier 0.
"""

import logging

from ..core.models import TokenData, ValuationResult
from ..core.numeric import finite_or_zero, parse_non_negative

logger = logging.getLogger(__name__)


class ValuationCalculator:
    """Computes the comparison between two canonical token records."""

    def calculate(
        self,
        token_a: TokenData,
        token_b: TokenData | None = None,
        use_all_time_high: bool = False,
        amount: float = 1.0,
        target_market_cap: float | None = None,
    ) -> ValuationResult:
        """
        Project token A's price at token B's (or a custom) market cap.

        Args:
            token_a: Token being valued
            token_b: Token whose market cap is borrowed
            use_all_time_high: Scale B's market cap by its ATH/price ratio
            amount: Units of token A held
            target_market_cap: Explicit target; replaces token B entirely

        Returns:
            ValuationResult with finite numbers only

        Raises:
            ValueError: neither token_b nor target_market_cap was given
        """
        notes: list[str] = []
        custom = target_market_cap is not None

        if custom:
            target = parse_non_negative(target_market_cap)
            notes.append(f"Target Market Cap = ${target:,.2f} (custom)")
        elif token_b is not None:
            target = calc_target_market_cap(
                token_b.market_cap,
                token_b.current_price,
                token_b.ath,
                use_all_time_high,
            )
            if use_all_time_high and token_b.current_price <= 0:
                notes.append(
                    f"{token_b.display_symbol} price unknown, using current market cap ${target:,.0f}"
                )
            elif use_all_time_high:
                notes.append(
                    f"Target Market Cap = ${token_b.market_cap:,.0f} × "
                    f"(${token_b.ath:g} / ${token_b.current_price:g}) = ${target:,.0f}"
                )
            else:
                notes.append(f"Target Market Cap = ${target:,.0f} ({token_b.display_symbol})")
        else:
            raise ValueError("Either token_b or target_market_cap is required")

        multiplier = calc_multiplier(target, token_a.market_cap)
        if token_a.market_cap > 0:
            notes.append(
                f"Multiplier = ${target:,.0f} / ${token_a.market_cap:,.0f} = {multiplier:g}x"
            )
        else:
            notes.append(f"{token_a.display_symbol} market cap unknown, multiplier set to 0")

        projected_price = calc_projected_price(token_a.current_price, multiplier)
        held = parse_non_negative(amount)
        total_value = calc_total_value(projected_price, held)

        return ValuationResult(
            target_market_cap=target,
            multiplier=multiplier,
            projected_price=projected_price,
            total_value=total_value,
            is_upside=multiplier >= 1,
            percent_change=calc_percent_change(multiplier),
            amount=held,
            used_all_time_high=use_all_time_high and not custom,
            used_custom_market_cap=custom,
            calculation_notes=notes,
        )


def calc_ath_ratio(ath: float, current_price: float) -> float:
    """
    All-time-high over current price.

    Returns 1 (neutral) when the current price is unknown (0 or negative).
    A missing ATH gives a ratio of 0.
    """
    if current_price <= 0:
        return 1.0
    return finite_or_zero(parse_non_negative(ath) / current_price)


def calc_target_market_cap(
    market_cap: float,
    current_price: float,
    ath: float,
    use_all_time_high: bool = False,
) -> float:
    """
    Market cap to project onto token A.

    Formula: market_cap × (ath / current_price) when using the ATH,
    else market_cap
    """
    market_cap = parse_non_negative(market_cap)
    if not use_all_time_high:
        return market_cap
    return finite_or_zero(market_cap * calc_ath_ratio(ath, current_price))


def calc_multiplier(target_market_cap: float, market_cap: float) -> float:
    """
    Formula: target_market_cap / market_cap; 0 when market_cap is 0.
    """
    if market_cap <= 0:
        return 0.0
    return finite_or_zero(parse_non_negative(target_market_cap) / market_cap)


def calc_projected_price(current_price: float, multiplier: float) -> float:
    return finite_or_zero(parse_non_negative(current_price) * multiplier)


def calc_total_value(projected_price: float, amount: float) -> float:
    return finite_or_zero(projected_price * parse_non_negative(amount))


def calc_percent_change(multiplier: float) -> float:
    """Formula: (multiplier - 1) × 100"""
    return finite_or_zero((multiplier - 1) * 100)
