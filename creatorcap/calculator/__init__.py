"""Valuation engine."""

from .valuation import (
    ValuationCalculator,
    calc_ath_ratio,
    calc_multiplier,
    calc_percent_change,
    calc_projected_price,
    calc_target_market_cap,
    calc_total_value,
)

__all__ = [
    "ValuationCalculator",
    "calc_ath_ratio",
    "calc_multiplier",
    "calc_percent_change",
    "calc_projected_price",
    "calc_target_market_cap",
    "calc_total_value",
]
