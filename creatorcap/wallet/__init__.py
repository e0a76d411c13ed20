"""Wallet holdings aggregation."""

from .holdings import WETH_BASE, WalletHoldingsAggregator, merge_holdings

__all__ = ["WETH_BASE", "WalletHoldingsAggregator", "merge_holdings"]
