"""Source adapters for creator cap.

This module contains providers for:
- Market data (CoinGecko)
- DEX pairs (DexScreener)
- Creator coins (Zora)
- On-chain reads and name registries (web3)
- Wallet holdings (Coinbase portfolio, Blockscout)
"""

from .base import BaseProvider, HTTPProvider
from .blockscout import BlockscoutProvider
from .coingecko import CoinGeckoProvider
from .dexscreener import DexScreenerProvider
from .names import NameRegistryProvider
from .onchain import Erc20Metadata, OnchainProvider
from .portfolio import CoinbasePortfolioProvider
from .zora import ZoraProvider

__all__ = [
    "BaseProvider",
    "HTTPProvider",
    "BlockscoutProvider",
    "CoinGeckoProvider",
    "CoinbasePortfolioProvider",
    "DexScreenerProvider",
    "Erc20Metadata",
    "NameRegistryProvider",
    "OnchainProvider",
    "ZoraProvider",
]
