"""Coinbase Developer Platform portfolio provider.

Calls the ``cdp_getTokensForAddresses`` JSON-RPC method. Token balances
come back either nested (``{"token": {...}, "balance": raw}``) or flat
(``{"address": ..., "cryptoBalance": raw}``); both collapse to Holding.
"""

import logging
from typing import Any

from ..core.exceptions import ConfigurationError, SchemaMismatchError, SourceUnavailableError
from ..core.models import Holding
from ..core.numeric import parse_decimals, parse_raw_amount
from ..core.types import DataSource
from .base import HTTPProvider

logger = logging.getLogger(__name__)


def _holding_from_balance(entry: dict[str, Any]) -> Holding | None:
    token = entry.get("token") if isinstance(entry.get("token"), dict) else entry
    raw = entry.get("balance", entry.get("cryptoBalance"))
    symbol = token.get("symbol") or ""
    if not symbol:
        return None
    address = token.get("address") or None
    return Holding(
        address=address,
        symbol=symbol,
        name=token.get("name") or symbol,
        decimals=parse_decimals(token.get("decimals")),
        balance_raw=parse_raw_amount(raw),
        image=token.get("image") or None,
        source=DataSource.COINBASE_PORTFOLIO,
    )


class CoinbasePortfolioProvider(HTTPProvider):
    """Official portfolio source for one wallet on Base."""

    SOURCE = DataSource.COINBASE_PORTFOLIO
    BASE_URL = "https://api.developer.coinbase.com/rpc/v1"

    def __init__(
        self,
        api_key: str | None = None,
        network: str = "base",
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.network = network

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def get_holdings(self, address: str) -> list[Holding]:
        """
        ERC-20 balances for ``address``, zero balances included.

        Raises:
            ConfigurationError: no CDP API key configured
            SourceUnavailableError: transport failure or JSON-RPC error
        """
        if not self.api_key:
            raise ConfigurationError("CDP_API_KEY", "portfolio source needs an API key")

        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "cdp_getTokensForAddresses",
            "params": [{"addresses": [address]}],
        }
        # the key is part of the URL; keep it out of the audit endpoint
        data = await self._request_json(
            f"/{self.network}",
            method="POST",
            json_body=payload,
            url=f"{self.base_url}/{self.network}/{self.api_key}",
        )
        if not isinstance(data, dict):
            return []
        if data.get("error"):
            raise SourceUnavailableError(
                source=self.SOURCE.value,
                message=str(data["error"].get("message") if isinstance(data["error"], dict) else data["error"]),
                endpoint="cdp_getTokensForAddresses",
            )

        result = data.get("result")
        if not isinstance(result, dict):
            raise SchemaMismatchError(self.SOURCE.value, "missing result object")

        holdings = []
        for portfolio in result.get("addressToTokenBalances") or result.get("portfolios") or []:
            for entry in portfolio.get("tokenBalances") or []:
                if not isinstance(entry, dict):
                    continue
                holding = _holding_from_balance(entry)
                if holding is not None:
                    holdings.append(holding)
        return holdings
