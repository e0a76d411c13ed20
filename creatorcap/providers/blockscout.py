"""Blockscout explorer provider (token list for one wallet)."""

import logging
from typing import Any

from ..core.models import Holding
from ..core.numeric import parse_decimals, parse_raw_amount
from ..core.types import DataSource
from .base import HTTPProvider

logger = logging.getLogger(__name__)

TRUSTWALLET_LOGO_URL = (
    "https://raw.githubusercontent.com/trustwallet/assets/master/"
    "blockchains/{chain}/assets/{address}/logo.png"
)


class BlockscoutProvider(HTTPProvider):
    """Etherscan-compatible ``module=account&action=tokenlist`` client."""

    SOURCE = DataSource.BLOCKSCOUT
    BASE_URL = "https://base.blockscout.com"

    def __init__(self, chain: str = "base", **kwargs: Any):
        super().__init__(**kwargs)
        self.chain = chain

    def is_available(self) -> bool:
        return True

    async def get_holdings(self, address: str) -> list[Holding]:
        """ERC-20 balances for ``address``; NFTs and other token types are skipped."""
        data = await self._request_json(
            "/api",
            params={"module": "account", "action": "tokenlist", "address": address},
        )
        if not isinstance(data, dict):
            return []
        result = data.get("result")
        if not isinstance(result, list):
            # Etherscan-style APIs put an error string in result
            logger.debug(f"[blockscout] No token list for {address}: {data.get('message')}")
            return []

        holdings = []
        for item in result:
            if not isinstance(item, dict):
                continue
            token_type = item.get("type")
            if token_type and token_type != "ERC-20":
                continue
            contract = item.get("contractAddress")
            symbol = item.get("symbol") or ""
            if not contract or not symbol:
                continue
            holdings.append(
                Holding(
                    address=contract,
                    symbol=symbol,
                    name=item.get("name") or symbol,
                    decimals=parse_decimals(item.get("decimals")),
                    balance_raw=parse_raw_amount(item.get("balance")),
                    image=item.get("logoURI")
                    or TRUSTWALLET_LOGO_URL.format(chain=self.chain, address=contract),
                    source=DataSource.BLOCKSCOUT,
                )
            )
        return holdings
