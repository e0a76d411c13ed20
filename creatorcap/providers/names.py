"""Name registry provider: basenames, ENS names and reverse lookups.

``*.base.eth`` names resolve through the Base L2 resolver contract;
every other ``*.eth`` name resolves through mainnet ENS.
"""

import logging
import time
from typing import Any

from ens import ENS
from web3 import AsyncWeb3

from ..core.exceptions import SourceUnavailableError
from ..core.types import DataSource
from .base import BaseProvider
from .onchain import ZERO_ADDRESS, build_web3, to_checksum

logger = logging.getLogger(__name__)

BASENAME_SUFFIX = ".base.eth"
ENS_SUFFIX = ".eth"
BASE_L2_RESOLVER = "0xC6d566A56A1aFf6508b41f6c90ff131615583BCD"

RESOLVER_ADDR_ABI = [
    {
        "name": "addr",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "node", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "address"}],
    },
]


def is_basename(name: str) -> bool:
    return name.lower().endswith(BASENAME_SUFFIX)


def is_ens_like(name: str) -> bool:
    return name.lower().endswith(ENS_SUFFIX)


def shorten_address(address: str) -> str:
    """0x1234...abcd"""
    return f"{address[:6]}...{address[-4:]}"


class NameRegistryProvider(BaseProvider):
    """Resolves names to addresses and addresses back to ENS profiles."""

    SOURCE = DataSource.ENS

    def __init__(
        self,
        base_rpc_url: str,
        mainnet_rpc_url: str,
        timeout: float = 15.0,
        base_resolver: str = BASE_L2_RESOLVER,
        base_w3: AsyncWeb3 | None = None,
        mainnet_w3: AsyncWeb3 | None = None,
    ):
        super().__init__(rate_limit_calls=60, rate_limit_period=60)
        self.base_w3 = base_w3 or build_web3(base_rpc_url, timeout)
        self.mainnet_w3 = mainnet_w3 or build_web3(mainnet_rpc_url, timeout)
        self.base_resolver = base_resolver

    def is_available(self) -> bool:
        return True

    async def resolve(self, name: str) -> str | None:
        """
        Resolve a basename or ENS name to an address.

        Returns:
            The address, or None when the name has no address record

        Raises:
            SourceUnavailableError: the registry call itself failed
        """
        name = name.strip().lower()
        if is_basename(name):
            return await self.resolve_basename(name)
        if is_ens_like(name):
            return await self.resolve_ens(name)
        return None

    async def resolve_basename(self, name: str) -> str | None:
        node = ENS.namehash(name)
        resolver = self.base_w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self.base_resolver),
            abi=RESOLVER_ADDR_ABI,
        )
        address = await self._call(
            "basename",
            name,
            resolver.functions.addr(node).call(),
        )
        return _non_zero(address)

    async def resolve_ens(self, name: str) -> str | None:
        address = await self._call("ens", name, self.mainnet_w3.ens.address(name))
        return _non_zero(address)

    async def lookup_name(self, address: str) -> str | None:
        """Primary ENS name for an address (reverse record)."""
        return await self._call(
            "ens-reverse",
            address,
            self.mainnet_w3.ens.name(to_checksum(address)),
        )

    async def get_avatar(self, name: str) -> str | None:
        avatar = await self._call(
            "ens-avatar",
            name,
            self.mainnet_w3.ens.get_text(name, "avatar"),
        )
        return avatar or None

    async def _call(self, registry: str, subject: str, awaitable: Any) -> Any:
        await self._wait_for_rate_limit()
        start_time = time.time()
        endpoint = f"{registry}:{subject}"
        try:
            result = await awaitable
        except Exception as e:
            self._record_audit(
                action="resolve",
                endpoint=endpoint,
                success=False,
                error_message=str(e),
                duration_ms=int((time.time() - start_time) * 1000),
            )
            raise SourceUnavailableError(
                source=self.SOURCE.value,
                message=f"{registry} lookup failed for {subject}: {e}",
                endpoint=endpoint,
            ) from e

        self._record_audit(
            action="resolve",
            endpoint=endpoint,
            success=True,
            duration_ms=int((time.time() - start_time) * 1000),
            notes=None if result else "no record",
        )
        return result


def _non_zero(address: Any) -> str | None:
    if not address or str(address).lower() == ZERO_ADDRESS:
        return None
    return str(address)
