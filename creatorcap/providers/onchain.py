"""On-chain ERC-20 reads via web3.

The five metadata calls for one contract go out as a single Multicall3
``aggregate3`` with ``allowFailure`` set on every call, so one RPC round
trip serves the whole read. A call that reverts or returns undecodable
data leaves its field at the default rather than failing the batch.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from eth_abi import decode
from web3 import AsyncHTTPProvider, AsyncWeb3

from ..core.exceptions import InvalidIdentifierError, SourceUnavailableError
from ..core.types import DataSource
from .base import BaseProvider

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Same deployment address on mainnet, Base and most EVM chains
MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

MULTICALL3_ABI = [
    {
        "name": "aggregate3",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "allowFailure", "type": "bool"},
                    {"name": "callData", "type": "bytes"},
                ],
            }
        ],
        "outputs": [
            {
                "name": "returnData",
                "type": "tuple[]",
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "returnData", "type": "bytes"},
                ],
            }
        ],
    },
]

# (function, signature, return type) for each metadata field
METADATA_CALLS = (
    ("name", "name()", "string"),
    ("symbol", "symbol()", "string"),
    ("decimals", "decimals()", "uint8"),
    ("totalSupply", "totalSupply()", "uint256"),
    ("owner", "owner()", "address"),
)


@dataclass(frozen=True)
class Erc20Metadata:
    """Result of one batched metadata read. Failed calls keep defaults."""

    address: str
    name: str = ""
    symbol: str = ""
    decimals: int = 18
    total_supply_raw: int = 0
    owner: str | None = None
    failed_calls: tuple[str, ...] = ()

    @property
    def is_token(self) -> bool:
        """A contract without a readable symbol is not treated as an ERC-20."""
        return bool(self.symbol)


def build_web3(rpc_url: str, timeout: float = 15.0) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


def to_checksum(address: str) -> str:
    """Checksum an address or raise InvalidIdentifierError."""
    if not AsyncWeb3.is_address(address):
        raise InvalidIdentifierError(address, "not a valid EVM address")
    return AsyncWeb3.to_checksum_address(address)


def function_selector(signature: str) -> bytes:
    """First four bytes of keccak(signature), the calldata of a no-argument call."""
    return bytes(AsyncWeb3.keccak(text=signature)[:4])


def decode_result(output_type: str, data: bytes) -> Any:
    """
    Decode one call's return data.

    Some older tokens return ``bytes32`` instead of ``string`` for name and
    symbol; those are decoded as null-padded UTF-8.
    """
    try:
        return decode([output_type], data)[0]
    except Exception:
        if output_type == "string" and len(data) == 32:
            return data.rstrip(b"\x00").decode("utf-8", errors="ignore")
        raise


class OnchainProvider(BaseProvider):
    """ERC-20 metadata and native balance reads against one chain."""

    SOURCE = DataSource.ONCHAIN

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 15.0,
        w3: AsyncWeb3 | None = None,
        rate_limit_calls: int = 120,
        rate_limit_period: int = 60,
    ):
        """
        Args:
            rpc_url: JSON-RPC endpoint of the chain
            timeout: Request timeout in seconds
            w3: Prebuilt AsyncWeb3 (tests pass a fake)
        """
        super().__init__(
            rate_limit_calls=rate_limit_calls,
            rate_limit_period=rate_limit_period,
        )
        self.rpc_url = rpc_url
        self.w3 = w3 or build_web3(rpc_url, timeout)

    def is_available(self) -> bool:
        return bool(self.rpc_url)

    async def read_token_metadata(self, address: str) -> Erc20Metadata:
        """
        Read name, symbol, decimals, totalSupply and owner in one multicall.

        Returns:
            Erc20Metadata; fields whose call reverted or failed keep defaults
        """
        checksum = to_checksum(address)
        await self._wait_for_rate_limit()
        start_time = time.time()

        multicall = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(MULTICALL3_ADDRESS),
            abi=MULTICALL3_ABI,
        )
        calls = [(checksum, True, function_selector(sig)) for _, sig, _ in METADATA_CALLS]
        try:
            results = await multicall.functions.aggregate3(calls).call()
        except Exception as e:
            logger.warning(f"[onchain] multicall failed for {address}: {e}")
            results = [(False, b"")] * len(METADATA_CALLS)

        values: dict[str, Any] = {}
        failed = []
        for (fn, _, output_type), (success, data) in zip(METADATA_CALLS, results):
            if not success or not data:
                failed.append(fn)
                continue
            try:
                values[fn] = decode_result(output_type, data)
            except Exception as e:
                logger.debug(f"[onchain] {fn}() returned undecodable data for {address}: {e}")
                failed.append(fn)

        duration_ms = int((time.time() - start_time) * 1000)
        self._record_audit(
            action="multicall",
            endpoint=f"erc20:{checksum}",
            success=len(failed) < len(METADATA_CALLS),
            error_message=f"failed: {', '.join(failed)}" if failed else None,
            duration_ms=duration_ms,
        )

        owner = values.get("owner")
        if not owner or str(owner).lower() == ZERO_ADDRESS:
            owner = None

        return Erc20Metadata(
            address=address,
            name=str(values.get("name") or ""),
            symbol=str(values.get("symbol") or ""),
            decimals=int(values.get("decimals", 18)),
            total_supply_raw=int(values.get("totalSupply", 0)),
            owner=owner,
            failed_calls=tuple(failed),
        )

    async def get_native_balance(self, address: str) -> int:
        """Native asset balance in wei."""
        checksum = to_checksum(address)
        await self._wait_for_rate_limit()
        start_time = time.time()
        try:
            balance = await self.w3.eth.get_balance(checksum)
        except Exception as e:
            self._record_audit(
                action="read",
                endpoint=f"eth_getBalance:{checksum}",
                success=False,
                error_message=str(e),
            )
            raise SourceUnavailableError(
                source=self.SOURCE.value,
                message=f"eth_getBalance failed: {e}",
                endpoint="eth_getBalance",
            ) from e

        self._record_audit(
            action="read",
            endpoint=f"eth_getBalance:{checksum}",
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return int(balance)
