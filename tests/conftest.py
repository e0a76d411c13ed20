"""Pytest configuration and fixtures for creator cap tests."""

from typing import Any

import pytest

from creatorcap.core.models import DiscoveryCandidate, Holding, TokenData
from creatorcap.core.types import DataSource
from creatorcap.providers.onchain import Erc20Metadata

CREATOR_COIN = "0xf5546bf64475b8ece6ac031e92e4f91a88d9dc5e"
WALLET = "0x1111111111111111111111111111111111111111"
USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubProvider:
    """Audit and lifecycle no-ops shared by every stub."""

    SOURCE = DataSource.UNKNOWN

    def get_audit_trail(self) -> list:
        return []

    def clear_audit_trail(self) -> None:
        pass

    async def aclose(self) -> None:
        pass


class StubCoinGecko(StubProvider):
    """Dict-backed stand-in for CoinGeckoProvider."""

    def __init__(
        self,
        by_id: dict[str, TokenData] | None = None,
        by_contract: dict[str, TokenData] | None = None,
        search_results: dict[str, list[TokenData]] | None = None,
        markets: list[TokenData] | None = None,
        btc_price: float = 0.0,
        fail: bool = False,
    ):
        self.by_id = by_id or {}
        self.by_contract = by_contract or {}
        self.search_results = search_results or {}
        self.markets = markets or []
        self.btc_price = btc_price
        self.fail = fail
        self.calls: list[tuple[str, Any]] = []

    def _check(self, name: str, arg: Any) -> None:
        self.calls.append((name, arg))
        if self.fail:
            raise RuntimeError(f"coingecko {name} down")

    async def get_token_by_id(self, coin_id: str) -> TokenData | None:
        self._check("by_id", coin_id)
        return self.by_id.get(coin_id)

    async def get_token_by_contract(self, address: str, platform: str | None = None) -> TokenData | None:
        self._check("by_contract", address)
        return self.by_contract.get(address.lower())

    async def search(self, query: str) -> list[TokenData]:
        self._check("search", query)
        return self.search_results.get(query.lower(), [])

    async def get_markets(self, ids=None, category=None, per_page=100, page=1) -> list[TokenData]:
        self._check("markets", category)
        return self.markets[:per_page]

    async def get_btc_price(self) -> float:
        self._check("btc", None)
        return self.btc_price


class StubDexScreener(StubProvider):
    """Returns canned pairs keyed by lower-cased base token address."""

    def __init__(
        self,
        pairs: dict[str, list[dict[str, Any]]] | None = None,
        tokens: dict[str, TokenData] | None = None,
        fail: bool = False,
    ):
        self.pairs = pairs or {}
        self.tokens = tokens or {}
        self.fail = fail
        self.pair_calls: list[list[str]] = []

    async def get_pairs(self, addresses: list[str]) -> list[dict[str, Any]]:
        self.pair_calls.append(list(addresses))
        if self.fail:
            raise RuntimeError("dexscreener down")
        result = []
        for address in addresses:
            result.extend(self.pairs.get(address.lower(), []))
        return result

    async def get_token_by_address(self, address: str) -> TokenData | None:
        if self.fail:
            raise RuntimeError("dexscreener down")
        return self.tokens.get(address.lower())


class StubZora(StubProvider):
    """Stand-in for ZoraProvider with canned nodes, profiles and listings."""

    def __init__(
        self,
        creator_tokens: dict[str, TokenData] | None = None,
        coins: dict[str, dict[str, Any]] | None = None,
        profiles: dict[str, str] | None = None,
        listings: dict[str, list[DiscoveryCandidate]] | None = None,
        failing_listings: tuple[str, ...] = (),
    ):
        self.creator_tokens = creator_tokens or {}
        self.coins = coins or {}
        self.profiles = profiles or {}
        self.listings = listings or {}
        self.failing_listings = failing_listings
        self.explore_calls = 0
        self.profile_calls: list[str] = []

    async def get_creator_token(self, address: str) -> TokenData | None:
        return self.creator_tokens.get(address.lower())

    async def get_coin(self, address: str) -> dict[str, Any] | None:
        return self.coins.get(address.lower())

    async def get_profile_coin_address(self, identifier: str) -> str | None:
        self.profile_calls.append(identifier)
        return self.profiles.get(identifier.lower())

    async def explore_candidates(self, list_type: str, count: int = 20) -> list[DiscoveryCandidate]:
        self.explore_calls += 1
        if list_type in self.failing_listings:
            raise RuntimeError(f"{list_type} unavailable")
        return self.listings.get(list_type, [])


class StubNames(StubProvider):
    """Name registry backed by a dict; ``fail`` simulates an RPC outage."""

    def __init__(
        self,
        records: dict[str, str] | None = None,
        reverse: dict[str, str] | None = None,
        avatars: dict[str, str] | None = None,
        fail: bool = False,
    ):
        self.records = records or {}
        self.reverse = reverse or {}
        self.avatars = avatars or {}
        self.fail = fail
        self.resolve_calls: list[str] = []

    async def resolve(self, name: str) -> str | None:
        self.resolve_calls.append(name)
        if self.fail:
            raise RuntimeError("rpc down")
        return self.records.get(name.lower())

    async def lookup_name(self, address: str) -> str | None:
        return self.reverse.get(address.lower())

    async def get_avatar(self, name: str) -> str | None:
        return self.avatars.get(name)


class StubOnchain(StubProvider):
    """Canned ERC-20 metadata and native balances."""

    def __init__(
        self,
        metadata: dict[str, Erc20Metadata] | None = None,
        native_balance: int = 0,
        fail_native: bool = False,
    ):
        self.metadata = metadata or {}
        self.native_balance = native_balance
        self.fail_native = fail_native

    async def read_token_metadata(self, address: str) -> Erc20Metadata:
        return self.metadata.get(address.lower(), Erc20Metadata(address=address))

    async def get_native_balance(self, address: str) -> int:
        if self.fail_native:
            raise RuntimeError("rpc down")
        return self.native_balance


class StubHoldings(StubProvider):
    """Holdings source (portfolio or explorer) returning a fixed list."""

    def __init__(self, holdings: list[Holding] | None = None, fail: bool = False, available: bool = True):
        self.holdings = holdings or []
        self.fail = fail
        self.available = available

    def is_available(self) -> bool:
        return self.available

    async def get_holdings(self, address: str) -> list[Holding]:
        if self.fail:
            raise RuntimeError("holdings source down")
        return list(self.holdings)


def dex_pair(address: str, price: float, symbol: str = "TKN", image: str | None = None, **extra: Any) -> dict[str, Any]:
    """Minimal DexScreener pair payload."""
    pair: dict[str, Any] = {
        "chainId": "base",
        "baseToken": {"address": address, "symbol": symbol, "name": symbol.title()},
        "priceUsd": str(price),
    }
    if image:
        pair["info"] = {"imageUrl": image}
    pair.update(extra)
    return pair


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def eth_token() -> TokenData:
    """Ethereum as returned by the market-data-by-id source."""
    return TokenData(
        id="ethereum",
        symbol="eth",
        name="Ethereum",
        current_price=2600.0,
        market_cap=310_000_000_000,
        market_cap_rank=2,
        ath=4878.26,
        source=DataSource.COINGECKO,
    )


@pytest.fixture
def btc_token() -> TokenData:
    return TokenData(
        id="bitcoin",
        symbol="btc",
        name="Bitcoin",
        current_price=95_000.0,
        market_cap=1_800_000_000_000,
        market_cap_rank=1,
        ath=108_000.0,
        source=DataSource.COINGECKO,
    )


@pytest.fixture
def creator_token() -> TokenData:
    return TokenData(
        id=CREATOR_COIN,
        symbol="scottexplores",
        name="scottexplores",
        current_price=0.0012,
        market_cap=600_000,
        address=CREATOR_COIN,
        source=DataSource.ZORA,
    )


@pytest.fixture
def zora_coin_node() -> dict[str, Any]:
    """Creator coin node as returned by the registry /coin endpoint."""
    return {
        "address": CREATOR_COIN,
        "symbol": "scottexplores",
        "name": "scottexplores",
        "coinType": "CREATOR",
        "totalSupply": "1000000000",
        "marketCap": "600000",
        "marketCapDelta24h": "100000",
        "tokenPrice": {"priceInUsdc": "0.0012"},
        "creatorAddress": WALLET,
        "mediaContent": {
            "originalUri": "ipfs://original",
            "previewImage": {"small": "https://img/small.png", "medium": "https://img/medium.png"},
        },
    }
