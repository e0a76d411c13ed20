"""Type definitions and enums for creator cap."""

from enum import Enum


class DataSource(str, Enum):
    """Upstream source identifiers."""

    COINGECKO = "coingecko"
    DEXSCREENER = "dexscreener"
    ZORA = "zora"
    ONCHAIN = "onchain"
    ENS = "ens"
    COINBASE_PORTFOLIO = "coinbase_portfolio"
    BLOCKSCOUT = "blockscout"
    CREATOR_COIN = "creator_coin"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class IdentifierKind(str, Enum):
    """Structural kind of a raw identifier."""

    ADDRESS = "address"           # 0x + 40 hex chars
    INVALID_ADDRESS = "invalid_address"  # 0x prefix, wrong length or not hex
    ENS_NAME = "ens_name"         # *.eth (incl. *.base.eth)
    SYMBOL_OR_ID = "symbol_or_id"  # slug-shaped: bitcoin, eth, usd-coin
    FREE_TEXT = "free_text"       # anything else (handles, names with spaces)


class CoinType(str, Enum):
    """Discriminator carried by creator registry coin records."""

    CREATOR = "CREATOR"
    CONTENT = "CONTENT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: object) -> "CoinType":
        """Map a raw discriminator to a member, UNKNOWN when unrecognised."""
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.UNKNOWN


class ResolutionStrategy(str, Enum):
    """Named resolution steps; fallback order is a list of these."""

    CREATOR_REGISTRY = "creator_registry"
    CREATOR_COIN = "creator_coin"
    MARKET_BY_CONTRACT = "market_by_contract"
    DEX_PAIR = "dex_pair"
    MARKET_BY_ID = "market_by_id"
    MARKET_SEARCH = "market_search"
    DISCOVERY_POOL = "discovery_pool"
    CREATOR_PROFILE = "creator_profile"


# Type aliases for common patterns
USDAmount = float    # USD value
