"""Pydantic data models for creator cap.

All records are immutable (frozen). A re-fetch produces a new record that
replaces the old one in its holder; nothing is mutated in place.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .numeric import parse_decimal_or_zero, parse_non_negative
from .types import DataSource, IdentifierKind, USDAmount

DEFAULT_DECIMALS = 18


class TokenData(BaseModel):
    """Canonical token record, regardless of upstream source.

    Numeric fields default to 0, the explicit "unknown" sentinel.
    ``market_cap`` and ``current_price`` are clamped to be non-negative.
    """

    id: str
    symbol: str
    name: str
    image: str | None = None
    current_price: float = 0.0
    market_cap: USDAmount = 0.0
    market_cap_rank: int = 0
    price_change_percentage_24h: float = 0.0
    ath: float = 0.0
    address: str | None = None
    decimals: int = DEFAULT_DECIMALS
    source: DataSource = DataSource.UNKNOWN

    model_config = {"frozen": True}

    @field_validator("current_price", "market_cap", "ath", mode="before")
    @classmethod
    def coerce_non_negative(cls, v: Any) -> float:
        return parse_non_negative(v)

    @field_validator("price_change_percentage_24h", mode="before")
    @classmethod
    def coerce_float(cls, v: Any) -> float:
        return parse_decimal_or_zero(v)

    @field_validator("market_cap_rank", mode="before")
    @classmethod
    def coerce_rank(cls, v: Any) -> int:
        return int(parse_non_negative(v))

    @field_validator("decimals", mode="before")
    @classmethod
    def coerce_decimals(cls, v: Any) -> int:
        if v is None:
            return DEFAULT_DECIMALS
        return int(parse_non_negative(v))

    @field_validator("image", mode="before")
    @classmethod
    def blank_image_is_none(cls, v: Any) -> str | None:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return None

    @property
    def display_symbol(self) -> str:
        """Upper-cased symbol for display."""
        return self.symbol.upper()

    @property
    def has_market_cap(self) -> bool:
        """Whether this record can serve as a valuation denominator."""
        return self.market_cap > 0

    def same_symbol(self, other: str) -> bool:
        """Case-insensitive symbol comparison."""
        return self.symbol.lower() == other.lower()


class WalletToken(TokenData):
    """A token held by a wallet, with its balance and USD value."""

    balance: str
    balance_raw: int
    value_usd: USDAmount = 0.0

    @field_validator("balance_raw")
    @classmethod
    def validate_positive_balance(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"balance_raw must be positive, got {v}")
        return v

    @field_validator("value_usd", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> float:
        return parse_non_negative(v)


class Holding(BaseModel):
    """One balance from a holdings source, before merging and pricing.

    ``address`` is None for the chain's native asset.
    """

    address: str | None
    symbol: str
    name: str
    decimals: int = DEFAULT_DECIMALS
    balance_raw: int
    image: str | None = None
    source: DataSource = DataSource.UNKNOWN

    model_config = {"frozen": True}


class ResolutionQuery(BaseModel):
    """A raw identifier with its structurally inferred kind."""

    raw: str
    normalized: str
    kind: IdentifierKind

    model_config = {"frozen": True}


class DiscoveryCandidate(BaseModel):
    """Minimal record used for local autocomplete before a full resolve."""

    address: str
    name: str
    symbol: str
    image: str | None = None
    listing: str | None = None  # which bulk listing produced it

    model_config = {"frozen": True}


class CreatorProfile(BaseModel):
    """Display details for the owner of a creator coin."""

    name: str
    avatar: str | None = None
    ens: str | None = None
    address: str | None = None

    model_config = {"frozen": True}


class CreatorCoinDetails(BaseModel):
    """Result of the creator coin aggregation for one contract."""

    token: TokenData
    total_supply: float
    circulating_supply: float
    creator: CreatorProfile
    btc_market_cap_ratio: float = 0.0
    insights: str | None = None

    model_config = {"frozen": True}


class ValuationResult(BaseModel):
    """Output of the valuation engine. Every number is finite."""

    target_market_cap: USDAmount
    multiplier: float
    projected_price: float
    total_value: USDAmount
    is_upside: bool
    percent_change: float
    amount: float
    used_all_time_high: bool = False
    used_custom_market_cap: bool = False
    calculation_notes: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class ComparisonResult(BaseModel):
    """Two resolved tokens and their valuation."""

    token_a: TokenData
    token_b: TokenData | None = None
    valuation: ValuationResult
    calculated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = {"frozen": True}


class AuditEntry(BaseModel):
    """Audit trail entry for one upstream call."""

    timestamp: datetime = Field(default_factory=datetime.utcnow)
    source: DataSource
    action: str  # "fetch", "resolve", "read", "multicall"
    endpoint: str | None = None
    success: bool = True
    error_message: str | None = None
    duration_ms: int | None = None
    notes: str | None = None

    model_config = {"frozen": True}
