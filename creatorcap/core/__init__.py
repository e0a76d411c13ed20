"""Core module - data models, types, exceptions, config and cache."""

from .cache import QueryCache
from .config import CreatorCapConfig, get_config, reload_config
from .exceptions import (
    ConfigurationError,
    CreatorCapError,
    InvalidIdentifierError,
    RateLimitError,
    SchemaMismatchError,
    SourceUnavailableError,
    TokenNotFoundError,
)
from .models import (
    AuditEntry,
    ComparisonResult,
    CreatorCoinDetails,
    CreatorProfile,
    DiscoveryCandidate,
    ResolutionQuery,
    TokenData,
    ValuationResult,
    WalletToken,
)
from .numeric import format_units, parse_decimal_or_zero, parse_non_negative
from .types import CoinType, DataSource, IdentifierKind, ResolutionStrategy

__all__ = [
    # Models
    "TokenData",
    "WalletToken",
    "ResolutionQuery",
    "DiscoveryCandidate",
    "CreatorProfile",
    "CreatorCoinDetails",
    "ValuationResult",
    "ComparisonResult",
    "AuditEntry",
    # Types
    "CoinType",
    "DataSource",
    "IdentifierKind",
    "ResolutionStrategy",
    # Exceptions
    "CreatorCapError",
    "TokenNotFoundError",
    "SourceUnavailableError",
    "RateLimitError",
    "SchemaMismatchError",
    "InvalidIdentifierError",
    "ConfigurationError",
    # Config / cache / numeric
    "CreatorCapConfig",
    "get_config",
    "reload_config",
    "QueryCache",
    "format_units",
    "parse_decimal_or_zero",
    "parse_non_negative",
]
