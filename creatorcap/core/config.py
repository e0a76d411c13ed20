"""Configuration management for API keys, endpoints and policy.

Loads configuration from environment variables or a .env file, then
overlays an optional YAML file for the policy knobs (fallback orders,
creator aliases, discovery listings, stablecoin filter).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .types import IdentifierKind, ResolutionStrategy

logger = logging.getLogger(__name__)

DEFAULT_BASE_RPC_URL = "https://mainnet.base.org"
DEFAULT_MAINNET_RPC_URL = "https://eth.merkle.io"

DEFAULT_FALLBACK_ORDER: dict[IdentifierKind, list[ResolutionStrategy]] = {
    IdentifierKind.ADDRESS: [
        ResolutionStrategy.CREATOR_REGISTRY,
        ResolutionStrategy.CREATOR_COIN,
        ResolutionStrategy.MARKET_BY_CONTRACT,
        ResolutionStrategy.DEX_PAIR,
    ],
    IdentifierKind.SYMBOL_OR_ID: [
        ResolutionStrategy.MARKET_BY_ID,
        ResolutionStrategy.MARKET_SEARCH,
        ResolutionStrategy.DISCOVERY_POOL,
    ],
    IdentifierKind.FREE_TEXT: [
        ResolutionStrategy.DISCOVERY_POOL,
        ResolutionStrategy.CREATOR_PROFILE,
    ],
}

DEFAULT_CREATOR_ALIASES = {
    "scottexplores.base.eth": "0xf5546bf64475b8ece6ac031e92e4f91a88d9dc5e",
}

DEFAULT_DISCOVERY_LISTS = ["MOST_VALUABLE", "NEW", "TOP_VOLUME_24H"]

DEFAULT_STABLECOINS = ["usdc", "usdt", "dai", "tusd", "fdusd"]


@dataclass
class CreatorCapConfig:
    """Runtime configuration for every adapter and aggregator."""

    # CoinGecko (optional - public API works without key)
    coingecko_api_key: Optional[str] = None

    # Zora coins API (optional, raises rate limits)
    zora_api_key: Optional[str] = None

    # Coinbase Developer Platform key for the portfolio source
    cdp_api_key: Optional[str] = None

    base_rpc_url: str = DEFAULT_BASE_RPC_URL
    mainnet_rpc_url: str = DEFAULT_MAINNET_RPC_URL
    chain: str = "base"
    request_timeout: float = 15.0

    # Staleness windows, seconds
    token_ttl: float = 60.0
    search_ttl: float = 300.0
    top_tokens_ttl: float = 300.0
    discovery_ttl: float = 60.0
    wallet_ttl: float = 30.0

    fallback_order: dict[IdentifierKind, list[ResolutionStrategy]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_FALLBACK_ORDER.items()}
    )
    creator_aliases: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_CREATOR_ALIASES)
    )
    discovery_lists: list[str] = field(
        default_factory=lambda: list(DEFAULT_DISCOVERY_LISTS)
    )
    stablecoins: list[str] = field(default_factory=lambda: list(DEFAULT_STABLECOINS))

    @classmethod
    def from_env(cls) -> "CreatorCapConfig":
        """Load configuration from environment variables."""
        return cls(
            coingecko_api_key=os.getenv("COINGECKO_API_KEY"),
            zora_api_key=os.getenv("ZORA_API_KEY"),
            cdp_api_key=os.getenv("CDP_API_KEY"),
            base_rpc_url=os.getenv("BASE_RPC_URL", DEFAULT_BASE_RPC_URL),
            mainnet_rpc_url=os.getenv("MAINNET_RPC_URL", DEFAULT_MAINNET_RPC_URL),
            chain=os.getenv("CREATORCAP_CHAIN", "base"),
            request_timeout=_env_float("CREATORCAP_TIMEOUT", 15.0),
        )

    @classmethod
    def load(
        cls,
        env_file: Optional[Path] = None,
        config_file: Optional[Path] = None,
    ) -> "CreatorCapConfig":
        """
        Load configuration from .env file, environment variables and YAML.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the current directory.
            config_file: Optional YAML file. Defaults to $CREATORCAP_CONFIG.

        Returns:
            CreatorCapConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            env_path = Path.cwd() / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        config = cls.from_env()

        if config_file is None and os.getenv("CREATORCAP_CONFIG"):
            config_file = Path(os.environ["CREATORCAP_CONFIG"])
        if config_file is not None:
            config.apply_yaml(config_file)

        return config

    def apply_yaml(self, path: Path) -> None:
        """Overlay values from a YAML file onto this config."""
        if not path.exists():
            raise ConfigurationError(str(path), "config file does not exist")

        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(str(path), "top level must be a mapping")

        logger.info(f"Loaded config overrides from {path}")
        self.apply_dict(data)

    def apply_dict(self, data: dict[str, Any]) -> None:
        """Overlay values from a plain mapping (parsed YAML)."""
        for key in ("base_rpc_url", "mainnet_rpc_url", "chain"):
            if key in data:
                setattr(self, key, str(data[key]))

        if "request_timeout" in data:
            self.request_timeout = float(data["request_timeout"])

        ttls = data.get("ttl") or {}
        for name in ("token", "search", "top_tokens", "discovery", "wallet"):
            if name in ttls:
                setattr(self, f"{name}_ttl", float(ttls[name]))

        if "fallback_order" in data:
            self.fallback_order.update(_parse_fallback_order(data["fallback_order"]))

        if "creator_aliases" in data:
            aliases = data["creator_aliases"] or {}
            self.creator_aliases = {
                str(name).lower(): str(address).lower()
                for name, address in aliases.items()
            }

        if "discovery_lists" in data:
            self.discovery_lists = [str(x) for x in data["discovery_lists"] or []]

        if "stablecoins" in data:
            self.stablecoins = [str(x).lower() for x in data["stablecoins"] or []]

    def has_coingecko(self) -> bool:
        """Check if CoinGecko API key is configured (optional)."""
        return bool(self.coingecko_api_key)

    def has_zora(self) -> bool:
        return bool(self.zora_api_key)

    def has_cdp(self) -> bool:
        """Check if the Coinbase portfolio source can be used."""
        return bool(self.cdp_api_key)

    def get_available_sources(self) -> list[str]:
        """Get list of configured data sources."""
        sources = ["coingecko", "dexscreener", "zora", "onchain", "blockscout"]
        if self.cdp_api_key:
            sources.append("coinbase_portfolio")
        return sources


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(name, f"expected a number, got {raw!r}") from e


def _parse_fallback_order(
    raw: Any,
) -> dict[IdentifierKind, list[ResolutionStrategy]]:
    if not isinstance(raw, dict):
        raise ConfigurationError("fallback_order", "must be a mapping of kind -> list")

    parsed: dict[IdentifierKind, list[ResolutionStrategy]] = {}
    for kind_name, steps in raw.items():
        try:
            kind = IdentifierKind(str(kind_name))
            parsed[kind] = [ResolutionStrategy(str(step)) for step in steps or []]
        except ValueError as e:
            raise ConfigurationError("fallback_order", str(e)) from e
    return parsed


# Global config instance (lazy loaded)
_config: Optional[CreatorCapConfig] = None


def get_config() -> CreatorCapConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = CreatorCapConfig.load()
    return _config


def reload_config(
    env_file: Optional[Path] = None,
    config_file: Optional[Path] = None,
) -> CreatorCapConfig:
    """Reload configuration from environment."""
    global _config
    _config = CreatorCapConfig.load(env_file, config_file)
    return _config
