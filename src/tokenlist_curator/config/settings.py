"""Configuration management for the token list curator."""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, cast

from pydantic import AnyHttpUrl, BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import UnknownChainError
from ..utils.constants import (
    ASSETS_CDN_URL,
    DEFAULT_LIST_TIMESTAMP,
    PANCAKESWAP_SUBGRAPH_URL,
    TOP_PAIRS_QUERY,
    UNISWAP_V2_SUBGRAPH_URL,
)


DEFAULT_CONFIG_FILE = Path("config/app.toml")
CONFIG_FILE_ENV_VAR = "APP_CONFIG_FILE"
PROFILE_ENV_VAR = "CURATOR_PROFILE"
DEFAULT_PROFILE = "default"


def _resolve_config_path() -> Path:
    env_value = os.getenv(CONFIG_FILE_ENV_VAR)
    if env_value:
        candidate = Path(env_value)
        if not candidate.is_absolute():
            candidate = Path.cwd() / candidate
        return candidate
    return Path.cwd() / DEFAULT_CONFIG_FILE


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {**base}
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(cast(Dict[str, Any], result[key]), value)
        else:
            result[key] = value
    return result


def _select_profile(data: Dict[str, Any]) -> Dict[str, Any]:
    if not data:
        return {}
    base_section = cast(Dict[str, Any], data.get(DEFAULT_PROFILE, {}))
    requested = (os.getenv(PROFILE_ENV_VAR) or DEFAULT_PROFILE).lower()
    if requested != DEFAULT_PROFILE and isinstance(data.get(requested), dict):
        return _deep_merge(base_section, cast(Dict[str, Any], data[requested]))
    if base_section:
        return base_section
    # Files without profile tables are taken as-is.
    return data


def _load_toml_config() -> Tuple[Dict[str, Any], Optional[Path]]:
    path = _resolve_config_path()
    if not path.exists():
        return {}, None
    with path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        return {}, path
    merged = _select_profile(payload)
    if not isinstance(merged, dict):
        return {}, path
    return dict(merged), path


class RepositoryConfig(BaseModel):
    """Layout of the asset repository checkout the lists live in."""

    root: Path = Field(default=Path("."))
    blockchains_dir: str = Field(default="blockchains")
    assets_dir: str = Field(default="assets")
    allowlist_file: str = Field(default="allowlist.json")
    base_tokenlist_file: str = Field(default="tokenlist-base.json")
    tokenlist_file: str = Field(default="tokenlist.json")
    logo_file: str = Field(default="logo.png")
    json_indent: int = Field(default=4, ge=0, le=8)


class SubgraphConfig(BaseModel):
    """HTTP behaviour of the subgraph client."""

    http_timeout: float = Field(default=20.0, ge=1.0, le=120.0)
    max_attempts: int = Field(default=3, ge=1, le=10)
    backoff_min_seconds: float = Field(default=1.0, ge=0.0)
    backoff_max_seconds: float = Field(default=10.0, ge=0.0)
    cache_ttl_seconds: int = Field(default=120, ge=0)
    user_agent: str = Field(default="tokenlist-curator/1.0")

    @model_validator(mode="after")
    def _check_backoff(self) -> "SubgraphConfig":
        if self.backoff_max_seconds < self.backoff_min_seconds:
            raise ValueError("backoff_max_seconds must be >= backoff_min_seconds")
        return self


class TokenListConfig(BaseModel):
    """Envelope fields written around every generated list."""

    timestamp: str = Field(default=DEFAULT_LIST_TIMESTAMP)
    version_major: int = Field(default=0, ge=0)
    version_minor: int = Field(default=1, ge=0)
    version_patch: int = Field(default=0, ge=0)
    name_template: str = Field(default="Trust Wallet: {chain}")
    logo_uri: str = Field(default="https://trustwallet.com/assets/images/favicon.png")
    assets_cdn_url: AnyHttpUrl = Field(default=ASSETS_CDN_URL)

    @field_validator("name_template")
    @classmethod
    def _template_has_chain(cls, value: str) -> str:
        if "{chain}" not in value:
            raise ValueError("name_template must contain the '{chain}' placeholder")
        return value


class ChainConfig(BaseModel):
    """Per-chain discovery and listing policy."""

    display_name: str
    enabled: bool = True
    subgraph_url: AnyHttpUrl
    pairs_query: str = Field(default=TOP_PAIRS_QUERY)
    min_liquidity_usd: float = Field(default=1_000_000.0, ge=0.0)
    primary_symbols: List[str] = Field(default_factory=list)
    asset_id_base: int = Field(ge=0)
    token_standard: str
    assets_folder: Optional[str] = None

    @field_validator("primary_symbols", mode="before")
    @classmethod
    def _split_symbols(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("primary_symbols")
    @classmethod
    def _upper_symbols(cls, value: List[str]) -> List[str]:
        seen: set[str] = set()
        unique: List[str] = []
        for symbol in value:
            upper = symbol.upper()
            if upper not in seen:
                unique.append(upper)
                seen.add(upper)
        return unique


def _default_chains() -> Dict[str, ChainConfig]:
    return {
        "ethereum": ChainConfig(
            display_name="Ethereum",
            subgraph_url=UNISWAP_V2_SUBGRAPH_URL,
            min_liquidity_usd=1_000_000.0,
            primary_symbols=["WETH", "ETH"],
            asset_id_base=60,
            token_standard="ERC20",
        ),
        "smartchain": ChainConfig(
            display_name="Smart Chain",
            subgraph_url=PANCAKESWAP_SUBGRAPH_URL,
            min_liquidity_usd=1_000_000.0,
            primary_symbols=["WBNB", "BNB"],
            asset_id_base=20000714,
            token_standard="BEP20",
        ),
    }


class MonitoringConfig(BaseModel):
    """Logging switches."""

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper()


class AppConfig(BaseSettings):
    """Aggregated application configuration."""

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    subgraph: SubgraphConfig = Field(default_factory=SubgraphConfig)
    tokenlist: TokenListConfig = Field(default_factory=TokenListConfig)
    chains: Dict[str, ChainConfig] = Field(default_factory=_default_chains)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    config_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def file_settings(_: Optional[BaseSettings] = None) -> Dict[str, Any]:
            payload, path = _load_toml_config()
            if path is not None:
                payload.setdefault("config_file", str(path))
            chains = payload.get("chains")
            # File and environment chain tables refine the built-in chains key by key.
            defaults = {key: value.model_dump(mode="json") for key, value in _default_chains().items()}
            payload["chains"] = _deep_merge(defaults, chains if isinstance(chains, dict) else {})
            return payload

        # Runtime environment variables win over static config file defaults.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_settings,
            file_secret_settings,
        )

    def chain(self, chain_id: str) -> ChainConfig:
        try:
            return self.chains[chain_id.lower()]
        except KeyError:
            raise UnknownChainError(chain_id) from None

    def enabled_chains(self) -> List[str]:
        return [chain_id for chain_id, chain in self.chains.items() if chain.enabled]


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """Create a cached application configuration object."""

    return AppConfig()


__all__ = [
    "AppConfig",
    "ChainConfig",
    "MonitoringConfig",
    "RepositoryConfig",
    "SubgraphConfig",
    "TokenListConfig",
    "get_app_config",
]
