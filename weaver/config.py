"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

SUPPORTED_CHAINS: tuple[str, ...] = ("eth", "bsc", "poly", "ftm", "avax", "one", "cronos")

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

DEFAULT_TOKEN_LOGO = (
    "https://cdn.jsdelivr.net/gh/atomiclabs/cryptocurrency-icons"
    "@d5c68edec1f5eaec59ac77ff2b48144679cebca1/32/icon/generic.png"
)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 10
    multicall: str = MULTICALL3_ADDRESS
    native_symbol: str = ""
    llama_chain: str = ""
    native_price_id: str = ""


@dataclass(frozen=True)
class QueryConfig:
    max_passes: int = 3
    max_concurrency: int = 16
    request_timeout: float = 120.0
    suppressed_contracts: dict[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class DefiLlamaConfig:
    url: str = "https://coins.llama.fi/prices/current"
    timeout: int = 15


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "defillama"
    defillama: DefiLlamaConfig = field(default_factory=DefiLlamaConfig)


@dataclass(frozen=True)
class TokenData:
    symbol: str
    address: str
    decimals: int = 18
    logo: str = DEFAULT_TOKEN_LOGO


@dataclass(frozen=True)
class ChainCatalogConfig:
    tokens: tuple[TokenData, ...] = ()
    logos: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AppConfig:
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    query: QueryConfig = field(default_factory=QueryConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    catalog: dict[str, ChainCatalogConfig] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        cfg = cfg or {}
        chains[name] = ChainConfig(
            # Empty strings come from unset ${VAR} references.
            rpc_endpoints=tuple(url for url in cfg.get("rpc_endpoints", []) if url),
            rpc_timeout=int(cfg.get("rpc_timeout", 10)),
            multicall=cfg.get("multicall", MULTICALL3_ADDRESS),
            native_symbol=cfg.get("native_symbol", name.upper()),
            llama_chain=cfg.get("llama_chain", name),
            native_price_id=cfg.get("native_price_id", ""),
        )
    return chains


def _build_query(raw: dict[str, Any]) -> QueryConfig:
    suppressed = {
        chain: tuple(addr.lower() for addr in addrs or [])
        for chain, addrs in (raw.get("suppressed_contracts") or {}).items()
    }
    return QueryConfig(
        max_passes=int(raw.get("max_passes", 3)),
        max_concurrency=int(raw.get("max_concurrency", 16)),
        request_timeout=float(raw.get("request_timeout", 120.0)),
        suppressed_contracts=suppressed,
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    llama_raw = raw.get("defillama", {}) or {}
    return PriceOracleConfig(
        provider=raw.get("provider", "defillama"),
        defillama=DefiLlamaConfig(
            url=llama_raw.get("url", DefiLlamaConfig.url),
            timeout=int(llama_raw.get("timeout", DefiLlamaConfig.timeout)),
        ),
    )


def _build_catalog(raw: dict[str, Any]) -> dict[str, ChainCatalogConfig]:
    catalog: dict[str, ChainCatalogConfig] = {}
    for chain, cfg in raw.items():
        cfg = cfg or {}
        tokens = tuple(
            TokenData(
                symbol=t["symbol"],
                address=t["address"],
                decimals=int(t.get("decimals", 18)),
                logo=t.get("logo", DEFAULT_TOKEN_LOGO),
            )
            for t in cfg.get("tokens", []) or []
        )
        catalog[chain] = ChainCatalogConfig(
            tokens=tokens, logos=dict(cfg.get("logos", {}) or {})
        )
    return catalog


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chains=_build_chains(raw.get("chains", {}) or {}),
        query=_build_query(raw.get("query", {}) or {}),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {}) or {}),
        catalog=_build_catalog(raw.get("tokens", {}) or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chains:
        raise ValueError("At least one chain must be configured")

    for name, chain in cfg.chains.items():
        if name not in SUPPORTED_CHAINS:
            raise ValueError(f"Unsupported chain '{name}'")
        if not chain.rpc_endpoints:
            raise ValueError(f"Chain '{name}' has no RPC endpoints")

    if cfg.query.max_passes < 1:
        raise ValueError("query.max_passes must be at least 1")
    if cfg.query.max_concurrency < 1:
        raise ValueError("query.max_concurrency must be at least 1")

    for chain in cfg.catalog:
        if chain not in cfg.chains:
            raise ValueError(f"Token catalog references unknown chain '{chain}'")
