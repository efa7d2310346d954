"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
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

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefreshConfig:
    interval_minutes: int = 15
    history_days: int = 90
    partial_day_hours: float = 23.0


@dataclass(frozen=True)
class StorageConfig:
    holdings_path: str = ""

    def resolved_path(self) -> Path:
        if self.holdings_path:
            return Path(self.holdings_path).expanduser()
        return PROJECT_ROOT / "holdings.json"


@dataclass(frozen=True)
class ValuationConfig:
    other_placeholder_unit_value: float = 50.0


@dataclass(frozen=True)
class CoinGeckoConfig:
    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: str = ""


@dataclass(frozen=True)
class AlphaVantageConfig:
    base_url: str = "https://www.alphavantage.co/query"
    api_key: str = ""
    request_delay_seconds: float = 13.0


@dataclass(frozen=True)
class GoldApiConfig:
    base_url: str = "https://www.goldapi.io/api"
    api_key: str = ""
    supported_symbols: tuple[str, ...] = ("XAU", "XAG")
    request_delay_seconds: float = 1.0


@dataclass(frozen=True)
class PriceSourcesConfig:
    request_timeout: int = 30
    coingecko: CoinGeckoConfig = field(default_factory=CoinGeckoConfig)
    alpha_vantage: AlphaVantageConfig = field(default_factory=AlphaVantageConfig)
    goldapi: GoldApiConfig = field(default_factory=GoldApiConfig)


@dataclass(frozen=True)
class AppConfig:
    currency: str = "USD"
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    valuation: ValuationConfig = field(default_factory=ValuationConfig)
    price_sources: PriceSourcesConfig = field(default_factory=PriceSourcesConfig)


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


def _build_refresh(raw: dict[str, Any]) -> RefreshConfig:
    return RefreshConfig(
        interval_minutes=int(raw.get("interval_minutes", 15)),
        history_days=int(raw.get("history_days", 90)),
        partial_day_hours=float(raw.get("partial_day_hours", 23.0)),
    )


def _build_storage(raw: dict[str, Any]) -> StorageConfig:
    return StorageConfig(holdings_path=str(raw.get("holdings_path", "") or ""))


def _build_valuation(raw: dict[str, Any]) -> ValuationConfig:
    return ValuationConfig(
        other_placeholder_unit_value=float(
            raw.get("other_placeholder_unit_value", 50.0)
        ),
    )


def _build_price_sources(raw: dict[str, Any]) -> PriceSourcesConfig:
    cg = raw.get("coingecko", {}) or {}
    av = raw.get("alpha_vantage", {}) or {}
    ga = raw.get("goldapi", {}) or {}
    return PriceSourcesConfig(
        request_timeout=int(raw.get("request_timeout", 30)),
        coingecko=CoinGeckoConfig(
            base_url=cg.get("base_url", CoinGeckoConfig.base_url),
            api_key=cg.get("api_key", ""),
        ),
        alpha_vantage=AlphaVantageConfig(
            base_url=av.get("base_url", AlphaVantageConfig.base_url),
            api_key=av.get("api_key", ""),
            request_delay_seconds=float(av.get("request_delay_seconds", 13.0)),
        ),
        goldapi=GoldApiConfig(
            base_url=ga.get("base_url", GoldApiConfig.base_url),
            api_key=ga.get("api_key", ""),
            supported_symbols=tuple(
                str(s).strip().upper()
                for s in ga.get("supported_symbols", GoldApiConfig.supported_symbols)
            ),
            request_delay_seconds=float(ga.get("request_delay_seconds", 1.0)),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = PROJECT_ROOT / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        currency=str(raw.get("currency", "USD")).strip().upper(),
        refresh=_build_refresh(raw.get("refresh", {}) or {}),
        storage=_build_storage(raw.get("storage", {}) or {}),
        valuation=_build_valuation(raw.get("valuation", {}) or {}),
        price_sources=_build_price_sources(raw.get("price_sources", {}) or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not _CURRENCY_RE.match(cfg.currency):
        raise ValueError(f"Invalid currency code '{cfg.currency}'")

    if cfg.refresh.interval_minutes <= 0:
        raise ValueError("refresh.interval_minutes must be positive")
    if cfg.refresh.history_days <= 0:
        raise ValueError("refresh.history_days must be positive")
    if cfg.refresh.partial_day_hours < 0:
        raise ValueError("refresh.partial_day_hours must not be negative")

    if cfg.valuation.other_placeholder_unit_value < 0:
        raise ValueError("valuation.other_placeholder_unit_value must not be negative")

    sources = cfg.price_sources
    if sources.request_timeout <= 0:
        raise ValueError("price_sources.request_timeout must be positive")
    if sources.alpha_vantage.request_delay_seconds < 0:
        raise ValueError("alpha_vantage.request_delay_seconds must not be negative")
    if sources.goldapi.request_delay_seconds < 0:
        raise ValueError("goldapi.request_delay_seconds must not be negative")
    if not sources.goldapi.supported_symbols:
        raise ValueError("goldapi.supported_symbols must list at least one symbol")
