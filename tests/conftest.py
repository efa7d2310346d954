"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from portfolio_tracker.config import (
    AlphaVantageConfig,
    AppConfig,
    CoinGeckoConfig,
    GoldApiConfig,
    PriceSourcesConfig,
    RefreshConfig,
    StorageConfig,
    ValuationConfig,
)
from portfolio_tracker.models import Holding, PriceRecord


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_coingecko_config() -> CoinGeckoConfig:
    return CoinGeckoConfig(base_url="https://cg.example.com/api/v3", api_key="")


@pytest.fixture()
def sample_alpha_vantage_config() -> AlphaVantageConfig:
    return AlphaVantageConfig(
        base_url="https://av.example.com/query",
        api_key="av-key",
        request_delay_seconds=13.0,
    )


@pytest.fixture()
def sample_goldapi_config() -> GoldApiConfig:
    return GoldApiConfig(
        base_url="https://gold.example.com/api",
        api_key="goldapi-test",
        supported_symbols=("XAU", "XAG"),
        request_delay_seconds=1.0,
    )


@pytest.fixture()
def sample_app_config(
    tmp_path: Path,
    sample_coingecko_config: CoinGeckoConfig,
    sample_alpha_vantage_config: AlphaVantageConfig,
    sample_goldapi_config: GoldApiConfig,
) -> AppConfig:
    return AppConfig(
        currency="USD",
        refresh=RefreshConfig(interval_minutes=5, history_days=30),
        storage=StorageConfig(holdings_path=str(tmp_path / "holdings.json")),
        valuation=ValuationConfig(other_placeholder_unit_value=50.0),
        price_sources=PriceSourcesConfig(
            request_timeout=10,
            coingecko=sample_coingecko_config,
            alpha_vantage=sample_alpha_vantage_config,
            goldapi=sample_goldapi_config,
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def bitcoin() -> Holding:
    return Holding(
        id="bitcoin", kind="crypto", display_name="Bitcoin", ticker_label="BTC", quantity=2.0
    )


@pytest.fixture()
def apple() -> Holding:
    return Holding(
        id="AAPL", kind="equity", display_name="Apple", ticker_label="AAPL", quantity=10.0
    )


@pytest.fixture()
def gold() -> Holding:
    return Holding(
        id="XAU", kind="commodity", display_name="Gold", ticker_label="XAU", quantity=3.0
    )


@pytest.fixture()
def house() -> Holding:
    return Holding(
        id="asset-real_estate-1",
        kind="real_estate",
        display_name="House",
        ticker_label="HOME",
        quantity=1.0,
        purchase_value=300000.0,
        manual_value=450000.0,
    )


@pytest.fixture()
def sample_holdings(
    bitcoin: Holding, apple: Holding, gold: Holding, house: Holding
) -> tuple[Holding, ...]:
    return (bitcoin, apple, gold, house)


@pytest.fixture()
def sample_prices() -> dict[str, PriceRecord]:
    return {
        "bitcoin": PriceRecord(price=50000.0),
        "AAPL": PriceRecord(price=190.0),
        "XAU": PriceRecord(price=2300.0),
    }


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    currency: USD
    refresh:
      interval_minutes: 5
      history_days: 30
    storage:
      holdings_path: "/tmp/holdings-test.json"
    valuation:
      other_placeholder_unit_value: 50
    price_sources:
      request_timeout: 10
      coingecko:
        base_url: "https://cg.example.com/api/v3"
        api_key: ""
      alpha_vantage:
        api_key: "av-key"
        request_delay_seconds: 13
      goldapi:
        api_key: "goldapi-test"
        supported_symbols: [xau, XAG]
        request_delay_seconds: 1
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# aiohttp mocks
# ---------------------------------------------------------------------------


def _make_response(status: int = 200, data: Any = None, text: str = "") -> AsyncMock:
    response = AsyncMock()
    response.status = status
    response.json = AsyncMock(return_value=data)
    response.text = AsyncMock(return_value=text)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def _make_session(*responses: Any) -> AsyncMock:
    session = AsyncMock()
    session.get = MagicMock(side_effect=list(responses))
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)
    return session


@pytest.fixture()
def make_response():
    """Factory for mocked aiohttp responses usable as async context managers."""
    return _make_response


@pytest.fixture()
def make_session():
    """Factory for mocked sessions whose ``get`` yields responses in order.

    An exception instance among the responses is raised by that ``get`` call.
    """
    return _make_session
