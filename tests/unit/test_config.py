"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

from pathlib import Path

import pytest

from portfolio_tracker.config import (
    AppConfig,
    GoldApiConfig,
    RefreshConfig,
    StorageConfig,
    _interpolate_env,
    load_config,
)


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOK", "secret")
        result = _interpolate_env({"key": "${TOK}", "plain": "text"})
        assert result == {"key": "secret", "plain": "text"}

    def test_nested_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("A", "x")
        assert _interpolate_env(["${A}", "y"]) == ["x", "y"]

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(42) == 42
        assert _interpolate_env(True) is True


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.currency == "USD"
        assert cfg.refresh.interval_minutes == 5
        assert cfg.refresh.history_days == 30
        assert cfg.price_sources.request_timeout == 10
        assert cfg.price_sources.alpha_vantage.request_delay_seconds == 13.0
        assert cfg.price_sources.alpha_vantage.api_key == "av-key"
        assert cfg.valuation.other_placeholder_unit_value == 50.0

    def test_supported_symbols_are_uppercased(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert cfg.price_sources.goldapi.supported_symbols == ("XAU", "XAG")

    def test_defaults_for_missing_sections(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("currency: usd\n")
        cfg = load_config(cfg_file)
        assert cfg.currency == "USD"
        assert cfg.price_sources.alpha_vantage.request_delay_seconds == 13.0
        assert cfg.price_sources.goldapi.supported_symbols == ("XAU", "XAG")
        assert cfg.refresh.partial_day_hours == 23.0

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("")
        assert load_config(cfg_file) == AppConfig()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_AV_KEY", "ABC123")
        yaml_content = """\
price_sources:
  alpha_vantage:
    api_key: "${TEST_AV_KEY}"
"""
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(yaml_content)
        cfg = load_config(cfg_file)
        assert cfg.price_sources.alpha_vantage.api_key == "ABC123"


class TestValidation:
    @pytest.mark.parametrize(
        "yaml_content, match",
        [
            ("currency: dollars\n", "Invalid currency"),
            ("refresh: {interval_minutes: 0}\n", "interval_minutes"),
            ("refresh: {history_days: -1}\n", "history_days"),
            (
                "price_sources: {alpha_vantage: {request_delay_seconds: -5}}\n",
                "alpha_vantage.request_delay_seconds",
            ),
            (
                "price_sources: {goldapi: {supported_symbols: []}}\n",
                "supported_symbols",
            ),
            (
                "valuation: {other_placeholder_unit_value: -1}\n",
                "other_placeholder_unit_value",
            ),
        ],
    )
    def test_invalid_values_raise(
        self, tmp_path: Path, yaml_content: str, match: str
    ) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(yaml_content)
        with pytest.raises(ValueError, match=match):
            load_config(cfg_file)


class TestStorageConfig:
    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "h.json"
        assert StorageConfig(holdings_path=str(path)).resolved_path() == path

    def test_default_path_in_project_root(self) -> None:
        assert StorageConfig().resolved_path().name == "holdings.json"


class TestFrozenConfigs:
    def test_refresh_config_immutable(self) -> None:
        r = RefreshConfig()
        with pytest.raises(AttributeError):
            r.history_days = 7  # type: ignore[misc]

    def test_goldapi_config_immutable(self) -> None:
        g = GoldApiConfig()
        with pytest.raises(AttributeError):
            g.supported_symbols = ("XPT",)  # type: ignore[misc]
