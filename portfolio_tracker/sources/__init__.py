"""Vendor price sources."""
from .alpha_vantage import AlphaVantageSource
from .coingecko import CoinGeckoSource
from .goldapi import GoldApiSource
from .pacing import RequestPacer

__all__ = ["AlphaVantageSource", "CoinGeckoSource", "GoldApiSource", "RequestPacer"]
