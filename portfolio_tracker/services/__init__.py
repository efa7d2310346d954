"""Service modules"""
from .aggregator import PriceAggregator
from .refresh import RefreshController
from .tracker import Tracker

__all__ = ["PriceAggregator", "RefreshController", "Tracker"]
