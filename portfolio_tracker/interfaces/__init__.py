"""Protocol interfaces for the portfolio tracker."""
from .history_source import HistorySource
from .price_source import PriceSource
from .storage_backend import StorageBackend

__all__ = ["HistorySource", "PriceSource", "StorageBackend"]
