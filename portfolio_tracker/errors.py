"""Exception hierarchy for price fetching, persistence and holding input.

Each fetch error is absorbed at the boundary that owns it: adapters swallow
``PerIdFetchError``, the aggregator swallows ``BatchFetchError``, the history
source swallows ``HistoryUnavailable`` and the store swallows
``PersistenceParseError``.
"""


class TrackerError(Exception):
    """Base exception for the portfolio tracker."""


class PriceSourceError(TrackerError):
    """Base for price source failures. Carries the source name."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(message)


class PerIdFetchError(PriceSourceError):
    """A single id could not be priced (HTTP error, vendor message, bad payload)."""

    def __init__(self, message: str, source: str = "", item_id: str = ""):
        self.item_id = item_id
        super().__init__(message, source)


class BatchFetchError(PriceSourceError):
    """The whole adapter call failed."""

    def __init__(self, message: str, source: str = "", status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, source)


class HistoryUnavailable(PriceSourceError):
    """No history series could be produced for the requested id."""

    def __init__(self, message: str, source: str = "", item_id: str = ""):
        self.item_id = item_id
        super().__init__(message, source)


class PersistenceParseError(TrackerError):
    """Stored holdings payload is malformed."""


class HoldingValidationError(TrackerError, ValueError):
    """Holding form input was rejected."""


class DuplicateHoldingError(HoldingValidationError):
    """A holding with the same id already exists."""

    def __init__(self, holding_id: str):
        self.holding_id = holding_id
        super().__init__(f"Asset with ID '{holding_id}' already exists")
