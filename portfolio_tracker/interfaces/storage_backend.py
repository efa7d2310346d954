"""Storage backend protocol — durable key-value record."""
from typing import Protocol


class StorageBackend(Protocol):
    """Abstract interface for reading and writing a single text record."""

    def read(self) -> str | None: ...

    def write(self, payload: str) -> None: ...
