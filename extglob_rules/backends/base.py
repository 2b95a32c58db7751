from __future__ import annotations

from typing import Optional, Protocol


class TranslationBackend(Protocol):
    """Interface for stores of translated pattern entries."""

    def get(self, key: str) -> Optional[bytes]:
        """Retrieve a serialized entry, or None."""
        ...

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store a serialized entry for ``ttl_seconds`` (0 keeps it forever)."""
        ...

    def delete(self, key: str) -> None:
        """Drop an entry if present."""
        ...

    def health_check(self) -> bool:
        """Check if the backend is reachable."""
        ...
