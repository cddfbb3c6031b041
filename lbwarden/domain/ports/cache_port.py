"""
Cache Port

Architectural Intent:
- Contract for the short-TTL read cache shared by every reconciliation pass
- Implementations must be safe for concurrent get/set/delete
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CachePort(Protocol):

    def get(self, key: str) -> tuple[Any, bool]:
        """Return (value, True) on a live hit, (None, False) otherwise."""
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> bool:
        """Remove an entry, returning whether it was present."""
        ...
