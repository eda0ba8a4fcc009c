"""Abstract ledger store interface.

Every backend (memory, SQLite, Gist) implements this interface. The sync
engine depends on BaseStore, not on a concrete backend, so backends are
swappable through configuration alone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fcpbot_store.models import LedgerEntry


class StoreError(Exception):
    """Raised when the backing store cannot be read or written."""


class BaseStore(ABC):
    """Durable key-value persistence for ledger entries.

    The store is the only source of truth for "was this already delivered".
    Backends must raise StoreError on failure rather than returning a
    default: a silently missing entry would cause duplicate messages.
    """

    @abstractmethod
    def get(self, key: str) -> LedgerEntry | None:
        """Return the entry stored under key, or None if there is none."""

    @abstractmethod
    def put(self, key: str, entry: LedgerEntry) -> None:
        """Persist entry under key, replacing any previous value."""

    @abstractmethod
    def keys(self) -> list[str]:
        """Return all stored keys."""

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
