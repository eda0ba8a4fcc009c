"""In-process store; nothing survives the process.

Useful for dry runs and tests. Entries are kept in their serialized form so
that a get() never hands out an object the caller already mutated.
"""

from __future__ import annotations

import json

from fcpbot_store.base import BaseStore
from fcpbot_store.models import LedgerEntry


class MemoryStore(BaseStore):
    def __init__(self, initial: dict[str, LedgerEntry] | None = None):
        self._data: dict[str, str] = {}
        for key, entry in (initial or {}).items():
            self.put(key, entry)

    def get(self, key: str) -> LedgerEntry | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return LedgerEntry.from_dict(json.loads(raw))

    def put(self, key: str, entry: LedgerEntry) -> None:
        self._data[key] = json.dumps(entry.to_dict())

    def keys(self) -> list[str]:
        return list(self._data)
