"""Delivery ledger data models.

Decoupled from fcpbot_core so the store layer can be used independently.
The proposal summary is carried as an opaque JSON object (``info``); the
sync engine owns the mapping to and from its own model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class DeliveryRecord:
    """What was last delivered to one channel for one proposal."""

    message_id: int
    version: datetime  # the proposal's updated_at at delivery time
    format: int  # renderer format version at delivery time

    def is_current(self, version: datetime, format: int) -> bool:
        return self.version == version and self.format == format

    def to_dict(self) -> dict:
        return {"id": self.message_id, "version": self.version.isoformat(), "format": self.format}

    @classmethod
    def from_dict(cls, d: dict) -> DeliveryRecord:
        return cls(
            message_id=int(d["id"]),
            version=datetime.fromisoformat(d["version"]),
            format=int(d.get("format", 0)),
        )


@dataclass
class LedgerEntry:
    """Per-proposal record, keyed by the stringified proposal id.

    A channel missing from ``messages`` has never received a message for
    this proposal.
    """

    info: dict
    messages: dict[str, DeliveryRecord] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "info": self.info,
            "messages": {channel: record.to_dict() for channel, record in self.messages.items()},
        }

    @classmethod
    def from_dict(cls, d: dict) -> LedgerEntry:
        return cls(
            info=d.get("info") or {},
            messages={channel: DeliveryRecord.from_dict(m) for channel, m in (d.get("messages") or {}).items()},
        )
