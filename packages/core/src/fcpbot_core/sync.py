"""Keep one message per (proposal, channel) in step with the feed.

For every proposal the engine loads the ledger entry, renders the message
once, then walks the configured channels in order:

    no delivery record          → send, record the new message id
    record at current version   → skip (no network, no store write)
    record at an older version  → edit the stored message in place

A failed send or edit leaves that channel's record untouched, so the next
cycle retries the same operation. Channels are handled strictly one after
another with a fixed pause after each attempt; that pause is the only rate
limiting towards the transport.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from fcpbot_core.feed import fetch_proposals, project_records
from fcpbot_core.render import MSG_FORMAT, render
from fcpbot_core.transport import TransportError
from fcpbot_store.base import StoreError
from fcpbot_store.models import DeliveryRecord, LedgerEntry

if TYPE_CHECKING:
    import requests

    from fcpbot_core.models import ProposalSummary
    from fcpbot_core.transport import BaseTransport
    from fcpbot_store.base import BaseStore

console = Console()
logger = logging.getLogger(__name__)

SEND = "send"
EDIT = "edit"
SKIP = "skip"


@dataclass
class ChannelOutcome:
    """What happened to one channel for one proposal.

    ``ok`` is None when nothing was attempted (skip, or a dry run).
    """

    channel: str
    action: str  # "send" | "edit" | "skip"
    ok: bool | None = None
    message_id: int | None = None
    error: str | None = None


@dataclass
class SyncSummary:
    """Totals for one sync cycle."""

    proposals: int = 0
    sent: int = 0
    edited: int = 0
    skipped: int = 0
    failed: int = 0
    planned: int = 0
    errors: dict[int, str] = field(default_factory=dict)  # proposal id → store error

    def add(self, outcomes: list[ChannelOutcome]) -> None:
        for o in outcomes:
            if o.action == SKIP:
                self.skipped += 1
            elif o.ok is None:
                self.planned += 1
            elif not o.ok:
                self.failed += 1
            elif o.action == SEND:
                self.sent += 1
            else:
                self.edited += 1


class SyncEngine:
    def __init__(
        self,
        store: BaseStore,
        transport: BaseTransport,
        channels: list[str],
        delay: float = 2.0,
        dry_run: bool = False,
    ):
        self.store = store
        self.transport = transport
        self.channels = list(channels)
        self.delay = delay
        self.dry_run = dry_run

    def sync_one(self, summary: ProposalSummary) -> list[ChannelOutcome]:
        """Bring every channel's message for one proposal up to date.

        StoreError from get/put propagates; TransportError is handled per
        channel.
        """
        key = str(summary.id)
        saved = self.store.get(key)
        entry = LedgerEntry(info=summary.to_dict(), messages=saved.messages if saved else {})
        message = render(summary)

        outcomes = []
        for channel in self.channels:
            record = entry.messages.get(channel)

            if record is not None and record.is_current(summary.updated_at, MSG_FORMAT):
                logger.debug("FCP %s already at newest version in %s (message %s)", key, channel, record.message_id)
                outcomes.append(ChannelOutcome(channel, SKIP, message_id=record.message_id))
                continue

            action = SEND if record is None else EDIT
            if self.dry_run:
                outcomes.append(ChannelOutcome(channel, action, message_id=record.message_id if record else None))
                continue

            outcome = ChannelOutcome(channel, action)
            try:
                if record is None:
                    logger.info("Sending FCP %s to %s", key, channel)
                    message_id = self.transport.send(channel, message)
                    entry.messages[channel] = DeliveryRecord(
                        message_id=message_id, version=summary.updated_at, format=MSG_FORMAT
                    )
                else:
                    logger.info("Updating FCP %s message %s in %s", key, record.message_id, channel)
                    self.transport.edit(channel, record.message_id, message)
                    message_id = record.message_id
                    record.version = summary.updated_at
                    record.format = MSG_FORMAT
            except TransportError as e:
                logger.warning("Could not %s FCP %s in %s: %s", action, key, channel, e)
                outcome.ok = False
                outcome.error = str(e)
            else:
                outcome.ok = True
                outcome.message_id = message_id
                self.store.put(key, entry)

            outcomes.append(outcome)
            time.sleep(self.delay)

        return outcomes


def run_sync(
    config: dict,
    store: BaseStore,
    transport: BaseTransport,
    session: requests.Session | None = None,
    dry_run: bool = False,
) -> SyncSummary:
    """Run one full sync cycle and return its totals.

    FeedError propagates before anything is written, including one raised
    for a record whose values cannot be projected. A StoreError only
    abandons the proposal it occurred on.
    """
    raw = fetch_proposals(config["feed_url"], session=session, timeout=config.get("request_timeout", 30))
    proposals = project_records(raw)
    engine = SyncEngine(
        store=store,
        transport=transport,
        channels=config["targets"],
        delay=config.get("send_delay", 2.0),
        dry_run=dry_run,
    )

    summary = SyncSummary()
    for proposal in proposals:
        summary.proposals += 1
        try:
            outcomes = engine.sync_one(proposal)
        except StoreError as e:
            logger.error("Ledger failure for FCP %s, skipping it this cycle: %s", proposal.id, e)
            summary.errors[proposal.id] = str(e)
            continue
        summary.add(outcomes)

        if dry_run:
            for o in outcomes:
                if o.action != SKIP:
                    title = escape(proposal.title)
                    console.print(f"  [cyan]{o.action}[/cyan] FCP {proposal.id} → {o.channel}  {title}")

    return summary
