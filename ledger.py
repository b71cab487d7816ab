"""Notification ledger.

Remembers which Telegram message announced which listings so that, when a
listing goes out of stock, the announcement is edited instead of a new
message being sent.

State:
- key -> message_id          : the latest announcement of each listing
- message_id -> LedgerEntry  : the announcement and what it currently shows

Entries live for a fixed retention window (24h by default) measured from
their creation. Edits do not extend it. Expiry is checked by evict_expired(),
which the scheduler calls periodically.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping

from composer import LinkBuilder, compose
from errors import EditError
from listing import Listing
from notifier import MessageHandle, Messenger

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 24 * 60 * 60


@dataclass
class LedgerEntry:
    handle: MessageHandle
    created_at: float
    available: Dict[str, Listing] = field(default_factory=dict)
    unavailable: Dict[str, Listing] = field(default_factory=dict)

    def expires_at(self, retention: float) -> float:
        return self.created_at + retention


class NotificationLedger:
    def __init__(
        self,
        messenger: Messenger,
        links: LinkBuilder,
        retention: float = DEFAULT_RETENTION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.messenger = messenger
        self.links = links
        self.retention = retention
        self.clock = clock
        self._message_ids: Dict[str, int] = {}
        self._entries: Dict[int, LedgerEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def entry_for(self, key: str) -> LedgerEntry | None:
        message_id = self._message_ids.get(key)
        return self._entries.get(message_id) if message_id is not None else None

    def keys(self) -> List[str]:
        return list(self._message_ids)

    async def record_new_availability(
        self, added: Mapping[str, Listing], in_stock: Iterable[Listing]
    ) -> MessageHandle:
        """Announce the whole batch in one message and remember it.

        One entry per message holds the whole batch, and every key of the
        batch points at it, so an edit re-renders the full announcement with
        the sold-out listings moved to their own section. SendError
        propagates and nothing is recorded.
        """
        text = compose(added, {}, in_stock, self.links)
        logger.debug("New availability message:\n%s", text)
        handle = await self.messenger.send(text)

        entry = LedgerEntry(handle=handle, created_at=self.clock(), available=dict(added))
        self._entries[handle.message_id] = entry
        for key in added:
            self._message_ids[key] = handle.message_id
        logger.info("Recorded message %s for %d listing(s)", handle.message_id, len(added))
        return handle

    async def apply_unavailability(
        self, removed: Mapping[str, Listing], in_stock: Iterable[Listing]
    ) -> List[EditError]:
        """Mark announced listings as out of stock and edit their messages.

        Listings that were never announced (or whose announcement expired)
        are ignored. Failed edits are logged and returned; the ledger keeps
        the listing as unavailable either way.
        """
        in_stock = list(in_stock)
        failures: List[EditError] = []
        for key, x in removed.items():
            entry = self.entry_for(key)
            if entry is None:
                logger.debug("No announcement for %s; skipping", key)
                continue
            logger.info("Now unavailable: %s", key)
            entry.available.pop(key, None)
            entry.unavailable[key] = x
            text = compose(entry.available, entry.unavailable, in_stock, self.links)
            try:
                await self.messenger.edit(entry.handle, text)
            except EditError as e:
                logger.warning("Edit failed for %s: %s", key, e)
                failures.append(e)
        return failures

    def evict_expired(self, now: float | None = None) -> int:
        """Drop entries older than the retention window. Returns how many."""
        now = self.clock() if now is None else now
        expired = [
            message_id
            for message_id, entry in self._entries.items()
            if entry.expires_at(self.retention) <= now
        ]
        for message_id in expired:
            del self._entries[message_id]
        if expired:
            gone = set(expired)
            # Keys re-announced in a newer message keep pointing at it
            self._message_ids = {k: m for k, m in self._message_ids.items() if m not in gone}
            logger.info("Evicted %d expired ledger entries", len(expired))
        return len(expired)


__all__ = ["LedgerEntry", "NotificationLedger", "DEFAULT_RETENTION"]
