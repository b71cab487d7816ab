"""One polling cycle: fetch -> diff -> notify.

Error policy:
- FetchError : cycle aborted, snapshot and ledger untouched
- SendError  : snapshot stays updated (those listings won't be re-announced),
               nothing recorded in the ledger
- EditError  : listing stays marked unavailable in the ledger

Every error is reported to the admin chat; none escape run_cycle().
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from composer import error_message
from errors import EditError, FetchError, SendError
from fetcher import StockSource
from ledger import NotificationLedger
from notifier import MessageHandle, Messenger
from persistent_state import AvailableMirror
from stock_checker import Delta, SnapshotDiffer

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    delta: Optional[Delta] = None
    sent: Optional[MessageHandle] = None
    edit_failures: List[EditError] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.edit_failures


class StockMonitor:
    def __init__(
        self,
        source: StockSource,
        differ: SnapshotDiffer,
        ledger: NotificationLedger,
        messenger: Messenger,
        mirror: AvailableMirror | None = None,
    ) -> None:
        self.source = source
        self.differ = differ
        self.ledger = ledger
        self.messenger = messenger
        self.mirror = mirror

    async def report(self, exc: Exception) -> None:
        await self.messenger.notify_admin(error_message(exc))

    async def run_cycle(self) -> CycleResult:
        result = CycleResult()
        self.ledger.evict_expired()

        logger.info("Checking stock...")
        try:
            listings = await asyncio.to_thread(self.source.fetch_listings)
        except FetchError as e:
            logger.error("Fetch failed, skipping cycle: %s", e)
            result.error = e
            await self.report(e)
            return result

        delta = self.differ.diff(listings)
        result.delta = delta
        if self.mirror is not None:
            self.mirror.write(self.differ.snapshot)
        in_stock = self.differ.in_stock()

        if delta.added:
            try:
                result.sent = await self.ledger.record_new_availability(delta.added, in_stock)
            except SendError as e:
                logger.error("Could not announce %d listing(s): %s", len(delta.added), e)
                result.error = e
                await self.report(e)
        else:
            logger.info("Nothing new in stock")

        if delta.removed:
            result.edit_failures = await self.ledger.apply_unavailability(delta.removed, in_stock)
            for e in result.edit_failures:
                await self.report(e)

        logger.debug(
            "Cycle complete: fetched=%d added=%d removed=%d tracked_messages=%d",
            len(listings), len(delta.added), len(delta.removed), len(self.ledger),
        )
        return result


__all__ = ["CycleResult", "StockMonitor"]
