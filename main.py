"""Entrypoint for the stock watcher.

Features:
- Periodically (default 60s plus jitter) fetches the stock source
- Detects listings that came in stock or went out of stock
- Announces new stock in one Telegram message per cycle and edits that
  message when the listings sell out (for 24h after sending)
- Reports startup and errors to a separate admin chat

Configuration via environment variables, see config.py.

Cycles never overlap: the next wait starts only once the current cycle has
finished. SIGINT/SIGTERM stop the loop between cycles.
"""
from __future__ import annotations

import asyncio
import logging
import os
import random
import signal

from composer import LinkBuilder, startup_message
from config import MonitorConfig
from fetcher import StockSource
from ledger import NotificationLedger
from monitor import StockMonitor
from notifier import TelegramNotifier
from persistent_state import AvailableMirror
from stock_checker import SnapshotDiffer

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("main")


def build_monitor(config: MonitorConfig, notifier: TelegramNotifier) -> StockMonitor:
    source = StockSource(
        url=config.stock_url,
        mode=config.source_mode,
        timeout=config.fetch_timeout,
        retries=config.fetch_retries,
    )
    # Shares the source's vendor map so links pick up fresh vendor ids
    links = LinkBuilder(config.stock_url, source.vendors, config.use_direct_link)
    ledger = NotificationLedger(notifier, links, retention=config.retention)
    mirror = AvailableMirror(config.mirror_file) if config.mirror_file else None
    return StockMonitor(source, SnapshotDiffer(config.interest), ledger, notifier, mirror)


async def wait_between_cycles(
    monitor: StockMonitor, config: MonitorConfig, stop: asyncio.Event
) -> None:
    """Sleep interval + jitter, sweeping expired ledger entries meanwhile."""
    # Add small jitter to avoid thundering herd against the shared source
    remaining = config.poll_interval + random.uniform(0, config.poll_jitter)
    while remaining > 0 and not stop.is_set():
        step = min(remaining, config.sweep_interval)
        try:
            await asyncio.wait_for(stop.wait(), timeout=step)
        except asyncio.TimeoutError:
            pass
        remaining -= step
        monitor.ledger.evict_expired()


async def run_forever(monitor: StockMonitor, config: MonitorConfig, stop: asyncio.Event) -> None:
    logger.info("Starting stock monitor loop (interval=%ss)", config.poll_interval)
    while not stop.is_set():
        try:
            result = await monitor.run_cycle()
            if not result.ok:
                logger.warning("Cycle finished with errors; continuing on next tick")
        except Exception as e:  # pragma: no cover - last resort, keep polling
            logger.exception("Unexpected error during cycle")
            await monitor.report(e)
        await wait_between_cycles(monitor, config, stop)
    logger.info("Stock monitor stopped")


async def amain(config: MonitorConfig) -> None:  # pragma: no cover
    notifier = TelegramNotifier(config.telegram_token, config.chat_id, config.admin_chat_id)
    monitor = build_monitor(config, notifier)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await notifier.start()
    try:
        await notifier.notify_admin(
            startup_message(config.interest.describe(), config.stock_url), markdown=True
        )
        await run_forever(monitor, config, stop)
    finally:
        await notifier.close()


def main() -> None:  # pragma: no cover
    asyncio.run(amain(MonitorConfig.from_env()))


if __name__ == "__main__":  # pragma: no cover
    main()
