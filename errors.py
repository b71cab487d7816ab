"""Exceptions raised by the stock watcher adapters.

- FetchError : the source could not be fetched or parsed; the cycle is aborted.
- SendError  : a new notification could not be sent.
- EditError  : an existing notification could not be edited (non-fatal).
"""
from __future__ import annotations


class StockWatchError(Exception):
    """Base class for all stock watcher errors."""


class FetchError(StockWatchError):
    pass


class SendError(StockWatchError):
    pass


class EditError(StockWatchError):
    def __init__(self, message: str, message_id: int | None = None) -> None:
        super().__init__(message)
        self.message_id = message_id


__all__ = ["StockWatchError", "FetchError", "SendError", "EditError"]
