"""Stock source fetching.

Fetches the stock page (HTML table) or JSON API and parses it into listings.
Implements timeout and basic retry with backoff; unlike a best-effort
fallback, a source that cannot be read raises FetchError so the cycle is
aborted before any state changes.
"""
from __future__ import annotations

import logging
import random
import time
from typing import Dict, List

import requests

from errors import FetchError
from listing import Listing
from stock_checker import parse_listings_html, parse_listings_json, parse_vendors_html

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://rpilocator.com/"
MODES = ("html", "json")
HEADERS = {"User-Agent": "stock-watch/1.0"}


class StockSource:
    def __init__(
        self,
        url: str = DEFAULT_URL,
        mode: str = "html",
        timeout: float = 15.0,
        retries: int = 2,
        backoff_base: float = 0.75,
    ) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown source mode {mode!r}; expected one of {MODES}")
        self.url = url
        self.mode = mode
        self.timeout = timeout
        self.retries = retries
        self.backoff_base = backoff_base
        # vendor name -> vendor id, refreshed from every HTML page
        self.vendors: Dict[str, str] = {}

    def _get(self) -> requests.Response:
        accept = "application/json" if self.mode == "json" else "text/html"
        last_error: Exception | None = None
        for attempt in range(self.retries + 1):
            try:
                resp = requests.get(
                    self.url, timeout=self.timeout, headers={**HEADERS, "Accept": accept}
                )
                resp.raise_for_status()
                return resp
            except requests.RequestException as e:
                last_error = e
                logger.warning("Fetch attempt %d failed: %s", attempt + 1, e)
                if attempt < self.retries:
                    sleep_for = self.backoff_base * (2 ** attempt) + random.random() * 0.3
                    time.sleep(sleep_for)
        raise FetchError(f"All {self.retries + 1} fetch attempts failed for {self.url}") from last_error

    def fetch_listings(self) -> List[Listing]:
        resp = self._get()
        try:
            if self.mode == "json":
                listings = parse_listings_json(resp.json())
            else:
                listings = parse_listings_html(resp.text)
                self.vendors.clear()
                self.vendors.update(parse_vendors_html(resp.text))
        except ValueError as e:
            raise FetchError(f"Could not parse response from {self.url}: {e}") from e
        logger.debug("Fetched %d listing(s) from %s", len(listings), self.url)
        return listings


__all__ = ["StockSource", "DEFAULT_URL"]
