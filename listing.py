"""Listing data model and identity.

A Listing is one vendor's offer of one product at one price point. Listings
are immutable: every fetch produces new values.

Identity: two listings with the same sku, vendor and displayed price are the
same tracked item across cycles, even when the link or last-stock timestamp
differ. A price change is a new offer and therefore a new key.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, asdict
from typing import Any, Dict

KEY_SEPARATOR = "|"

_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)*")
_CURRENCY_CODE_RE = re.compile(r"\b([A-Z]{3})\b")
_CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY"}


@dataclass(frozen=True)
class Price:
    value: float | None
    currency: str
    display: str


@dataclass(frozen=True)
class Listing:
    sku: str
    description: str
    vendor: str
    price: Price
    link: str
    last_stock: str
    available: bool

    @property
    def key(self) -> str:
        return listing_key(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def listing_key(listing: Listing) -> str:
    """Return the stable identity of a listing (sku|vendor|price display)."""
    return KEY_SEPARATOR.join((listing.sku, listing.vendor, listing.price.display))


def _parse_number(raw: str) -> float | None:
    # "1.234,50" and "1,234.50" both mean 1234.5; a lone comma is a decimal mark
    if "," in raw and "." in raw:
        if raw.rfind(",") > raw.rfind("."):
            raw = raw.replace(".", "").replace(",", ".")
        else:
            raw = raw.replace(",", "")
    elif "," in raw:
        head, _, tail = raw.rpartition(",")
        raw = raw.replace(",", "") if len(tail) == 3 and head else raw.replace(",", ".")
    try:
        return float(raw)
    except ValueError:
        return None


def parse_price(display: str | None, currency: str | None = None) -> Price:
    """Build a Price from its display text, e.g. "50.00 EUR" or "$35.00".

    Unparseable text keeps its display string with a None value.
    """
    display = (display or "").strip()
    value = None
    match = _NUMBER_RE.search(display)
    if match:
        value = _parse_number(match.group(0))
    if not currency:
        code = _CURRENCY_CODE_RE.search(display)
        if code:
            currency = code.group(1)
        else:
            currency = next((c for s, c in _CURRENCY_SYMBOLS.items() if s in display), "")
    return Price(value=value, currency=currency, display=display)


__all__ = ["Price", "Listing", "listing_key", "parse_price", "KEY_SEPARATOR"]
