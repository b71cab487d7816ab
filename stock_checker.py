"""Stock checking logic.

This module turns the stock source's page (HTML table) or API response (JSON)
into Listing values and works out which listings changed availability since
the previous fetch.

HTML table layout (one row per vendor offer, first row is the header):

    <tr>
        <th>SKU</th>
        <td>Description</td>
        <td><a href="...">Link</a></td>
        <td>...</td>
        <td>Vendor</td>
        <td>Yes / No</td>
        <td>Last stock</td>
        <td>Price</td>
    </tr>

JSON structure (simplified):
{
    "data": [
        {
            "sku": "SC0194(9)",
            "description": "RPi 4 Model B - 4GB RAM",
            "link": "https://...",
            "vendor": "Pimoroni (UK)",
            "avail": "Yes",
            "last_stock": "2022-10-11 09:12:00",
            "price": {"display": "55.00 GBP", "sort": 55.0, "currency": "GBP"}
        }
    ]
}
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple
import logging

from bs4 import BeautifulSoup

from listing import Listing, Price, listing_key, parse_price

logger = logging.getLogger(__name__)

WILDCARD = "*"
_TRUTHY = {"yes", "true", "1", "y"}


def _text(node) -> str:
    return node.get_text().strip() if node is not None else ""


def _is_available(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in _TRUTHY


def parse_listings_html(html: str) -> List[Listing]:
    """Parse every row of the stock table after the header.

    Rows with fewer than eight cells are skipped. A page without table rows
    (challenge page, error page) raises ValueError.
    """
    soup = BeautifulSoup(html, "html.parser")
    rows = soup.find_all("tr")[1:]
    if not rows:
        raise ValueError("No stock table rows found in page")
    listings: List[Listing] = []
    for row in rows:
        cells = [row.find("th"), *row.find_all("td")]
        if len(cells) < 8 or cells[0] is None:
            logger.debug("Skipping malformed row: %s", row)
            continue
        anchor = cells[2].find("a")
        listings.append(
            Listing(
                sku=_text(cells[0]),
                description=_text(cells[1]),
                link=anchor.get("href", "") if anchor is not None else "",
                vendor=_text(cells[4]),
                available=_is_available(_text(cells[5])),
                last_stock=_text(cells[6]),
                price=parse_price(_text(cells[7])),
            )
        )
    if not listings:
        raise ValueError(f"None of {len(rows)} table row(s) could be parsed")
    return listings


def parse_vendors_html(html: str) -> Dict[str, str]:
    """Return vendor name -> vendor id from the page's vendor filter links.

    Link text is "<COUNTRY> <Vendor name>"; the name is rebuilt as
    "<Vendor name> <COUNTRY>" to match the table's vendor column.
    """
    soup = BeautifulSoup(html, "html.parser")
    vendors: Dict[str, str] = {}
    for anchor in soup.select("a[data-vendor]"):
        country, _, name = anchor.get_text().strip().partition(" ")
        vendors[f"{name} {country}".strip()] = anchor["data-vendor"]
    vendors.pop("All", None)
    return vendors


def parse_listings_json(payload: Dict[str, Any]) -> List[Listing]:
    """Parse the JSON API payload. Safely handles missing keys in rows.

    A payload without a 'data' list raises ValueError.
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise ValueError(f"Payload missing 'data' list; got: {type(payload).__name__}")

    listings: List[Listing] = []
    for obj in data:
        if not isinstance(obj, dict):
            continue
        raw_price = obj.get("price")
        if isinstance(raw_price, dict):
            price = parse_price(str(raw_price.get("display", "")), raw_price.get("currency"))
            sort_value = raw_price.get("sort")
            if isinstance(sort_value, (int, float)) and not isinstance(sort_value, bool):
                price = Price(value=float(sort_value), currency=price.currency, display=price.display)
        else:
            price = parse_price(str(raw_price or ""))
        listings.append(
            Listing(
                sku=str(obj.get("sku", "")).strip(),
                description=str(obj.get("description", "")).strip(),
                vendor=str(obj.get("vendor", "")).strip(),
                price=price,
                link=str(obj.get("link", "")),
                last_stock=str(obj.get("last_stock", "")),
                available=_is_available(obj.get("avail", obj.get("available", False))),
            )
        )
    return listings


class InterestFilter:
    """Which SKUs we watch: everything ("*") or a list of SKU prefixes.

    Prefix matching is case-insensitive.
    """

    def __init__(self, prefixes: Iterable[str] | None = None) -> None:
        cleaned = tuple(p.strip() for p in (prefixes or ()) if p and p.strip())
        self.watch_all = not cleaned or WILDCARD in cleaned
        self.prefixes: Tuple[str, ...] = () if self.watch_all else cleaned
        self._lowered = tuple(p.lower() for p in self.prefixes)

    @classmethod
    def from_string(cls, raw: str | None) -> "InterestFilter":
        return cls((raw or WILDCARD).split(","))

    def matches(self, listing: Listing) -> bool:
        if self.watch_all:
            return True
        return listing.sku.lower().startswith(self._lowered)

    def apply(self, listings: Iterable[Listing]) -> List[Listing]:
        return [x for x in listings if self.matches(x)]

    def describe(self) -> List[str]:
        return list(self.prefixes)


@dataclass
class Delta:
    added: Dict[str, Listing] = field(default_factory=dict)
    removed: Dict[str, Listing] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.added and not self.removed


class SnapshotDiffer:
    """Owns the snapshot of currently available listings.

    The first diff is a baseline: it fills the snapshot and reports nothing,
    so items already in stock when watching starts are not announced. Each
    later diff replaces the snapshot in full.
    """

    def __init__(self, interest: InterestFilter | None = None) -> None:
        self.interest = interest or InterestFilter()
        self._snapshot: Dict[str, Listing] = {}
        self.is_first_cycle = True

    @property
    def snapshot(self) -> Dict[str, Listing]:
        return dict(self._snapshot)

    def in_stock(self) -> List[Listing]:
        return list(self._snapshot.values())

    def diff(self, listings: Iterable[Listing]) -> Delta:
        watched = self.interest.apply(listings)
        current: Dict[str, Listing] = {}
        fetched: Dict[str, Listing] = {}
        for x in watched:
            key = listing_key(x)
            fetched[key] = x
            if x.available:
                current[key] = x

        if self.is_first_cycle:
            self._snapshot = current
            self.is_first_cycle = False
            logger.info("Baseline snapshot taken: %d listing(s) in stock", len(current))
            return Delta()

        added = {k: v for k, v in current.items() if k not in self._snapshot}
        # Report the fresh listing when the source still lists it as unavailable
        removed = {
            k: fetched.get(k, old) for k, old in self._snapshot.items() if k not in current
        }
        self._snapshot = current
        logger.debug(
            "Diff complete: watched=%d in_stock=%d added=%d removed=%d",
            len(watched), len(current), len(added), len(removed),
        )
        return Delta(added=added, removed=removed)


__all__ = [
    "parse_listings_html",
    "parse_listings_json",
    "parse_vendors_html",
    "InterestFilter",
    "Delta",
    "SnapshotDiffer",
]
