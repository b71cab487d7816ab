"""Message text rendering.

Pure functions only: given listings, produce Telegram Markdown text. Nothing
here keeps state between cycles.
"""
from __future__ import annotations

import traceback
from typing import Dict, Iterable, List, Mapping
from urllib.parse import urlencode

from listing import Listing

UTM_PARAMS = [("utm_source", "telegram"), ("utm_medium", "stock_alert")]
# Line caps per section keep a message under Telegram's 4096 char limit
SECTION_LIMIT = 15
IN_STOCK_LIMIT = 10

HEADER = "🛍️ Stock changes!"
ADDED_TITLE = "New in stock! 🔥🔥"
REMOVED_TITLE = "Now out of stock! 😔"
IN_STOCK_TITLE = "Currently in stock:"


def _field(obj, name: str) -> str:
    value = getattr(obj, name, None)
    return "" if value is None else str(value)


class LinkBuilder:
    """Renders a listing as a Markdown link.

    With use_direct_link the vendor's product page is used, otherwise the
    source page filtered to the listing's vendor (when its id is known).
    """

    def __init__(
        self,
        source_url: str,
        vendors: Dict[str, str] | None = None,
        use_direct_link: bool = False,
    ) -> None:
        self.source_url = source_url
        self.vendors = vendors if vendors is not None else {}
        self.use_direct_link = use_direct_link

    def url_for(self, listing: Listing) -> str:
        params: List[tuple[str, str]] = []
        if self.use_direct_link:
            base = _field(listing, "link")
        else:
            base = self.source_url
            vendor_id = self.vendors.get(_field(listing, "vendor"))
            if vendor_id:
                params.append(("vendor", vendor_id))
        params.extend(UTM_PARAMS)
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{urlencode(params)}"

    def source_link(self) -> str:
        return f"{self.source_url}?{urlencode(UTM_PARAMS)}"

    def markdown(self, listing: Listing) -> str:
        price = getattr(listing, "price", None)
        label = " | ".join(
            (_field(listing, "description"), _field(listing, "vendor"), _field(price, "display"))
        )
        return f"[{label}]({self.url_for(listing)})"


def _capped(lines: List[str], limit: int) -> List[str]:
    if len(lines) <= limit:
        return lines
    return [*lines[:limit], f"…and {len(lines) - limit} more"]


def compose(
    added: Mapping[str, Listing],
    removed: Mapping[str, Listing],
    in_stock: Iterable[Listing],
    links: LinkBuilder,
) -> str:
    """Render a stock change message.

    Sections follow the iteration order of the given mappings. Used both for
    new announcements and to re-render an announcement after some of its
    listings went out of stock.
    """
    parts = [HEADER]
    if added:
        lines = _capped([f"✅ {links.markdown(x)}" for x in added.values()], SECTION_LIMIT)
        parts.append("\n".join([ADDED_TITLE, *lines]))
    if removed:
        lines = _capped([f"❌ {links.markdown(x)}" for x in removed.values()], SECTION_LIMIT)
        parts.append("\n".join([REMOVED_TITLE, *lines]))

    lines = _capped([links.markdown(x) for x in in_stock], IN_STOCK_LIMIT)
    parts.append("\n".join([IN_STOCK_TITLE, *lines]))

    parts.append(f"Stock data from [{links.source_url}]({links.source_link()})")
    return "\n\n".join(parts)


def startup_message(prefixes: List[str], source_url: str) -> str:
    if not prefixes:
        watched = " All"
    else:
        watched = "\n" + "\n".join(f"`{p}`" for p in prefixes)
    return f"Bot started! ⚡ Looking for models:{watched}\n{source_url}"


def error_message(exc: BaseException) -> str:
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return f"❌ Error!\n{type(exc).__name__}: {exc}\n{stack}"


__all__ = ["LinkBuilder", "compose", "startup_message", "error_message", "IN_STOCK_LIMIT", "SECTION_LIMIT"]
