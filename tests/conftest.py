"""Shared pytest fixtures: listing factory, fake messenger and fake clock."""

from unittest.mock import patch

import pytest

from composer import LinkBuilder
from errors import EditError, SendError
from listing import Listing, parse_price
from notifier import MessageHandle


def _make_listing(sku="SC0194(9)", vendor="Pimoroni (UK)", price="55.00 GBP", available=True, **kwargs):
    return Listing(
        sku=sku,
        description=kwargs.get("description", f"RPi {sku}"),
        vendor=vendor,
        price=parse_price(price),
        link=kwargs.get("link", f"https://shop.example/{sku}"),
        last_stock=kwargs.get("last_stock", "2022-10-11 09:12:00"),
        available=available,
    )


class FakeMessenger:
    """Records sends and edits; can be told to fail."""

    def __init__(self):
        self.sent = []
        self.edits = []
        self.admin = []
        self.fail_send = False
        self.fail_edit = False
        self._next_id = 100

    async def send(self, text):
        if self.fail_send:
            raise SendError("send refused")
        self._next_id += 1
        self.sent.append(text)
        return MessageHandle(chat_id="chat", message_id=self._next_id)

    async def edit(self, handle, text):
        if self.fail_edit:
            raise EditError("message can't be edited", message_id=handle.message_id)
        self.edits.append((handle, text))

    async def notify_admin(self, text, markdown=False):
        self.admin.append(text)


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def make_listing():
    return _make_listing


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def links():
    return LinkBuilder("https://rpilocator.com/", {"Pimoroni (UK)": "pimoroni"})


@pytest.fixture(autouse=True)
def mock_sleep():
    """Patch time.sleep globally so retry loops run instantly."""
    with patch("time.sleep"):
        yield
