"""Tests for listing identity and price parsing."""

from dataclasses import replace

from listing import listing_key, parse_price


class TestListingKey:
    def test_key_format(self, make_listing):
        x = make_listing(sku="4B", vendor="X", price="50 EUR")
        assert listing_key(x) == "4B|X|50 EUR"
        assert x.key == listing_key(x)

    def test_link_and_timestamp_do_not_change_key(self, make_listing):
        a = make_listing()
        b = replace(a, link="https://elsewhere.example", last_stock="2023-01-01", description="other")
        assert listing_key(a) == listing_key(b)

    def test_availability_does_not_change_key(self, make_listing):
        assert make_listing(available=True).key == make_listing(available=False).key

    def test_price_change_is_new_key(self, make_listing):
        assert make_listing(price="55.00 GBP").key != make_listing(price="60.00 GBP").key

    def test_vendor_change_is_new_key(self, make_listing):
        assert make_listing(vendor="A").key != make_listing(vendor="B").key


class TestParsePrice:
    def test_code_suffix(self):
        price = parse_price("50.00 EUR")
        assert price.value == 50.0
        assert price.currency == "EUR"
        assert price.display == "50.00 EUR"

    def test_symbol_prefix(self):
        price = parse_price("$35.00")
        assert price.value == 35.0
        assert price.currency == "USD"

    def test_comma_decimal(self):
        assert parse_price("62,90 EUR").value == 62.9

    def test_thousands(self):
        assert parse_price("1,234.50 USD").value == 1234.5
        assert parse_price("1.234,50 EUR").value == 1234.5

    def test_explicit_currency_wins(self):
        assert parse_price("55.00", currency="GBP").currency == "GBP"

    def test_garbage(self):
        price = parse_price("call us")
        assert price.value is None
        assert price.currency == ""
        assert price.display == "call us"

    def test_none(self):
        assert parse_price(None).display == ""
