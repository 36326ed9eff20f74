"""
Tests for the concrete lookup adapters.

Covers:
  - OpenFactsProvider: found / not found / malformed, field fallbacks, URL per database
  - UPCitemdbProvider: trial vs keyed endpoint, empty items, API error codes
  - BarcodeLookupProvider: key required, products parsing, 404
"""
from __future__ import annotations

from unittest.mock import patch

import pytest

from conftest import fake_response, fake_session
from providers.barcodelookup_provider import BarcodeLookupProvider
from providers.base import ProviderError, ProviderErrorKind
from providers.openfacts_provider import OpenFactsProvider
from providers.upcitemdb_provider import PAID_URL, TRIAL_URL, UPCitemdbProvider

NUTELLA = "3017620422003"


# ── Open Food Facts family ─────────────────────────────────────────────────────

class TestOpenFactsParse:
    @pytest.fixture
    def provider(self):
        return OpenFactsProvider("openfoodfacts")

    def _found(self, **product):
        return {"status": 1, "code": NUTELLA, "product": product}

    def test_happy_path(self, provider):
        record = provider._parse(self._found(
            product_name="Nutella",
            brands="Ferrero, Nutella",
            categories="Spreads, Sweet spreads, Hazelnut spreads",
            image_front_url="https://images.off/front.jpg",
            image_url="https://images.off/any.jpg",
        ))
        assert record.name == "Nutella"
        assert record.brand == "Ferrero"
        assert record.category == "Hazelnut spreads"
        assert record.image == "https://images.off/front.jpg"
        assert record.source == "openfoodfacts"

    def test_missing_fields_are_none(self, provider):
        record = provider._parse(self._found(product_name="Mystery snack"))
        assert record.name == "Mystery snack"
        assert record.brand is None
        assert record.category is None
        assert record.image is None

    def test_name_falls_back_to_generic_name(self, provider):
        record = provider._parse(self._found(product_name="", generic_name="Hazelnut spread"))
        assert record.name == "Hazelnut spread"

    def test_status_zero_is_not_found(self, provider):
        assert provider._parse({"status": 0, "status_verbose": "product not found"}) is None

    def test_empty_product_is_not_found(self, provider):
        assert provider._parse(self._found()) is None

    def test_non_object_is_malformed(self, provider):
        with pytest.raises(ProviderError) as exc_info:
            provider._parse(["unexpected"])
        assert exc_info.value.kind is ProviderErrorKind.MALFORMED_RESPONSE

    def test_found_without_product_is_malformed(self, provider):
        with pytest.raises(ProviderError):
            provider._parse({"status": 1})

    def test_unknown_database_rejected(self):
        with pytest.raises(ValueError, match="Unknown Open Facts database"):
            OpenFactsProvider("openwinefacts")


@pytest.mark.asyncio
class TestOpenFactsFetch:
    async def test_queries_database_host(self):
        provider = OpenFactsProvider("openbeautyfacts")
        session = fake_session(fake_response({"status": 1, "product": {"product_name": "Shampoo"}}))
        with patch("providers.base.aiohttp.ClientSession", return_value=session):
            record = await provider.fetch("3600523614455")

        assert record.name == "Shampoo"
        assert record.source == "openbeautyfacts"
        url = session.get.call_args[0][0]
        assert url == "https://world.openbeautyfacts.org/api/v2/product/3600523614455.json"
        assert "User-Agent" in session.get.call_args[1]["headers"]

    async def test_404_is_not_found(self):
        session = fake_session(fake_response(None, status=404))
        with patch("providers.base.aiohttp.ClientSession", return_value=session):
            assert await OpenFactsProvider().fetch(NUTELLA) is None


# ── UPCitemdb ─────────────────────────────────────────────────────────────────

class TestUPCitemdbParse:
    @pytest.fixture
    def provider(self):
        return UPCitemdbProvider()

    def test_happy_path(self, provider):
        record = provider._parse({
            "code": "OK",
            "total": 1,
            "items": [{
                "ean": "0885909950805",
                "title": "Apple iPhone 6, 16GB",
                "brand": "Apple",
                "category": "Electronics > Communications > Telephony > Mobile Phones",
                "images": ["https://img.upc/1.jpg", "https://img.upc/2.jpg"],
            }],
        })
        assert record.name == "Apple iPhone 6, 16GB"
        assert record.brand == "Apple"
        assert record.category == "Mobile Phones"
        assert record.image == "https://img.upc/1.jpg"
        assert record.source == "upcitemdb"

    def test_no_items_is_not_found(self, provider):
        assert provider._parse({"code": "OK", "total": 0, "items": []}) is None

    def test_api_error_code_raises(self, provider):
        with pytest.raises(ProviderError, match="TOO_FAST"):
            provider._parse({"code": "TOO_FAST", "message": "exceed limit"})

    def test_items_not_list_is_malformed(self, provider):
        with pytest.raises(ProviderError) as exc_info:
            provider._parse({"code": "OK", "items": "nope"})
        assert exc_info.value.kind is ProviderErrorKind.MALFORMED_RESPONSE


@pytest.mark.asyncio
class TestUPCitemdbFetch:
    async def test_trial_endpoint_without_key(self):
        session = fake_session(fake_response({"code": "OK", "items": []}))
        with patch("providers.base.aiohttp.ClientSession", return_value=session):
            await UPCitemdbProvider().fetch("0885909950805")
        args, kwargs = session.get.call_args
        assert args[0] == TRIAL_URL
        assert kwargs["params"] == {"upc": "0885909950805"}
        assert "user_key" not in kwargs["headers"]

    async def test_paid_endpoint_with_key(self):
        session = fake_session(fake_response({"code": "OK", "items": []}))
        with patch("providers.base.aiohttp.ClientSession", return_value=session):
            await UPCitemdbProvider(api_key="k123").fetch("0885909950805")
        args, kwargs = session.get.call_args
        assert args[0] == PAID_URL
        assert kwargs["headers"]["user_key"] == "k123"

    async def test_non_digit_code_skips_request(self):
        session = fake_session(fake_response({}))
        with patch("providers.base.aiohttp.ClientSession", return_value=session):
            assert await UPCitemdbProvider().fetch("ABC") is None
        session.get.assert_not_called()


# ── Barcode Lookup ────────────────────────────────────────────────────────────

class TestBarcodeLookup:
    def test_requires_key(self):
        with pytest.raises(ValueError, match="API key"):
            BarcodeLookupProvider("")

    def test_parse_happy_path(self):
        record = BarcodeLookupProvider("k")._parse({"products": [{
            "title": "Coca-Cola Classic 12oz",
            "brand": "",
            "manufacturer": "The Coca-Cola Company",
            "category": "Food, Beverages & Tobacco > Beverages > Soda",
            "images": ["https://images.barcodelookup.com/1.jpg"],
        }]})
        assert record.name == "Coca-Cola Classic 12oz"
        assert record.brand == "The Coca-Cola Company"
        assert record.category == "Soda"
        assert record.image == "https://images.barcodelookup.com/1.jpg"
        assert record.source == "barcodelookup"

    def test_parse_no_products(self):
        assert BarcodeLookupProvider("k")._parse({"products": []}) is None

    def test_parse_bad_products(self):
        with pytest.raises(ProviderError):
            BarcodeLookupProvider("k")._parse({"products": {"title": "x"}})

    @pytest.mark.asyncio
    async def test_fetch_sends_key(self):
        session = fake_session(fake_response(None, status=404))
        with patch("providers.base.aiohttp.ClientSession", return_value=session):
            assert await BarcodeLookupProvider("secret").fetch("049000028911") is None
        assert session.get.call_args[1]["params"]["key"] == "secret"
