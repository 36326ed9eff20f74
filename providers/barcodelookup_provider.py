"""
Barcode Lookup provider (barcodelookup.com) — large commercial catalogue.

Paid: requires BARCODELOOKUP_API_KEY. Last in the default order because
every call counts against the plan quota.

  GET https://api.barcodelookup.com/v3/products?barcode=<code>&key=<key>
  → {"products": [{"title", "brand", "category", "images": [...]}, ...]}
  404 when the barcode is unknown.
"""
from __future__ import annotations

import logging
from typing import Optional

from providers.base import (
    LookupProvider, ProductRecord, ProviderError, ProviderErrorKind,
    fetch_json, first_of_list, first_text, last_of_list,
)

logger = logging.getLogger(__name__)

PRODUCTS_URL = "https://api.barcodelookup.com/v3/products"


class BarcodeLookupProvider(LookupProvider):

    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise ValueError("Barcode Lookup requires an API key")
        self.name = "barcodelookup"
        self._key = api_key

    async def fetch(self, code: str) -> Optional[ProductRecord]:
        data = await fetch_json(
            PRODUCTS_URL,
            self.name,
            params={"barcode": code, "formatted": "y", "key": self._key},
        )
        if data is None:
            return None
        return self._parse(data)

    def _parse(self, data: object) -> Optional[ProductRecord]:
        if not isinstance(data, dict):
            raise ProviderError(
                ProviderErrorKind.MALFORMED_RESPONSE,
                f"[{self.name}] Expected a JSON object",
            )
        products = data.get("products") or []
        if not isinstance(products, list):
            raise ProviderError(
                ProviderErrorKind.MALFORMED_RESPONSE,
                f"[{self.name}] 'products' is not a list",
            )
        if not products or not isinstance(products[0], dict):
            return None
        product = products[0]

        return self.make_record(
            name=first_text(product.get("title"), product.get("product_name")),
            brand=first_text(product.get("brand"), product.get("manufacturer")),
            category=last_of_list(product.get("category"), sep=">"),
            image=first_of_list(product.get("images") or []),
        )
