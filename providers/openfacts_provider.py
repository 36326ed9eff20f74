"""
Open Food Facts family — Open Food Facts, Open Beauty Facts, Open Products Facts.

All three run the same software and expose the same read API:
  GET https://world.<database>.org/api/v2/product/<code>.json
  → {"status": 1, "product": {...}}   found
  → {"status": 0, "status_verbose": "product not found"}

Free, no key, but clients must send a descriptive User-Agent.
"""
from __future__ import annotations

import logging
from typing import Optional

import config
from providers.base import (
    LookupProvider, ProductRecord, ProviderError, ProviderErrorKind,
    fetch_json, first_of_list, first_text, last_of_list,
)

logger = logging.getLogger(__name__)

DATABASES = ("openfoodfacts", "openbeautyfacts", "openproductsfacts")

_FIELDS = ",".join([
    "product_name", "product_name_en", "generic_name", "brands",
    "categories", "image_front_url", "image_url",
])


class OpenFactsProvider(LookupProvider):

    def __init__(self, database: str = "openfoodfacts") -> None:
        if database not in DATABASES:
            raise ValueError(f"Unknown Open Facts database '{database}'")
        self.name = database
        self._url = f"https://world.{database}.org/api/v2/product/{{code}}.json"

    async def fetch(self, code: str) -> Optional[ProductRecord]:
        data = await fetch_json(
            self._url.format(code=code),
            self.name,
            params={"fields": _FIELDS},
            headers={"User-Agent": config.OPENFACTS_USER_AGENT},
        )
        if data is None:
            return None
        return self._parse(data)

    # ── Parser ────────────────────────────────────────────────────────────────

    def _parse(self, data: object) -> Optional[ProductRecord]:
        if not isinstance(data, dict):
            raise ProviderError(
                ProviderErrorKind.MALFORMED_RESPONSE,
                f"[{self.name}] Expected a JSON object, got {type(data).__name__}",
            )
        if data.get("status") != 1:
            logger.debug("[%s] Not found: %s", self.name, data.get("status_verbose", ""))
            return None

        product = data.get("product")
        if not isinstance(product, dict):
            raise ProviderError(
                ProviderErrorKind.MALFORMED_RESPONSE,
                f"[{self.name}] status=1 but no product object",
            )

        return self.make_record(
            name=first_text(
                product.get("product_name"),
                product.get("product_name_en"),
                product.get("generic_name"),
            ),
            brand=first_of_list(product.get("brands")),
            category=last_of_list(product.get("categories")),
            image=first_text(product.get("image_front_url"), product.get("image_url")),
        )
