"""
UPCitemdb provider — general merchandise (UPC / EAN).

Without a key the free trial endpoint is used (100 requests/day, shared
between lookup and search). With UPCITEMDB_API_KEY the paid v1 endpoint is
used instead.

Docs: https://devs.upcitemdb.com/
"""
from __future__ import annotations

import logging
from typing import Optional

from providers.base import (
    LookupProvider, ProductRecord, ProviderError, ProviderErrorKind,
    fetch_json, first_of_list, last_of_list,
)

logger = logging.getLogger(__name__)

TRIAL_URL = "https://api.upcitemdb.com/prod/trial/lookup"
PAID_URL  = "https://api.upcitemdb.com/prod/v1/lookup"


class UPCitemdbProvider(LookupProvider):

    def __init__(self, api_key: Optional[str] = None) -> None:
        self.name = "upcitemdb"
        self._key = api_key
        self._url = PAID_URL if api_key else TRIAL_URL
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers.update({"user_key": api_key, "key_type": "3scale"})

    async def fetch(self, code: str) -> Optional[ProductRecord]:
        digits = "".join(c for c in code if c.isdigit())
        if not digits:
            return None
        data = await fetch_json(self._url, self.name, params={"upc": digits}, headers=self._headers)
        if data is None:
            return None
        return self._parse(data)

    def _parse(self, data: object) -> Optional[ProductRecord]:
        if not isinstance(data, dict) or not isinstance(data.get("items", []), list):
            raise ProviderError(
                ProviderErrorKind.MALFORMED_RESPONSE,
                f"[{self.name}] Unexpected response shape",
            )
        if data.get("code") not in (None, "OK"):
            raise ProviderError(
                ProviderErrorKind.NETWORK,
                f"[{self.name}] API error {data.get('code')}: {data.get('message', '')}",
            )

        items = data.get("items") or []
        if not items or not isinstance(items[0], dict):
            return None
        item = items[0]

        return self.make_record(
            name=item.get("title"),
            brand=item.get("brand"),
            # "Home & Garden > Kitchen & Dining > Tableware"
            category=last_of_list(item.get("category"), sep=">"),
            image=first_of_list(item.get("images") or []),
        )
