"""
Shared types and base class for all product lookup providers.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import aiohttp

import config

logger = logging.getLogger(__name__)


# ── Shared result type ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProductRecord:
    """Normalised product description — the same shape for every provider."""
    name: Optional[str]
    brand: Optional[str]
    category: Optional[str]
    image: Optional[str]
    source: str                 # provider name, e.g. "openfoodfacts"

    @property
    def title(self) -> str:
        """One-line label for display: brand + name when both are known."""
        if self.brand and self.name and self.brand.lower() not in self.name.lower():
            return f"{self.brand} {self.name}"
        return self.name or self.brand or "Unnamed product"


# ── Errors ─────────────────────────────────────────────────────────────────────

class ProviderErrorKind(str, Enum):
    TIMEOUT            = "timeout"
    NETWORK            = "network"
    MALFORMED_RESPONSE = "malformed_response"


class ProviderError(Exception):
    """A provider could not answer. Recorded by the aggregator, never fatal."""

    def __init__(self, kind: ProviderErrorKind, message: str) -> None:
        self.kind = kind
        super().__init__(message)


# ── Normalisation helpers ──────────────────────────────────────────────────────

def clean_text(value: Any) -> Optional[str]:
    """Strip a scalar to text; empty / missing → None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def first_text(*values: Any) -> Optional[str]:
    """First value that cleans to non-empty text."""
    for value in values:
        text = clean_text(value)
        if text:
            return text
    return None


def first_of_list(value: Any, sep: str = ",") -> Optional[str]:
    """
    First entry of a list, or of a separated string
    ("Ferrero, Nutella" → "Ferrero").
    """
    if isinstance(value, list):
        return first_text(*value)
    text = clean_text(value)
    if not text:
        return None
    return first_text(*text.split(sep))


def last_of_list(value: Any, sep: str = ",") -> Optional[str]:
    """Last entry — category paths run broad → specific."""
    if isinstance(value, list):
        return first_text(*reversed(value))
    text = clean_text(value)
    if not text:
        return None
    return first_text(*reversed(text.split(sep)))


# ── HTTP helper ────────────────────────────────────────────────────────────────

async def fetch_json(
    url: str,
    provider_name: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> Optional[Any]:
    """
    GET *url* and decode the JSON body.

    Returns None on 404 (the provider does not know the code).
    Raises ProviderError for any other failure.
    """
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT_SECS),
            ) as resp:
                if resp.status == 404:
                    return None
                if resp.status != 200:
                    text = await resp.text()
                    raise ProviderError(
                        ProviderErrorKind.NETWORK,
                        f"[{provider_name}] HTTP {resp.status}: {text[:200]}",
                    )
                try:
                    return await resp.json(content_type=None)
                except ValueError as exc:
                    raise ProviderError(
                        ProviderErrorKind.MALFORMED_RESPONSE,
                        f"[{provider_name}] Non-JSON response: {exc}",
                    ) from exc
    except asyncio.TimeoutError as exc:
        raise ProviderError(ProviderErrorKind.TIMEOUT, f"[{provider_name}] Request timed out") from exc
    except aiohttp.ClientError as exc:
        raise ProviderError(ProviderErrorKind.NETWORK, f"[{provider_name}] {exc}") from exc


# ── Abstract base ──────────────────────────────────────────────────────────────

class LookupProvider(ABC):
    """Base class all lookup providers must implement."""

    name: str               # e.g. "openfoodfacts", also ProductRecord.source

    @abstractmethod
    async def fetch(self, code: str) -> Optional[ProductRecord]:
        """
        Look up *code*. Return a ProductRecord, or None if the provider
        has no entry for it. Raise ProviderError when it cannot answer.
        """
        ...

    def make_record(
        self,
        name: Any = None,
        brand: Any = None,
        category: Any = None,
        image: Any = None,
    ) -> Optional[ProductRecord]:
        """
        Build a normalised record stamped with this provider's name.
        A record with no usable field at all counts as "not found".
        """
        record = ProductRecord(
            name=clean_text(name),
            brand=clean_text(brand),
            category=clean_text(category),
            image=clean_text(image),
            source=self.name,
        )
        if not any((record.name, record.brand, record.category, record.image)):
            logger.debug("[%s] Entry has no usable fields — treating as empty", self.name)
            return None
        return record
