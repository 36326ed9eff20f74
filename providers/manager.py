"""
Provider Manager — builds the ordered list of lookup providers from config.

The list is built once and cached; clear `_providers` (tests, key changes)
to rebuild it on the next call.

Order comes from config.LOOKUP_ORDER and is the lookup priority: index 0 is
tried first. Per-provider enable/disable via environment variables (all
default to true):
  ENABLE_OPENFOODFACTS=true/false
  ENABLE_OPENBEAUTYFACTS=true/false
  ENABLE_OPENPRODUCTSFACTS=true/false
  ENABLE_UPCITEMDB=true/false
  ENABLE_BARCODELOOKUP=true/false
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import config
from providers.base import LookupProvider, ProductRecord, ProviderErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSpec:
    """One entry of the lookup chain. Static configuration, never mutated."""
    name: str
    priority: int
    call: Callable[[str], Awaitable[Optional[ProductRecord]]]
    # recorded when `call` fails with an error that carries no kind of its own
    fails_with: ProviderErrorKind = ProviderErrorKind.NETWORK

    @classmethod
    def from_provider(cls, provider: LookupProvider, priority: int) -> "ProviderSpec":
        return cls(name=provider.name, priority=priority, call=provider.fetch)


# Module-level cache
_providers: list[ProviderSpec] = []


def _provider_enabled(name: str, default: bool = True) -> bool:
    """Check the ENABLE_<NAME> toggle for a provider."""
    raw = os.getenv(f"ENABLE_{name.upper()}", "true" if default else "false")
    return raw.strip().lower() not in ("false", "0", "no")


def _make_provider(name: str) -> Optional[LookupProvider]:
    """Instantiate provider *name*, or None if it cannot run with the current config."""
    from providers.openfacts_provider import DATABASES, OpenFactsProvider

    if name in DATABASES:
        return OpenFactsProvider(name)

    if name == "upcitemdb":
        from providers.upcitemdb_provider import UPCitemdbProvider
        return UPCitemdbProvider(api_key=config.UPCITEMDB_API_KEY)

    if name == "barcodelookup":
        if not config.BARCODELOOKUP_API_KEY:
            logger.info("Skipped provider barcodelookup (BARCODELOOKUP_API_KEY not set)")
            return None
        from providers.barcodelookup_provider import BarcodeLookupProvider
        return BarcodeLookupProvider(config.BARCODELOOKUP_API_KEY)

    logger.warning("Unknown provider '%s' in LOOKUP_ORDER — ignored", name)
    return None


def _build_providers() -> list[ProviderSpec]:
    """
    Instantiate every provider named in LOOKUP_ORDER that is enabled and
    configured. Returns specs in priority order.
    """
    specs: list[ProviderSpec] = []
    seen: set[str] = set()

    for name in config.LOOKUP_ORDER:
        if name in seen:
            continue
        seen.add(name)

        if not _provider_enabled(name):
            logger.info("Skipped provider %s (disabled by ENABLE_%s)", name, name.upper())
            continue

        provider = _make_provider(name)
        if provider is None:
            continue

        specs.append(ProviderSpec.from_provider(provider, priority=len(specs)))
        logger.info("Loaded provider: %s (priority %d)", provider.name, len(specs) - 1)

    if not specs:
        raise RuntimeError(
            "No lookup providers available.\n"
            "Check LOOKUP_ORDER and the ENABLE_* toggles in your .env"
        )
    return specs


def get_providers() -> list[ProviderSpec]:
    global _providers
    if not _providers:
        _providers = _build_providers()
    return list(_providers)
