"""
product_lookup.py — public interface for barcode → product resolution.

The rest of the app imports only from here:
  from product_lookup import resolve, LookupOutcome

Providers are tried one at a time, in priority order, each under its own
timeout. The first provider that returns a record wins and the chain stops.
A provider that errors or times out is recorded and skipped; it never aborts
the lookup. If nobody knows the code the outcome has record=None — a normal
result, not an error.

Every provider that was tried appears in `attempts`, in the order it was
tried, so a caller can tell "no data found" apart from "every provider failed".
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

import aiohttp

import config
from providers.base import ProductRecord, ProviderError, ProviderErrorKind
from providers.manager import ProviderSpec, get_providers

logger = logging.getLogger(__name__)

__all__ = ["resolve", "LookupOutcome", "Attempt", "AttemptStatus", "ProductRecord", "ProviderSpec"]


class AttemptStatus(str, Enum):
    SUCCESS = "success"
    EMPTY   = "empty"
    FAILED  = "failed"


@dataclass(frozen=True)
class Attempt:
    provider: str
    outcome: AttemptStatus
    elapsed_ms: int
    error: Optional[ProviderErrorKind] = None   # set only when outcome is FAILED


@dataclass
class LookupOutcome:
    record: Optional[ProductRecord]
    attempts: list[Attempt] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.record is not None

    @property
    def all_failed(self) -> bool:
        """True when every provider tried errored (as opposed to simply not knowing the code)."""
        return bool(self.attempts) and all(
            a.outcome is AttemptStatus.FAILED for a in self.attempts
        )

    def summary(self) -> str:
        """User-facing one-liner."""
        if self.record is not None:
            return f"{self.record.title} (via {self.record.source})"
        if self.all_failed:
            return "Lookup failed — no product database could be reached."
        return "No data found for this code."


def _classify_failure(exc: Exception, spec: ProviderSpec) -> ProviderErrorKind:
    if isinstance(exc, ProviderError):
        return exc.kind
    if isinstance(exc, asyncio.TimeoutError):
        return ProviderErrorKind.TIMEOUT
    if isinstance(exc, aiohttp.ClientError):
        return ProviderErrorKind.NETWORK
    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return ProviderErrorKind.MALFORMED_RESPONSE
    return spec.fails_with


async def resolve(
    code: str,
    providers: Optional[Sequence[ProviderSpec]] = None,
) -> LookupOutcome:
    """
    Resolve *code* against *providers* (default: the configured chain).

    Sequential: a later provider is only called once every earlier
    one has answered empty or failed.
    """
    if providers is None:
        providers = get_providers()
    ordered = sorted(providers, key=lambda s: s.priority)

    outcome = LookupOutcome(record=None)
    for spec in ordered:
        t0 = time.monotonic()
        try:
            record = await asyncio.wait_for(spec.call(code), timeout=config.PROVIDER_TIMEOUT_SECS)
        except Exception as exc:
            kind = _classify_failure(exc, spec)
            elapsed = int((time.monotonic() - t0) * 1000)
            outcome.attempts.append(Attempt(spec.name, AttemptStatus.FAILED, elapsed, kind))
            logger.warning("[%s] Failed (%s) after %dms: %s", spec.name, kind.value, elapsed, exc)
            continue

        elapsed = int((time.monotonic() - t0) * 1000)

        if record is None:
            outcome.attempts.append(Attempt(spec.name, AttemptStatus.EMPTY, elapsed))
            logger.info("[%s] No entry for %s (%dms)", spec.name, code, elapsed)
            continue

        if not isinstance(record, ProductRecord):
            outcome.attempts.append(Attempt(
                spec.name, AttemptStatus.FAILED, elapsed, ProviderErrorKind.MALFORMED_RESPONSE,
            ))
            logger.error("[%s] Returned %s instead of a ProductRecord", spec.name, type(record).__name__)
            continue

        if record.source != spec.name:
            record = dataclasses.replace(record, source=spec.name)

        outcome.record = record
        outcome.attempts.append(Attempt(spec.name, AttemptStatus.SUCCESS, elapsed))
        logger.info("[%s] OK — %s (%dms)", spec.name, record.title, elapsed)
        return outcome

    logger.info("No provider had %s (%d tried)", code, len(outcome.attempts))
    return outcome
