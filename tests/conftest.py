"""
Shared pytest fixtures.

Capabilities (camera, decoder, navigator) are replaced by small in-memory
fakes so the scan session can be driven deterministically without a browser.
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, AsyncIterator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import config  # noqa: E402
import providers.manager as manager_mod  # noqa: E402
from camera import Camera, Decoder  # noqa: E402
from classifier import DecodedCode  # noqa: E402
from navigation import Navigator  # noqa: E402


@pytest.fixture(autouse=True)
def reset_provider_cache():
    """Each test starts with a clean provider registry."""
    manager_mod._providers = []
    yield
    manager_mod._providers = []


@pytest.fixture(autouse=True)
def fast_config(monkeypatch):
    """Short budgets so timeout tests finish quickly."""
    monkeypatch.setattr(config, "PROVIDER_TIMEOUT_SECS", 0.5)
    monkeypatch.setattr(config, "MAX_SCANS_PER_SECOND", 1000.0)


# ── Fakes ─────────────────────────────────────────────────────────────────────

class FakeCamera(Camera):
    """Hands out numbered streams and records every acquire / release."""

    def __init__(self, error: Optional[Exception] = None, supported: bool = True,
                 acquire_delay: float = 0.0) -> None:
        self.error = error
        self.supported = supported
        self.acquire_delay = acquire_delay
        self.acquired: list[str] = []
        self.released: list[str] = []

    def is_supported(self) -> bool:
        return self.supported

    async def acquire(self, constraints: dict[str, Any]) -> Any:
        if self.acquire_delay:
            await asyncio.sleep(self.acquire_delay)
        if self.error is not None:
            raise self.error
        stream = f"stream-{len(self.acquired) + 1}"
        self.acquired.append(stream)
        return stream

    def release(self, stream: Any) -> None:
        self.released.append(stream)

    @property
    def open_streams(self) -> list[str]:
        return [s for s in self.acquired if s not in self.released]


class FakeDecoder(Decoder):
    """
    Replays a scripted list of frame results. With `then_block=True` the
    generator waits forever after the script runs out (a live camera that
    never sees a code).
    """

    def __init__(self, script: list[Optional[DecodedCode]], then_block: bool = False,
                 error: Optional[Exception] = None) -> None:
        self.script = script
        self.then_block = then_block
        self.error = error
        self.frames_served = 0

    async def frames(self, stream: Any) -> AsyncIterator[Optional[DecodedCode]]:
        for item in self.script:
            self.frames_served += 1
            yield item
        if self.error is not None:
            raise self.error
        if self.then_block:
            await asyncio.Event().wait()


def fake_response(payload=None, status: int = 200, json_error: Optional[Exception] = None):
    """Build a fake aiohttp response object."""
    mock_resp = MagicMock()
    mock_resp.status = status
    if json_error is not None:
        mock_resp.json = AsyncMock(side_effect=json_error)
    else:
        mock_resp.json = AsyncMock(return_value=payload)
    mock_resp.text = AsyncMock(return_value="error text")
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)
    return mock_resp


def fake_session(resp=None, get_error: Optional[Exception] = None):
    """Build a fake aiohttp.ClientSession whose get() returns *resp*."""
    mock_session = MagicMock()
    if get_error is not None:
        mock_session.get = MagicMock(side_effect=get_error)
    else:
        mock_session.get = MagicMock(return_value=resp)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    return mock_session


class FakeNavigator(Navigator):
    def __init__(self, failing: tuple[str, ...] = ()) -> None:
        self.failing = failing
        self.calls: list[tuple[str, str]] = []

    def _step(self, action: str, url: str) -> None:
        self.calls.append((action, url))
        if action in self.failing:
            raise RuntimeError(f"{action} unavailable")

    def assign(self, url: str) -> None:
        self._step("assign", url)

    def open(self, url: str) -> None:
        self._step("open", url)

    def display(self, url: str) -> None:
        self._step("display", url)


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def navigator() -> FakeNavigator:
    return FakeNavigator()
