"""
Scan session — one camera, one decode loop, one result at a time.

States:
  IDLE ──start──▶ ACQUIRING ──stream──▶ SCANNING ──code──▶ RESOLVING ──▶ IDLE
                      │                     │
                      └──camera error──▶ TERMINAL        stop ──▶ IDLE

  • start() while ACQUIRING / SCANNING / RESOLVING raises SessionBusyError,
    so two decode loops never own the same camera.
  • The stream is released before RESOLVING, so background frames cannot
    produce a second decode while a lookup or navigation is running.
  • stop() during RESOLVING lets the in-flight lookup finish on its own
    timeout but discards its result.
  • TERMINAL holds the CameraError until the next start().

The UI collaborator observes everything through a ResultSink.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Any, Optional, Sequence

import config
from camera import Camera, CameraError, CameraErrorKind, Decoder, default_constraints, is_secure_origin
from classifier import ContentKind, DecodedCode, classify_code
from navigation import NavigationAction, Navigator, navigate, normalize_url
from product_lookup import LookupOutcome, resolve
from providers.manager import ProviderSpec

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE      = "idle"
    ACQUIRING = "acquiring"
    SCANNING  = "scanning"
    RESOLVING = "resolving"
    TERMINAL  = "terminal"


_ACTIVE = (SessionState.ACQUIRING, SessionState.SCANNING, SessionState.RESOLVING)


class SessionBusyError(RuntimeError):
    """start() was called while a scan is already running."""


class ResultSink:
    """
    Receives session events for rendering. Override what you need;
    every hook defaults to a no-op.
    """

    def state_changed(self, state: SessionState, error: Optional[CameraError]) -> None:
        pass

    def code_decoded(self, code: DecodedCode, kind: ContentKind) -> None:
        pass

    def navigated(self, url: str, action: Optional[NavigationAction]) -> None:
        pass

    def lookup_finished(self, code: DecodedCode, outcome: LookupOutcome) -> None:
        pass


class ScanSession:

    def __init__(
        self,
        camera: Camera,
        decoder: Decoder,
        navigator: Navigator,
        sink: Optional[ResultSink] = None,
        providers: Optional[Sequence[ProviderSpec]] = None,
        origin: Optional[str] = None,
        max_scans_per_second: Optional[float] = None,
        constraints: Optional[dict[str, Any]] = None,
    ) -> None:
        self._camera = camera
        self._decoder = decoder
        self._navigator = navigator
        self._sink = sink or ResultSink()
        self._providers = providers
        self._origin = origin
        self._constraints = constraints or default_constraints()
        rate = config.MAX_SCANS_PER_SECOND if max_scans_per_second is None else max_scans_per_second
        self._frame_interval = 1.0 / rate if rate > 0 else 0.0

        self.state: SessionState = SessionState.IDLE
        self.error: Optional[CameraError] = None
        self.last_code: Optional[DecodedCode] = None
        self.last_kind: Optional[ContentKind] = None
        self.last_outcome: Optional[LookupOutcome] = None

        self._stream: Any = None
        self._task: Optional[asyncio.Task] = None
        self._discard_result = False

    # ── Public API ────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Begin a scan. Returns once the session task is running."""
        if self.state in _ACTIVE:
            raise SessionBusyError(f"Scan already in progress ({self.state.value}) — stop it first")
        self.error = None
        self._discard_result = False
        self._set_state(SessionState.ACQUIRING)
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self.state in (SessionState.ACQUIRING, SessionState.SCANNING):
            await self._cancel_task()
            self._release_stream()
            self._set_state(SessionState.IDLE)
        elif self.state is SessionState.RESOLVING:
            logger.info("Stop requested during lookup — result will be discarded")
            self._discard_result = True

    async def close(self) -> None:
        """Tear the session down, interrupting anything in flight."""
        await self._cancel_task()
        self._release_stream()
        if self.state in _ACTIVE:
            self._set_state(SessionState.IDLE)

    async def wait(self) -> None:
        """Wait for the current scan to settle (IDLE or TERMINAL)."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def __aenter__(self) -> "ScanSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── Session task ──────────────────────────────────────────────────────────

    async def _run(self) -> None:
        try:
            self._stream = await self._acquire()
            self._set_state(SessionState.SCANNING)
            code = await self._decode_loop(self._stream)
        except CameraError as exc:
            self._release_stream()
            self._terminate(exc)
            return
        finally:
            # the camera goes back on every exit path
            self._release_stream()

        if code is None:
            logger.info("Decoder stream ended without a code")
            self._set_state(SessionState.IDLE)
            return

        try:
            await self._resolve(code)
        finally:
            self._set_state(SessionState.IDLE)

    async def _acquire(self) -> Any:
        if not is_secure_origin(self._origin):
            raise CameraError(CameraErrorKind.INSECURE_CONTEXT, self._origin or "")
        if not self._camera.is_supported():
            raise CameraError(CameraErrorKind.UNSUPPORTED)
        try:
            return await self._camera.acquire(self._constraints)
        except CameraError:
            raise
        except Exception as exc:
            raise CameraError(CameraErrorKind.UNKNOWN, str(exc)) from exc

    async def _decode_loop(self, stream: Any) -> Optional[DecodedCode]:
        frames = self._decoder.frames(stream)
        try:
            async for item in frames:
                if item is not None:
                    return item
                logger.debug("No code in this frame")
                await asyncio.sleep(self._frame_interval)
        except CameraError:
            raise
        except Exception as exc:
            raise CameraError(CameraErrorKind.UNKNOWN, f"decoder failed: {exc}") from exc
        finally:
            aclose = getattr(frames, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception as exc:
                    logger.warning("Decoder close failed: %s", exc)
        return None

    async def _resolve(self, code: DecodedCode) -> None:
        self._set_state(SessionState.RESOLVING)
        kind = classify_code(code)
        self.last_code, self.last_kind = code, kind
        logger.info("Decoded %s as %s: %s", code.format.value, kind.value, code.payload[:120])
        self._emit("code_decoded", code, kind)

        if kind is ContentKind.URL:
            action = navigate(code.payload, self._navigator)
            self._emit("navigated", normalize_url(code.payload), action)
            return

        if kind is not ContentKind.BARCODE:
            return

        try:
            outcome = await resolve(code.payload, self._providers)
        except Exception as exc:
            logger.error("Lookup for %s could not run: %s", code.payload, exc)
            return

        if self._discard_result:
            logger.info("Discarding lookup result for %s (scan was stopped)", code.payload)
            return
        self.last_outcome = outcome
        self._emit("lookup_finished", code, outcome)

    # ── Helpers ───────────────────────────────────────────────────────────────

    async def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _release_stream(self) -> None:
        """Idempotent: the stream is handed back to the camera at most once."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            self._camera.release(stream)
            logger.debug("Camera stream released")
        except Exception as exc:
            logger.warning("Camera release failed: %s", exc)

    def _terminate(self, exc: CameraError) -> None:
        logger.warning("Camera unavailable (%s): %s", exc.kind.value, exc)
        self.error = exc
        self._set_state(SessionState.TERMINAL)

    def _set_state(self, state: SessionState) -> None:
        if state is self.state:
            return
        logger.debug("Session %s → %s", self.state.value, state.value)
        self.state = state
        self._emit("state_changed", state, self.error if state is SessionState.TERMINAL else None)

    def _emit(self, hook: str, *args: Any) -> None:
        try:
            getattr(self._sink, hook)(*args)
        except Exception as exc:
            logger.warning("Result sink %s() raised: %s", hook, exc)
