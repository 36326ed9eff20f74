"""
Camera and decoder capabilities consumed by the scan session.

The session never touches a device directly: a Camera hands out a stream,
a Decoder turns that stream into decode events. Both are injected so the
session runs the same against a browser bridge, a local webcam or a test fake.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, AsyncIterator, Optional
from urllib.parse import urlparse

import config
from classifier import DecodedCode

logger = logging.getLogger(__name__)


class CameraErrorKind(str, Enum):
    PERMISSION_DENIED       = "permission_denied"
    DEVICE_NOT_FOUND        = "device_not_found"
    DEVICE_BUSY             = "device_busy"
    CONSTRAINTS_UNSUPPORTED = "constraints_unsupported"
    UNSUPPORTED             = "unsupported"
    INSECURE_CONTEXT        = "insecure_context"
    UNKNOWN                 = "unknown"


# Shown to the user as-is
_MESSAGES: dict[CameraErrorKind, str] = {
    CameraErrorKind.PERMISSION_DENIED:
        "Camera permission was denied. Please allow camera access in your browser settings.",
    CameraErrorKind.DEVICE_NOT_FOUND:
        "No camera found. Please make sure a camera is connected.",
    CameraErrorKind.DEVICE_BUSY:
        "The camera is in use. Please close other applications that use it.",
    CameraErrorKind.CONSTRAINTS_UNSUPPORTED:
        "The camera settings are not supported. Please try a different camera.",
    CameraErrorKind.UNSUPPORTED:
        "This browser does not support camera access. Please use an up-to-date browser.",
    CameraErrorKind.INSECURE_CONTEXT:
        "Camera access requires HTTPS. Please use a secure connection.",
    CameraErrorKind.UNKNOWN:
        "Could not access the camera. Please check your browser settings.",
}

# Browser DOMException names → kind
_DOM_NAMES: dict[str, CameraErrorKind] = {
    "NotAllowedError":      CameraErrorKind.PERMISSION_DENIED,
    "SecurityError":        CameraErrorKind.PERMISSION_DENIED,
    "NotFoundError":        CameraErrorKind.DEVICE_NOT_FOUND,
    "NotReadableError":     CameraErrorKind.DEVICE_BUSY,
    "TrackStartError":      CameraErrorKind.DEVICE_BUSY,
    "OverconstrainedError": CameraErrorKind.CONSTRAINTS_UNSUPPORTED,
    "NotSupportedError":    CameraErrorKind.UNSUPPORTED,
}


class CameraError(Exception):
    """Camera acquisition failed. Ends the scan session."""

    def __init__(self, kind: CameraErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(self.message if not detail else f"{self.message} ({detail})")

    @property
    def message(self) -> str:
        """User-facing text for this failure."""
        if self.kind is CameraErrorKind.UNKNOWN and self.detail:
            return f"Camera error: {self.detail}"
        return _MESSAGES[self.kind]

    @classmethod
    def from_dom_name(cls, name: str, detail: str = "") -> "CameraError":
        return cls(_DOM_NAMES.get(name, CameraErrorKind.UNKNOWN), detail)


def is_secure_origin(origin: Optional[str]) -> bool:
    """
    Browsers only expose the camera to secure contexts: https pages, or a
    plain-http page served from a trusted local host.
    """
    if not origin:
        return True
    parsed = urlparse(origin)
    if parsed.scheme == "https":
        return True
    return (parsed.hostname or "").lower() in config.TRUSTED_HOSTS


def default_constraints() -> dict[str, Any]:
    return {"video": {"facingMode": config.CAMERA_FACING_MODE}}


class Camera(ABC):
    """Camera device capability."""

    def is_supported(self) -> bool:
        """False when the environment has no camera API at all."""
        return True

    @abstractmethod
    async def acquire(self, constraints: dict[str, Any]) -> Any:
        """
        Open a video stream. Raises CameraError on failure.
        The returned stream is opaque to the session and goes back to release().
        """
        ...

    @abstractmethod
    def release(self, stream: Any) -> None:
        """Stop every track of *stream*."""
        ...


class Decoder(ABC):
    """Frame decoder capability."""

    @abstractmethod
    def frames(self, stream: Any) -> AsyncIterator[Optional[DecodedCode]]:
        """
        Yield one item per decode attempt on the live stream:
        a DecodedCode when a code was read, None when this frame had none.
        """
        ...
