"""
navigation.py — open a scanned URL with automatic fallback.

Priority order:
  1. In-place navigation   (keeps the back button working)
  2. New tab / window
  3. Show the URL as plain text so the user can open it by hand

Each step is tried only if the previous one raised. Nothing propagates to
the caller — a scan that fails to navigate is still a finished scan.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class NavigationError(Exception):
    """Raised by a Navigator when a navigation primitive is unavailable."""


class NavigationAction(str, Enum):
    ASSIGN  = "assign"
    OPEN    = "open"
    DISPLAY = "display"


class Navigator(ABC):
    """Browser-level navigation primitives."""

    @abstractmethod
    def assign(self, url: str) -> None:
        """Navigate the current page to *url*."""
        ...

    @abstractmethod
    def open(self, url: str) -> None:
        """Open *url* in a new browsing context."""
        ...

    @abstractmethod
    def display(self, url: str) -> None:
        """Present *url* as inert text for manual action."""
        ...


def normalize_url(raw: str) -> str:
    url = raw.strip()
    if url and not url.lower().startswith(("http://", "https://")):
        url = "https://" + url
    return url


def navigate(raw_payload: str, navigator: Navigator) -> Optional[NavigationAction]:
    """
    Send the user to *raw_payload*.
    Returns the action that succeeded, or None if every step failed.
    """
    url = normalize_url(raw_payload)
    if not url:
        logger.warning("Empty URL payload — nothing to open")
        return None

    steps = [
        (NavigationAction.ASSIGN,  navigator.assign),
        (NavigationAction.OPEN,    navigator.open),
        (NavigationAction.DISPLAY, navigator.display),
    ]
    for action, step in steps:
        try:
            step(url)
            logger.info("Navigated via %s: %s", action.value, url[:120])
            return action
        except Exception as exc:
            logger.warning("Navigation via %s failed for %s: %s", action.value, url[:120], exc)

    logger.error("All navigation fallbacks failed for %s", url[:120])
    return None
