"""
Payload classification — decides what a decoded code *means*.

classify() is a pure function: no IO, no shared state, same input → same
ContentKind. The scan session calls it once per decode; the CLI calls it
directly.

Precedence (first match wins):
  1. QR + web address        → URL
  2. "WIFI:" prefix          → WIFI
  3. "tel:" / phone shape    → PHONE
  4. contains "@" and "."    → EMAIL
  5. linear barcode format   → BARCODE
  6. anything else           → PLAIN_TEXT
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse


class CodeFormat(str, Enum):
    QR      = "QR"
    EAN13   = "EAN13"
    UPC_A   = "UPC_A"
    CODE128 = "CODE128"
    CODE39  = "CODE39"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_symbology(cls, name: str | None) -> "CodeFormat":
        """
        Map a decoder's symbology name ("QRCODE", "EAN13", "UPCA", "CODE128" …)
        onto CodeFormat. Unrecognised names become UNKNOWN.
        """
        key = re.sub(r"[^A-Z0-9]", "", (name or "").upper())
        return _SYMBOLOGY_ALIASES.get(key, cls.UNKNOWN)


_SYMBOLOGY_ALIASES: dict[str, CodeFormat] = {
    "QR":      CodeFormat.QR,
    "QRCODE":  CodeFormat.QR,
    "EAN13":   CodeFormat.EAN13,
    "UPCA":    CodeFormat.UPC_A,
    "CODE128": CodeFormat.CODE128,
    "CODE39":  CodeFormat.CODE39,
}


class ContentKind(str, Enum):
    URL        = "url"
    EMAIL      = "email"
    PHONE      = "phone"
    WIFI       = "wifi"
    BARCODE    = "barcode"
    PLAIN_TEXT = "text"


@dataclass(frozen=True)
class DecodedCode:
    """One successful frame decode."""
    payload: str
    format: CodeFormat = CodeFormat.QR


# ── Shape tests ────────────────────────────────────────────────────────────────

_TLD_TOKEN   = re.compile(r"\.(?:com|org|net)(?:[./:?#]|$)", re.IGNORECASE)
_PHONE_SHAPE = re.compile(r"^\+?[\d\s()\-]+$")
_PHONE_SEPARATORS = set(" ()-")


def _looks_like_url(payload: str) -> bool:
    lowered = payload.lower()
    if lowered.startswith(("http://", "https://")):
        return True

    try:
        parsed = urlparse(payload)
    except ValueError:          # e.g. unbalanced "[" in an IPv6 host
        return False
    if parsed.scheme and parsed.netloc:
        return True

    # Bare host names ("www.example.org", "example.com/page"): single token only,
    # and never something that is really an e-mail address
    if "@" in payload or any(ch.isspace() for ch in payload):
        return False
    return "www." in lowered or bool(_TLD_TOKEN.search(payload))


def _looks_like_phone(payload: str) -> bool:
    if payload.lower().startswith("tel:"):
        return True
    if not _PHONE_SHAPE.match(payload):
        return False
    digits = sum(ch.isdigit() for ch in payload)
    if not 7 <= digits <= 15:
        return False
    # A bare run of digits is a product number, not a phone number
    return payload.startswith("+") or any(ch in _PHONE_SEPARATORS for ch in payload)


# ── Public API ─────────────────────────────────────────────────────────────────

def classify(payload: str, format: CodeFormat = CodeFormat.QR) -> ContentKind:
    """Return the ContentKind of a decoded payload."""
    text = payload.strip()

    if format == CodeFormat.QR and _looks_like_url(text):
        return ContentKind.URL
    if text.upper().startswith("WIFI:"):
        return ContentKind.WIFI
    if _looks_like_phone(text):
        return ContentKind.PHONE
    if "@" in text and "." in text:
        return ContentKind.EMAIL
    if format != CodeFormat.QR:
        return ContentKind.BARCODE
    return ContentKind.PLAIN_TEXT


def classify_code(code: DecodedCode) -> ContentKind:
    return classify(code.payload, code.format)
