"""
Central configuration — reads from .env file.

Every value is a plain module attribute so callers read config.X at call
time; tests override them with monkeypatch.setattr(config, "X", ...).
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Lookup providers ──────────────────────────────────────────────────────────
# Order in which product databases are queried for a scanned barcode.
# Cheap / trusted sources first; the first one that knows the product wins.
# Unknown names are ignored, providers missing a required key are skipped.
LOOKUP_ORDER: list[str] = [
    name.strip().lower()
    for name in os.getenv(
        "LOOKUP_ORDER",
        "openfoodfacts,openbeautyfacts,openproductsfacts,upcitemdb,barcodelookup",
    ).split(",")
    if name.strip()
]

# Budget for one provider call inside a lookup (seconds). A provider that
# exceeds it is recorded as timed out and the next one is tried.
PROVIDER_TIMEOUT_SECS: float = float(os.getenv("PROVIDER_TIMEOUT_SECS", "8"))

# aiohttp total timeout for a single HTTP request made by an adapter
HTTP_TIMEOUT_SECS: float = float(os.getenv("HTTP_TIMEOUT_SECS", "6"))

# Open*Facts asks API clients to identify themselves
OPENFACTS_USER_AGENT: str = os.getenv(
    "OPENFACTS_USER_AGENT", "scan-lookup/0.1 (+https://github.com/scan-lookup)"
)

# UPCitemdb: without a key the free trial endpoint is used (100 req/day)
UPCITEMDB_API_KEY: str | None = os.getenv("UPCITEMDB_API_KEY") or None

# Barcode Lookup (barcodelookup.com): paid, key required
BARCODELOOKUP_API_KEY: str | None = os.getenv("BARCODELOOKUP_API_KEY") or None

# ── Scanner ───────────────────────────────────────────────────────────────────
# Decode attempts per second while scanning
MAX_SCANS_PER_SECOND: float = float(os.getenv("MAX_SCANS_PER_SECOND", "5"))

# "environment" = rear camera on phones, "user" = selfie camera
CAMERA_FACING_MODE: str = os.getenv("CAMERA_FACING_MODE", "environment")

# Hosts allowed to use the camera over plain http
TRUSTED_HOSTS: set[str] = {
    h.strip().lower()
    for h in os.getenv("TRUSTED_HOSTS", "localhost,127.0.0.1").split(",")
    if h.strip()
}

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
