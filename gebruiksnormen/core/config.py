"""
Runtime configuration for the gebruiksnormen service.

Values are read once from the environment at import time. The rule tables
contribute their own version tags to the calculator version, see
services/calculation_cache.py.
"""
import os

PACKAGE_VERSION = "0.4.0"

# Base location of the raster layers: http(s) URL or local directory
PUBLIC_DATA_URL = os.environ.get("GEBRUIKSNORMEN_PUBLIC_DATA_URL", "")

RASTER_TIMEOUT_SECONDS = float(os.environ.get("GEBRUIKSNORMEN_RASTER_TIMEOUT", "30"))
RASTER_WORKERS = int(os.environ.get("GEBRUIKSNORMEN_RASTER_WORKERS", "4"))

CACHE_ENABLED = os.environ.get("GEBRUIKSNORMEN_CACHE_ENABLED", "true").lower() in ("1", "true", "yes")

LOG_LEVEL = os.environ.get("GEBRUIKSNORMEN_LOG_LEVEL", "INFO").upper()


def layer_url(relative_path: str) -> str:
    """Join a raster layer path onto the configured data location."""
    base = PUBLIC_DATA_URL
    if not base:
        return relative_path
    if base.startswith(("http://", "https://")):
        return base.rstrip("/") + "/" + relative_path.lstrip("/")
    return os.path.join(base, relative_path)
