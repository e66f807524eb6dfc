"""
Raster point queries against the published GeoTIFF layers.

A layer is fetched once per process (httpx for remote URLs, the file system
otherwise), its first band read into a numpy array and kept in memory. Point
lookups address pixels directly from the dataset bounds, so coordinates are
expected in the raster's own CRS (WGS84 for the published layers).
"""
from typing import Dict, Optional
from dataclasses import dataclass
import math
import os
import threading
import logging

import httpx
import numpy as np
import rasterio
from rasterio.errors import RasterioError
from rasterio.io import MemoryFile

from gebruiksnormen.core.config import RASTER_TIMEOUT_SECONDS
from gebruiksnormen.services.errors import RasterUnavailableError

logger = logging.getLogger(__name__)

_raster_cache: Dict[str, "RasterLayer"] = {}
_url_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


@dataclass
class RasterLayer:
    """In-memory copy of a single-band raster."""
    url: str
    data: np.ndarray
    left: float
    bottom: float
    right: float
    top: float
    nodata: Optional[float] = None

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    def value_at(self, longitude: float, latitude: float) -> Optional[float]:
        """Pixel value at a coordinate, or None outside the bounds or on nodata."""
        x = math.floor(self.width * (longitude - self.left) / (self.right - self.left))
        y = math.floor(self.height * (1 - (latitude - self.bottom) / (self.top - self.bottom)))
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return None

        value = self.data[y, x]
        if np.isnan(value):
            return None
        if self.nodata is not None and value == self.nodata:
            return None
        return float(value)


def _read_dataset(url: str, dataset) -> RasterLayer:
    bounds = dataset.bounds
    return RasterLayer(
        url=url,
        data=dataset.read(1).astype("float64"),
        left=bounds.left,
        bottom=bounds.bottom,
        right=bounds.right,
        top=bounds.top,
        nodata=dataset.nodata,
    )


def _fetch_layer(url: str) -> RasterLayer:
    try:
        if url.startswith(("http://", "https://")):
            logger.info(f"Downloading raster layer {url}")
            response = httpx.get(url, timeout=RASTER_TIMEOUT_SECONDS, follow_redirects=True)
            response.raise_for_status()
            with MemoryFile(response.content) as memfile:
                with memfile.open() as dataset:
                    return _read_dataset(url, dataset)

        if not os.path.isfile(url):
            raise RasterUnavailableError(f"Raster layer not found: {url}")
        logger.info(f"Opening raster layer {url}")
        with rasterio.open(url) as dataset:
            return _read_dataset(url, dataset)
    except (httpx.HTTPError, RasterioError) as e:
        logger.error(f"Error loading raster layer {url}: {e}")
        raise RasterUnavailableError(f"Raster layer could not be loaded: {url}") from e


def _lock_for(url: str) -> threading.Lock:
    with _locks_guard:
        lock = _url_locks.get(url)
        if lock is None:
            lock = threading.Lock()
            _url_locks[url] = lock
        return lock


def load_raster(url: str) -> RasterLayer:
    """Return the cached layer for `url`, fetching it on first use."""
    layer = _raster_cache.get(url)
    if layer is not None:
        return layer

    # Concurrent first requests for one URL wait for a single download
    with _lock_for(url):
        layer = _raster_cache.get(url)
        if layer is None:
            layer = _fetch_layer(url)
            _raster_cache[url] = layer
        return layer


def get_raster_value(url: str, longitude: float, latitude: float) -> Optional[float]:
    """Value of the raster at `url` for a WGS84 coordinate, None when there is no data."""
    return load_raster(url).value_at(longitude, latitude)


def clear_raster_cache():
    """Drop all cached raster layers."""
    with _locks_guard:
        _raster_cache.clear()
        _url_locks.clear()
