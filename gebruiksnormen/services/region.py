"""
Region resolver: soil region and protected zone membership of a field.

Each answer is a single raster point query against the layer published for the
regulation year. Codes outside the documented set are fatal; a legal standard
is never picked from a guessed region.
"""
from typing import Dict, Iterable, Optional
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor
import logging

from gebruiksnormen.core.config import RASTER_WORKERS, layer_url
from gebruiksnormen.services.errors import GeospatialError, UnsupportedRegulationError
from gebruiksnormen.services.norm_rules import RASTER_LAYERS, SOIL_REGION_CODES
from gebruiksnormen.services.raster import get_raster_value

logger = logging.getLogger(__name__)

ZONE_LAYERS = ("nv", "gwbg", "natura2000", "derogatievrije_zones")

ZONE_LABELS = {
    "nv": "NV-gebied",
    "gwbg": "grondwaterbeschermingsgebied",
    "natura2000": "Natura2000-gebied",
    "derogatievrije_zones": "derogatievrije zone",
}


def _layer(year: int, layer: str) -> str:
    layers = RASTER_LAYERS.get(year)
    if layers is None:
        raise UnsupportedRegulationError(f"Year not supported: {year}")
    return layer_url(layers[layer])


def get_region(longitude: float, latitude: float, year: int) -> str:
    """Soil region key (klei, veen, loess, zand_nwc, zand_zuid) at a coordinate."""
    value = get_raster_value(_layer(year, "grondsoorten"), longitude, latitude)
    region = None
    if value is not None and value == int(value):
        region = SOIL_REGION_CODES.get(int(value))
    if region is None:
        raise GeospatialError(f"Unknown region code: {value} for coordinates {longitude}, {latitude}")
    logger.debug(f"Region at {longitude}, {latitude}: {region}")
    return region


def is_in_zone(layer: str, longitude: float, latitude: float, year: int) -> bool:
    """Membership of a protected zone layer: 1 inside, 0 outside, anything else fatal."""
    value = get_raster_value(_layer(year, layer), longitude, latitude)
    if value == 1:
        return True
    if value == 0:
        return False
    raise GeospatialError(
        f"Unknown {ZONE_LABELS[layer]} code: {value} for coordinates {longitude}, {latitude}"
    )


def is_in_nv_area(longitude: float, latitude: float, year: int) -> bool:
    return is_in_zone("nv", longitude, latitude, year)


def is_in_groundwater_protection_area(longitude: float, latitude: float, year: int) -> bool:
    return is_in_zone("gwbg", longitude, latitude, year)


def is_in_natura2000_area(longitude: float, latitude: float, year: int) -> bool:
    return is_in_zone("natura2000", longitude, latitude, year)


def is_in_derogation_free_zone(longitude: float, latitude: float, year: int) -> bool:
    return is_in_zone("derogatievrije_zones", longitude, latitude, year)


def resolve_zones(
    longitude: float,
    latitude: float,
    year: int,
    layers: Iterable[str] = ZONE_LAYERS,
) -> Dict[str, bool]:
    """Resolve several zone layers concurrently; the first failure propagates."""
    layers = list(layers)
    with ThreadPoolExecutor(max_workers=max(1, min(RASTER_WORKERS, len(layers)))) as executor:
        futures = {
            layer: executor.submit(is_in_zone, layer, longitude, latitude, year)
            for layer in layers
        }
        return {layer: future.result() for layer, future in futures.items()}


@dataclass
class FieldLocation:
    """Soil region and zone membership of a field centroid."""
    region: Optional[str]
    zones: Dict[str, bool] = field(default_factory=dict)

    @property
    def is_nv_area(self) -> bool:
        return self.zones.get("nv", False)


def resolve_location(
    longitude: float,
    latitude: float,
    year: int,
    zone_layers: Iterable[str] = ("nv",),
    with_region: bool = True,
) -> FieldLocation:
    """Region and zone lookups of one field, run concurrently."""
    zone_layers = list(zone_layers)
    tasks = len(zone_layers) + (1 if with_region else 0)
    with ThreadPoolExecutor(max_workers=max(1, min(RASTER_WORKERS, tasks))) as executor:
        region_future = executor.submit(get_region, longitude, latitude, year) if with_region else None
        zone_futures = {
            layer: executor.submit(is_in_zone, layer, longitude, latitude, year)
            for layer in zone_layers
        }
        return FieldLocation(
            region=region_future.result() if region_future is not None else None,
            zones={layer: future.result() for layer, future in zone_futures.items()},
        )
