"""
Shared fixtures for the gebruiksnormen tests.

Raster point queries are replaced by an in-memory map from layer to code, so no
test touches the network or a GeoTIFF on disk.
"""
from decimal import Decimal
import pytest

from gebruiksnormen.schemas.norm_schemas import (
    Centroid,
    FarmInput,
    FertilizerApplicationInput,
    FieldInput,
    FillingInput,
    NormsInput,
)
from gebruiksnormen.services.calculation_cache import clear_calculation_cache

# Layer name -> suffix of its raster path
LAYER_SUFFIXES = {
    "grondsoorten": "/grondsoorten.tiff",
    "nv": "/nv.tiff",
    "gwbg": "/gwbg.tiff",
    "natura2000": "/natura2000.tiff",
    "derogatievrije_zones": "/derogatievrije_zones.tiff",
}

REGION_CODES = {"klei": 1, "loess": 2, "veen": 3, "zand_nwc": 4, "zand_zuid": 5}


class FakeRaster:
    """Stand-in for get_raster_value that answers per layer."""

    def __init__(self):
        self.values = {
            "grondsoorten": REGION_CODES["zand_nwc"],
            "nv": 0,
            "gwbg": 0,
            "natura2000": 0,
            "derogatievrije_zones": 0,
        }
        self.calls = []

    def set_region(self, region: str):
        self.values["grondsoorten"] = REGION_CODES[region]

    def layers_called(self):
        return {layer for url in self.calls for layer, suffix in LAYER_SUFFIXES.items() if url.endswith(suffix)}

    def __call__(self, url, longitude, latitude):
        self.calls.append(url)
        for layer, suffix in LAYER_SUFFIXES.items():
            if url.endswith(suffix):
                return self.values[layer]
        raise AssertionError(f"Unexpected raster layer {url}")


# ===== Test Fixtures =====

@pytest.fixture(autouse=True)
def clear_memoized_results():
    """Memoized results must not leak between tests with different raster answers."""
    clear_calculation_cache()
    yield
    clear_calculation_cache()


@pytest.fixture
def fake_raster(monkeypatch):
    """Replace raster point queries in the region resolver."""
    raster = FakeRaster()
    monkeypatch.setattr("gebruiksnormen.services.region.get_raster_value", raster)
    return raster


@pytest.fixture
def make_norms_input():
    """Builder for NormsInput with sensible defaults."""
    def _make(
        cultivations=None,
        soil_analysis=None,
        has_derogation=False,
        has_grazing_intention=False,
        is_bufferstrip=False,
    ):
        return NormsInput(
            farm=FarmInput(has_derogation=has_derogation, has_grazing_intention=has_grazing_intention),
            field=FieldInput(
                field_id="perceel-1",
                centroid=Centroid(longitude=5.3, latitude=52.1),
                is_bufferstrip=is_bufferstrip,
            ),
            cultivations=cultivations or [],
            soil_analysis=soil_analysis,
        )
    return _make


@pytest.fixture
def make_filling_input():
    """Builder for FillingInput; applications are (id, fertilizer_id, amount, date) tuples."""
    def _make(
        fertilizers=None,
        applications=None,
        cultivations=None,
        norm_value=Decimal(0),
        has_grazing_intention=False,
        produces_manure_on_farm=None,
        has_organic_certification=False,
    ):
        return FillingInput(
            farm=FarmInput(
                has_grazing_intention=has_grazing_intention,
                produces_manure_on_farm=produces_manure_on_farm,
                has_organic_certification=has_organic_certification,
            ),
            field=FieldInput(field_id="perceel-1", centroid=Centroid(longitude=5.3, latitude=52.1)),
            cultivations=cultivations or [],
            applications=[
                FertilizerApplicationInput(
                    application_id=application_id,
                    fertilizer_id=fertilizer_id,
                    amount=Decimal(amount),
                    application_date=application_date,
                )
                for application_id, fertilizer_id, amount, application_date in (applications or [])
            ],
            fertilizers=fertilizers or [],
            norm_value=Decimal(norm_value),
        )
    return _make
