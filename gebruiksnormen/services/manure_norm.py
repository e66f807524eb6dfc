"""
Gebruiksnorm dierlijke mest: nitrogen from animal manure per hectare.

Without derogation the standard 170 kg N/ha applies. A derogation farm gets a
higher ceiling unless the field lies in one of the protected zones, which are
checked in a fixed order. Derogation is abolished from 2026 on.
"""
from decimal import Decimal
import logging

from gebruiksnormen.schemas.norm_schemas import NormResult, NormsInput
from gebruiksnormen.services.norm_rules import (
    BUFFERSTRIP_NORM_SOURCE,
    MANURE_NORM_DEROGATION,
    MANURE_NORM_DEROGATION_DEFAULT,
    MANURE_NORM_STANDARD,
    REGULATION_YEAR_RULES,
)
from gebruiksnormen.services.region import resolve_location

logger = logging.getLogger(__name__)


def calculate_manure_norm(norms_input: NormsInput, year: int) -> NormResult:
    """Animal manure norm (kg N/ha) of a field for a regulation year."""
    field = norms_input.field
    if field.is_bufferstrip:
        return NormResult(norm_value=Decimal(0), norm_source=BUFFERSTRIP_NORM_SOURCE)

    derogation_available = REGULATION_YEAR_RULES[year]["derogation_available"]
    if not (derogation_available and norms_input.farm.has_derogation):
        value, source = MANURE_NORM_STANDARD
        return NormResult(norm_value=value, norm_source=source)

    layers = [layer for layer, _, _ in MANURE_NORM_DEROGATION]
    location = resolve_location(
        field.centroid.longitude, field.centroid.latitude, year, layers, with_region=False
    )
    for layer, value, source in MANURE_NORM_DEROGATION:
        if location.zones[layer]:
            logger.debug(f"Derogation field {field.field_id} in zone {layer}")
            return NormResult(norm_value=value, norm_source=source)

    value, source = MANURE_NORM_DEROGATION_DEFAULT
    return NormResult(norm_value=value, norm_source=source)
