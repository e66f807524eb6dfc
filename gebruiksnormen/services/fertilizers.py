"""
Fertilizer lookups shared by the filling calculators.
"""
from typing import Dict, List
from decimal import Decimal

from gebruiksnormen.schemas.norm_schemas import FertilizerApplicationInput, FertilizerInput
from gebruiksnormen.services.errors import DataIntegrityError
from gebruiksnormen.services.rule_tables import load_manure_types


def index_fertilizers(fertilizers: List[FertilizerInput]) -> Dict[str, FertilizerInput]:
    indexed = {}
    for fertilizer in fertilizers:
        # First definition wins
        indexed.setdefault(fertilizer.fertilizer_id, fertilizer)
    return indexed


def find_fertilizer(
    fertilizers: Dict[str, FertilizerInput],
    application: FertilizerApplicationInput,
) -> FertilizerInput:
    fertilizer = fertilizers.get(application.fertilizer_id)
    if fertilizer is None:
        raise DataIntegrityError(
            f"Fertilizer {application.fertilizer_id} not found for application {application.application_id}"
        )
    return fertilizer


def nitrogen_content(fertilizer: FertilizerInput) -> Decimal:
    """kg N per ton; table 11 stands in when the product has no value of its own."""
    if fertilizer.n_content is not None and fertilizer.n_content > 0:
        return fertilizer.n_content
    manure_type = load_manure_types().get(fertilizer.rvo_type)
    if manure_type is not None and manure_type.n_content is not None:
        return manure_type.n_content
    return Decimal(0)


def phosphate_content(fertilizer: FertilizerInput) -> Decimal:
    """kg P2O5 per ton; table 11 stands in when the product has no value of its own."""
    if fertilizer.p_content is not None and fertilizer.p_content > 0:
        return fertilizer.p_content
    manure_type = load_manure_types().get(fertilizer.rvo_type)
    if manure_type is not None and manure_type.p_content is not None:
        return manure_type.p_content
    return Decimal(0)
