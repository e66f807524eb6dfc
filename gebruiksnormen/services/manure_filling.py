"""
Filling of the gebruiksnorm dierlijke mest.

Only animal manure counts, with its full nitrogen content. Whether a product
type is animal manure comes from RVO table 11.
"""
from typing import List
from decimal import Decimal
import logging

from gebruiksnormen.schemas.norm_schemas import ApplicationFilling, FillingInput, NormFilling
from gebruiksnormen.services.errors import DataIntegrityError
from gebruiksnormen.services.fertilizers import find_fertilizer, index_fertilizers, nitrogen_content
from gebruiksnormen.services.rule_tables import load_manure_types

logger = logging.getLogger(__name__)


def calculate_manure_filling(filling_input: FillingInput, year: int) -> NormFilling:
    """
    Animal manure nitrogen applied on a field (kg N/ha).

    Raises:
        DataIntegrityError: unknown fertilizer, or a fertilizer without a known type code
    """
    fertilizers = index_fertilizers(filling_input.fertilizers)
    manure_types = load_manure_types()

    total = Decimal(0)
    fillings: List[ApplicationFilling] = []
    for application in filling_input.applications:
        fertilizer = find_fertilizer(fertilizers, application)
        if not fertilizer.rvo_type:
            raise DataIntegrityError(f"Fertilizer {fertilizer.fertilizer_id} has no RVO type code")
        manure_type = manure_types.get(fertilizer.rvo_type)
        if manure_type is None:
            raise DataIntegrityError(
                f"Fertilizer {fertilizer.fertilizer_id} has unknown RVO type code {fertilizer.rvo_type}"
            )

        if manure_type.animal_manure:
            filling = application.amount * nitrogen_content(fertilizer) / 1000
            detail = f"Dierlijke mest: {manure_type.description}"
        else:
            filling = Decimal(0)
            detail = None
        total += filling
        fillings.append(
            ApplicationFilling(
                application_id=application.application_id,
                norm_filling=filling,
                norm_filling_details=detail,
            )
        )

    logger.debug(f"Dierlijke mest filling {year} {filling_input.field.field_id}: {total}")
    return NormFilling(norm_filling=total, application_filling=fillings)
