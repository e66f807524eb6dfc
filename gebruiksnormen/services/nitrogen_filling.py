"""
Filling of the stikstofgebruiksnorm.

Every application counts with amount x N content x werkingscoefficient. The
coefficient comes from RVO table 9, keyed by the product type code and refined
by on-farm production, soil region, grazing intention, bouwland status on the
application date and the application period.
"""
from typing import List, Optional, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import logging

from gebruiksnormen.schemas.norm_schemas import (
    ApplicationFilling,
    CultivationInput,
    FarmInput,
    FillingInput,
    NormFilling,
)
from gebruiksnormen.services.fertilizers import find_fertilizer, index_fertilizers, nitrogen_content
from gebruiksnormen.services.norm_rules import DEFAULT_WORKING_COEFFICIENT, NON_BOUWLAND_CODES
from gebruiksnormen.services.region import get_region
from gebruiksnormen.services.rule_tables import CoefficientSubType, load_working_coefficients

logger = logging.getLogger(__name__)


@dataclass
class WorkingCoefficient:
    coefficient: Decimal
    description: str
    sub_description: Optional[str] = None

    def detail(self) -> str:
        percentage = format((self.coefficient * 100).normalize(), "f")
        parts = [self.description]
        if self.sub_description:
            parts.append(self.sub_description)
        return f"Werkingscoëfficiënt: {percentage}% - {' - '.join(parts)}"


def is_bouwland(cultivations: Sequence[CultivationInput], on: date) -> bool:
    """True when the cultivation active on `on` is arable; no active cultivation is not bouwland."""
    for cultivation in cultivations:
        if cultivation.start <= on and (cultivation.end is None or on <= cultivation.end):
            return cultivation.catalogue_code not in NON_BOUWLAND_CODES
    return False


def produces_manure_on_farm(farm: FarmInput) -> bool:
    if farm.produces_manure_on_farm is not None:
        return farm.produces_manure_on_farm
    logger.warning("produces_manure_on_farm not set, assuming it follows the grazing intention")
    return farm.has_grazing_intention


def _sub_type_matches(
    sub: CoefficientSubType,
    region: str,
    grazing_intention: bool,
    bouwland: bool,
    application_date: date,
) -> bool:
    if sub.grazing_intention is not None and sub.grazing_intention != grazing_intention:
        return False
    if sub.soil_regions is not None and region not in sub.soil_regions:
        return False
    if sub.is_bouwland is not None and sub.is_bouwland != bouwland:
        return False
    if sub.application_period is not None and not sub.application_period.contains(application_date):
        return False
    return True


def get_working_coefficient(
    rvo_type: Optional[str],
    region: str,
    grazing_intention: bool,
    bouwland: bool,
    application_date: date,
    on_farm_produced: bool,
) -> WorkingCoefficient:
    """Working coefficient from table 9; 100% (Kunstmest) when no entry applies."""
    default = WorkingCoefficient(*DEFAULT_WORKING_COEFFICIENT)
    if not rvo_type:
        return default

    for entry in load_working_coefficients().entries:
        if rvo_type not in entry.type_codes:
            continue
        if entry.on_farm_produced is not None and entry.on_farm_produced != on_farm_produced:
            continue

        if entry.sub_types:
            for sub in entry.sub_types:
                if _sub_type_matches(sub, region, grazing_intention, bouwland, application_date):
                    return WorkingCoefficient(sub.coefficient, entry.description, sub.description)
        elif entry.coefficient is not None:
            return WorkingCoefficient(entry.coefficient, entry.description)

    return default


def calculate_nitrogen_filling(filling_input: FillingInput, year: int) -> NormFilling:
    """
    Effective nitrogen of the applications on a field (kg N/ha).

    Raises:
        DataIntegrityError: an application refers to an unknown fertilizer
    """
    fertilizers = index_fertilizers(filling_input.fertilizers)
    farm = filling_input.farm
    centroid = filling_input.field.centroid

    applications = filling_input.applications
    region = get_region(centroid.longitude, centroid.latitude, year) if applications else None
    on_farm = produces_manure_on_farm(farm) if applications else False

    total = Decimal(0)
    fillings: List[ApplicationFilling] = []
    for application in applications:
        fertilizer = find_fertilizer(fertilizers, application)
        content = nitrogen_content(fertilizer)
        working = get_working_coefficient(
            fertilizer.rvo_type,
            region,
            farm.has_grazing_intention,
            is_bouwland(filling_input.cultivations, application.application_date),
            application.application_date,
            on_farm,
        )
        filling = application.amount * content * working.coefficient / 1000
        total += filling
        fillings.append(
            ApplicationFilling(
                application_id=application.application_id,
                norm_filling=filling,
                norm_filling_details=working.detail(),
            )
        )

    logger.debug(f"Stikstof filling {year} {filling_input.field.field_id}: {total}")
    return NormFilling(norm_filling=total, application_filling=fillings)
