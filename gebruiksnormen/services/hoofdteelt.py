"""
Hoofdteelt resolver.

The hoofdteelt of a regulation year is the cultivation present for the most days
between 15 May and 15 July. Ties go to the lexicographically smallest catalogue
code; without any overlap the field counts as green fallow.
"""
from typing import List, Optional, Sequence
from datetime import date
import logging

from gebruiksnormen.schemas.norm_schemas import CultivationInput
from gebruiksnormen.services.errors import DataIntegrityError
from gebruiksnormen.services.norm_rules import (
    HOOFDTEELT_FALLBACK_CODE,
    HOOFDTEELT_FALLBACK_NAME,
    HOOFDTEELT_WINDOW_END,
    HOOFDTEELT_WINDOW_START,
)

logger = logging.getLogger(__name__)


def cultivation_end(cultivation: CultivationInput, year: int) -> date:
    """End date of a cultivation; open cultivations run to the end of the regulation year."""
    return cultivation.end if cultivation.end is not None else date(year, 12, 31)


def overlap_days(cultivation: CultivationInput, year: int) -> int:
    """Whole days, both ends inclusive, that a cultivation spends in the hoofdteelt window."""
    window_start = date(year, *HOOFDTEELT_WINDOW_START)
    window_end = date(year, *HOOFDTEELT_WINDOW_END)
    start = max(cultivation.start, window_start)
    end = min(cultivation_end(cultivation, year), window_end)
    if end < start:
        return 0
    return (end - start).days + 1


def determine_hoofdteelt(cultivations: Sequence[CultivationInput], year: int) -> str:
    """Catalogue code of the hoofdteelt for `year`."""
    best_code: Optional[str] = None
    best_days = 0
    for cultivation in cultivations:
        days = overlap_days(cultivation, year)
        if days == 0:
            continue
        if days > best_days or (days == best_days and cultivation.catalogue_code < best_code):
            best_code = cultivation.catalogue_code
            best_days = days

    if best_code is None:
        logger.warning(f"No cultivation in the hoofdteelt window of {year}, using {HOOFDTEELT_FALLBACK_CODE}")
        return HOOFDTEELT_FALLBACK_CODE

    logger.debug(f"Hoofdteelt {year}: {best_code} ({best_days} days)")
    return best_code


def fallback_cultivation(year: int) -> CultivationInput:
    return CultivationInput(
        catalogue_code=HOOFDTEELT_FALLBACK_CODE,
        name=HOOFDTEELT_FALLBACK_NAME,
        start=date(year, 1, 1),
        end=date(year, 12, 31),
    )


def get_hoofdteelt_cultivation(cultivations: List[CultivationInput], year: int) -> CultivationInput:
    """The cultivation record standing for the hoofdteelt, synthesised for green fallow."""
    code = determine_hoofdteelt(cultivations, year)
    for cultivation in cultivations:
        if cultivation.catalogue_code == code and overlap_days(cultivation, year) > 0:
            return cultivation
    if code == HOOFDTEELT_FALLBACK_CODE:
        return fallback_cultivation(year)
    raise DataIntegrityError(f"Cultivation with catalogue code {code} not found")
