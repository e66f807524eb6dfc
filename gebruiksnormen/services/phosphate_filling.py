"""
Filling of the fosfaatgebruiksnorm.

Standard products count with their full phosphate. Organic-rich products
(compost, champost, solid manure of grazing animals) are stimulated: once at
least 20 kg P2O5/ha comes from them, their phosphate counts at a discount
factor until a budget equal to the norm is used up. The budget is spent in
priority order, most favourable factor first, so the allocation is a fold over
the sorted applications carrying the remaining budget.
"""
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from functools import reduce
import logging

from gebruiksnormen.schemas.norm_schemas import ApplicationFilling, FillingInput, NormFilling
from gebruiksnormen.services.fertilizers import find_fertilizer, index_fertilizers, phosphate_content
from gebruiksnormen.services.norm_rules import (
    ORGANIC_RICH_25_FACTOR,
    ORGANIC_RICH_25_PERCENT_CODES,
    ORGANIC_RICH_75_FACTOR,
    ORGANIC_RICH_75_PERCENT_CODES,
    ORGANIC_RICH_75_PERCENT_ORGANIC_CODES,
    ORGANIC_RICH_MIN_PHOSPHATE,
)

logger = logging.getLogger(__name__)

BELOW_THRESHOLD_DETAIL = "OS-rijke meststof, minimumdrempel niet gehaald, 100% geteld."
NO_DISCOUNT_DETAIL = "OS-rijke meststof, geen korting toegepast."

TWO_PLACES = Decimal("0.01")


@dataclass
class PhosphateApplication:
    index: int
    application_id: str
    phosphate: Decimal  # actual kg P2O5/ha
    discount_factor: Optional[Decimal] = None  # None for standard products

    @property
    def is_organic_rich(self) -> bool:
        return self.discount_factor is not None


@dataclass
class Allocation:
    """Accumulator of the discount fold."""
    remaining: Decimal
    fillings: Dict[int, Tuple[Decimal, str]]


def _kg(value: Decimal) -> str:
    return str(value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def discount_factor(rvo_type: Optional[str], has_organic_certification: bool) -> Optional[Decimal]:
    """Counting factor of an organic-rich product type, None for standard products."""
    if rvo_type in ORGANIC_RICH_25_PERCENT_CODES:
        return ORGANIC_RICH_25_FACTOR
    if rvo_type in ORGANIC_RICH_75_PERCENT_CODES:
        return ORGANIC_RICH_75_FACTOR
    if has_organic_certification and rvo_type in ORGANIC_RICH_75_PERCENT_ORGANIC_CODES:
        return ORGANIC_RICH_75_FACTOR
    return None


def allocate_discount(allocation: Allocation, item: PhosphateApplication) -> Allocation:
    """One step of the fold: discount up to the remaining budget, count the rest in full."""
    to_discount = min(item.phosphate, allocation.remaining)
    filling = Decimal(0)
    if to_discount > 0:
        discounted = to_discount * item.discount_factor
        filling += discounted
        percentage = int(item.discount_factor * 100)
        detail = f"OS-rijke meststof ({percentage}% korting) draagt {_kg(discounted)}kg bij aan de norm."
    else:
        to_discount = Decimal(0)
        detail = NO_DISCOUNT_DETAIL

    beyond = item.phosphate - to_discount
    if beyond > 0:
        filling += beyond
        detail += f" Plus {_kg(beyond)}kg (100% geteld) boven de kortingslimiet."

    fillings = dict(allocation.fillings)
    fillings[item.index] = (filling, detail)
    return Allocation(remaining=allocation.remaining - to_discount, fillings=fillings)


def calculate_phosphate_filling(filling_input: FillingInput, year: int) -> NormFilling:
    """
    Phosphate counted against the norm (kg P2O5/ha), per application and in total.

    Raises:
        DataIntegrityError: an application refers to an unknown fertilizer
    """
    fertilizers = index_fertilizers(filling_input.fertilizers)
    certified = filling_input.farm.has_organic_certification

    items: List[PhosphateApplication] = []
    for index, application in enumerate(filling_input.applications):
        fertilizer = find_fertilizer(fertilizers, application)
        items.append(
            PhosphateApplication(
                index=index,
                application_id=application.application_id,
                phosphate=application.amount * phosphate_content(fertilizer) / 1000,
                discount_factor=discount_factor(fertilizer.rvo_type, certified),
            )
        )

    organic_rich = [item for item in items if item.is_organic_rich]
    threshold_met = sum((item.phosphate for item in organic_rich), Decimal(0)) >= ORGANIC_RICH_MIN_PHOSPHATE

    fillings: Dict[int, Tuple[Decimal, Optional[str]]] = {
        item.index: (item.phosphate, None) for item in items if not item.is_organic_rich
    }
    if threshold_met:
        # sorted() is stable: equal factors keep their input order
        prioritised = sorted(organic_rich, key=lambda item: item.discount_factor)
        allocation = reduce(
            allocate_discount,
            prioritised,
            Allocation(remaining=filling_input.norm_value, fillings={}),
        )
        fillings.update(allocation.fillings)
    else:
        for item in organic_rich:
            fillings[item.index] = (item.phosphate, BELOW_THRESHOLD_DETAIL)

    total = Decimal(0)
    application_filling = []
    for item in items:
        value, detail = fillings[item.index]
        total += value
        application_filling.append(
            ApplicationFilling(
                application_id=item.application_id,
                norm_filling=value,
                norm_filling_details=detail,
            )
        )

    logger.debug(f"Fosfaat filling {year} {filling_input.field.field_id}: {total} (stimulering: {threshold_met})")
    return NormFilling(norm_filling=total, application_filling=application_filling)
