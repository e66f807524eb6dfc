"""
Farm level totals of norms and fillings.

Per-hectare values of each field are multiplied by the field area and summed;
the totals are whole kilograms, rounded half up.
"""
from typing import Callable, Iterable
from decimal import Decimal, ROUND_HALF_UP

from gebruiksnormen.schemas.norm_schemas import FarmFillingsRequest, FarmNormsRequest, FarmTotals


def _total(items: Iterable, value: Callable) -> Decimal:
    total = sum((value(item) * item.area_ha for item in items), Decimal(0))
    return total.quantize(Decimal(1), rounding=ROUND_HALF_UP)


def aggregate_norms(request: FarmNormsRequest) -> FarmTotals:
    """Total application space of a farm in kg."""
    return FarmTotals(
        nitrogen=_total(request.fields, lambda f: f.nitrogen.norm_value),
        phosphate=_total(request.fields, lambda f: f.phosphate.norm_value),
        manure=_total(request.fields, lambda f: f.manure.norm_value),
    )


def aggregate_fillings(request: FarmFillingsRequest) -> FarmTotals:
    """Total norm filling of a farm in kg."""
    return FarmTotals(
        nitrogen=_total(request.fields, lambda f: f.nitrogen.norm_filling),
        phosphate=_total(request.fields, lambda f: f.phosphate.norm_filling),
        manure=_total(request.fields, lambda f: f.manure.norm_filling),
    )
