"""
Entry points per region and regulation year.

The caller decides which regulation year applies; the registry only hands out
the memoized calculation functions bound to that year.
"""
from typing import Callable
from dataclasses import dataclass
import functools

from gebruiksnormen.schemas.norm_schemas import FillingInput, NormFilling, NormResult, NormsInput
from gebruiksnormen.services.calculation_cache import cached
from gebruiksnormen.services.errors import UnsupportedRegulationError
from gebruiksnormen.services.manure_filling import calculate_manure_filling
from gebruiksnormen.services.manure_norm import calculate_manure_norm
from gebruiksnormen.services.nitrogen_filling import calculate_nitrogen_filling
from gebruiksnormen.services.nitrogen_norm import calculate_nitrogen_norm
from gebruiksnormen.services.norm_rules import SUPPORTED_REGION, SUPPORTED_YEARS
from gebruiksnormen.services.phosphate_filling import calculate_phosphate_filling
from gebruiksnormen.services.phosphate_norm import calculate_phosphate_norm

get_nitrogen_norm = cached("nitrogen_norm")(calculate_nitrogen_norm)
get_phosphate_norm = cached("phosphate_norm")(calculate_phosphate_norm)
get_manure_norm = cached("manure_norm")(calculate_manure_norm)
get_nitrogen_filling = cached("nitrogen_filling")(calculate_nitrogen_filling)
get_phosphate_filling = cached("phosphate_filling")(calculate_phosphate_filling)
get_manure_filling = cached("manure_filling")(calculate_manure_filling)


@dataclass(frozen=True)
class NormFunctions:
    nitrogen: Callable[[NormsInput], NormResult]
    phosphate: Callable[[NormsInput], NormResult]
    manure: Callable[[NormsInput], NormResult]


@dataclass(frozen=True)
class FillingFunctions:
    nitrogen: Callable[[FillingInput], NormFilling]
    phosphate: Callable[[FillingInput], NormFilling]
    manure: Callable[[FillingInput], NormFilling]


def _check_supported(region: str, year: int):
    if region != SUPPORTED_REGION:
        raise UnsupportedRegulationError("Region not supported")
    if year not in SUPPORTED_YEARS:
        raise UnsupportedRegulationError("Year not supported")


def create_norm_functions(region: str, year: int) -> NormFunctions:
    """Norm resolvers for a region and regulation year."""
    _check_supported(region, year)
    return NormFunctions(
        nitrogen=functools.partial(get_nitrogen_norm, year=year),
        phosphate=functools.partial(get_phosphate_norm, year=year),
        manure=functools.partial(get_manure_norm, year=year),
    )


def create_filling_functions(region: str, year: int) -> FillingFunctions:
    """Filling calculators for a region and regulation year."""
    _check_supported(region, year)
    return FillingFunctions(
        nitrogen=functools.partial(get_nitrogen_filling, year=year),
        phosphate=functools.partial(get_phosphate_filling, year=year),
        manure=functools.partial(get_manure_filling, year=year),
    )
