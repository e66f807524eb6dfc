"""
Fosfaatgebruiksnorm: phosphate norm from the soil phosphate class.

The class follows from P-CaCl2 and P-Al, rounded to the regulation precision
(P-Al whole numbers, P-CaCl2 one decimal, half up), on separate ladders for
grasland and bouwland. Each ladder band is a literal breakpoint from the RVO
table; see data/phosphate_classes.json.
"""
from decimal import Decimal, ROUND_HALF_UP
import logging

from gebruiksnormen.schemas.norm_schemas import LandUseEnum, NormResult, NormsInput, PhosphateClassEnum
from gebruiksnormen.services.errors import DataIntegrityError, LookupExhaustionError
from gebruiksnormen.services.hoofdteelt import determine_hoofdteelt
from gebruiksnormen.services.norm_rules import BUFFERSTRIP_NORM_SOURCE, GRASLAND_CODES
from gebruiksnormen.services.rule_tables import load_phosphate_classes

logger = logging.getLogger(__name__)


def _compare(op: str, value: Decimal, bound: Decimal) -> bool:
    if op == "lt":
        return value < bound
    if op == "le":
        return value <= bound
    raise DataIntegrityError(f"Unknown comparison in phosphate class table: {op}")


def _round(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def is_grasland(catalogue_code: str) -> bool:
    return catalogue_code in GRASLAND_CODES


def classify_phosphate(p_cacl2: Decimal, p_al: Decimal, land_use: LandUseEnum) -> PhosphateClassEnum:
    """
    Phosphate class for a soil analysis.

    Args:
        p_cacl2: P-CaCl2 in mg P/kg
        p_al: P-Al in mg P2O5/100g
        land_use: grasland or bouwland ladder

    Returns:
        The phosphate class, Arm through Hoog.
    """
    table = load_phosphate_classes()
    p_cc = _round(Decimal(p_cacl2), table.p_cacl2_precision)
    p_al_rounded = _round(Decimal(p_al), table.p_al_precision)

    for band in table.ladders[land_use.value]:
        if band.p_cacl2_op is not None and not _compare(band.p_cacl2_op, p_cc, band.p_cacl2_value):
            continue
        for op, bound, klasse in band.p_al_steps:
            if _compare(op, p_al_rounded, bound):
                return PhosphateClassEnum(klasse)
        return PhosphateClassEnum(band.otherwise)

    raise DataIntegrityError(f"Phosphate class ladder for {land_use.value} has no closing band")


def calculate_phosphate_norm(norms_input: NormsInput, year: int) -> NormResult:
    """Phosphate norm (kg P2O5/ha) of a field for a regulation year."""
    if norms_input.field.is_bufferstrip:
        return NormResult(norm_value=Decimal(0), norm_source=BUFFERSTRIP_NORM_SOURCE)

    analysis = norms_input.soil_analysis
    if analysis is None or analysis.p_al is None or analysis.p_cacl2 is None:
        raise DataIntegrityError(f"Missing soil analysis data for NL {year} Fosfaatgebruiksnorm")

    hoofdteelt = determine_hoofdteelt(norms_input.cultivations, year)
    land_use = LandUseEnum.GRASLAND if is_grasland(hoofdteelt) else LandUseEnum.BOUWLAND
    klasse = classify_phosphate(analysis.p_cacl2, analysis.p_al, land_use)

    norms = load_phosphate_classes().norms.get(year, {}).get(land_use.value, {})
    norm_value = norms.get(klasse.value)
    if norm_value is None:
        raise LookupExhaustionError(f"No phosphate norms found for class {klasse.value}.")

    label = "Grasland" if land_use == LandUseEnum.GRASLAND else "Bouwland"
    logger.debug(f"Fosfaatklasse {klasse.value} on {land_use.value}: {norm_value}")
    return NormResult(norm_value=norm_value, norm_source=f"{label}: {klasse.value}")
