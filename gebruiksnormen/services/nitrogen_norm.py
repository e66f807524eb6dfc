"""
Stikstofgebruiksnorm: nitrogen norm of a field for a regulation year.

Steps:
1. Buffer strips have no application space.
2. Resolve the hoofdteelt and select its RVO table 2 standard.
3. Resolve the sub-type: first from crop specific rules (grazing, variety,
   derogation, cultivation history, catalogue sub-code), then from the date
   windows of the sub-types.
4. Pick the NV-area or standard norm for the soil region.
5. Subtract the korting and clamp at zero.
"""
from typing import List, Optional, Sequence, Tuple
from decimal import Decimal
import logging

from gebruiksnormen.schemas.norm_schemas import CultivationInput, FarmInput, NormResult, NormsInput
from gebruiksnormen.services.errors import LookupExhaustionError
from gebruiksnormen.services.hoofdteelt import cultivation_end, get_hoofdteelt_cultivation
from gebruiksnormen.services.korting import calculate_korting
from gebruiksnormen.services.norm_rules import BUFFERSTRIP_NORM_SOURCE, REGULATION_YEAR_RULES
from gebruiksnormen.services.region import resolve_location
from gebruiksnormen.services.rule_tables import (
    NitrogenStandard,
    RegionNorm,
    SubType,
    load_nitrogen_standards,
)

logger = logging.getLogger(__name__)

MAIZE = "Akkerbouwgewassen, mais"
LUZERNE = "Akkerbouwgewassen, Luzerne"
KOOLZAAD = "Akkerbouwgewassen, koolzaad"
GRAS_INDUSTRIE = "Akkerbouwgewassen, Gras voor industriële verwerking"
ENGELS_RAAIGRAS = "Akkerbouwgewassen, Graszaad, Engels raaigras"
ROODZWENKGRAS = "Akkerbouwgewassen, Roodzwenkgras"
WINTERUI = "Akkerbouwgewassen, Ui overig, zaaiui of winterui."
BLADGEWASSEN = (
    "Bladgewassen, Spinazie",
    "Bladgewassen, Slasoorten",
    "Bladgewassen, Andijvie eerste teelt volgteelt",
)

# (first year, subsequent years) descriptions for crops keyed on cultivation history
HISTORY_DESCRIPTIONS = {
    LUZERNE: ("eerste jaar", "volgende jaren"),
    GRAS_INDUSTRIE: ("inzaai in september en eerste jaar", "inzaai voor 15 mei en volgende jaren"),
    ENGELS_RAAIGRAS: ("1e jaars", "overjarig"),
    ROODZWENKGRAS: ("1e jaars", "overjarig"),
}

# Families that resolve directly from the catalogue sub-code
CODE_DESCRIPTIONS = {
    KOOLZAAD: {"nl_1922": "winter", "nl_1923": "zomer"},
    WINTERUI: {"nl_1932": "1e jaars", "nl_1933": "2e jaars"},
}


def select_standard(standards: List[NitrogenStandard], catalogue_code: str) -> NitrogenStandard:
    """Pick one standard; with several candidates prefer one with descriptive sub-types."""
    if not standards:
        raise LookupExhaustionError(
            f"No matching nitrogen standard found for catalogue code {catalogue_code}."
        )
    if len(standards) == 1:
        return standards[0]
    for standard in standards:
        if standard.has_descriptive_sub_types():
            return standard
    return standards[0]


def _grown_in_previous_year(
    standard: NitrogenStandard,
    cultivations: Sequence[CultivationInput],
    year: int,
) -> bool:
    return any(
        c.catalogue_code in standard.catalogue_codes and c.start.year <= year - 1
        for c in cultivations
    )


def determine_sub_type_description(
    cultivation: CultivationInput,
    standard: NitrogenStandard,
    cultivations: Sequence[CultivationInput],
    farm: FarmInput,
    year: int,
    hoofdteelt_code: str,
) -> Optional[str]:
    """Sub-type omschrijving from crop specific rules, None when the windows decide."""
    name = standard.cultivation_rvo_table2

    if standard.type == "grasland":
        return "beweiden" if farm.has_grazing_intention else "volledig maaien"

    if standard.type == "aardappel":
        if cultivation.variety:
            variety = cultivation.variety.lower()
            for sub in standard.sub_types:
                if any(v.lower() == variety for v in sub.varieties):
                    return sub.omschrijving
        for sub in standard.sub_types:
            if sub.omschrijving == "overig":
                return sub.omschrijving
        return None

    if name == MAIZE:
        if REGULATION_YEAR_RULES[year]["derogation_available"] and farm.has_derogation:
            return "derogatie"
        return "non-derogatie"

    if name in HISTORY_DESCRIPTIONS:
        first_year, later_years = HISTORY_DESCRIPTIONS[name]
        return later_years if _grown_in_previous_year(standard, cultivations, year) else first_year

    if name in CODE_DESCRIPTIONS:
        return CODE_DESCRIPTIONS[name].get(cultivation.catalogue_code)

    if name in BLADGEWASSEN and cultivation.catalogue_code == hoofdteelt_code:
        return "1e teelt"

    return None


def find_sub_type(
    standard: NitrogenStandard,
    cultivation: CultivationInput,
    year: int,
    description: Optional[str],
) -> Optional[SubType]:
    """
    Sub-type of a standard for a cultivation.

    A description match wins. Otherwise every sub-type whose window matches the
    cultivation period is a candidate; the earliest window start wins and on a
    tie the latest window end. When no window matches, the first window that
    contains the cultivation end date is used.
    """
    if description:
        for sub in standard.sub_types:
            if sub.omschrijving == description:
                return sub

    start = cultivation.start
    end = cultivation_end(cultivation, year)
    candidates = [
        sub for sub in standard.sub_types
        if sub.window is not None and sub.window.matches(start, end)
    ]
    if candidates:
        return min(candidates, key=lambda sub: sub.window.sort_key())

    for sub in standard.sub_types:
        if sub.window is not None and sub.window.contains(end):
            logger.warning(
                f"No window of {standard.cultivation_rvo_table2} covers {start} - {end}, "
                f"falling back to '{sub.omschrijving}'"
            )
            return sub
    return None


def get_applicable_norms(
    standard: NitrogenStandard,
    cultivation: CultivationInput,
    year: int,
    description: Optional[str],
) -> Tuple[Optional[dict], Optional[str]]:
    """Per-region norms and the sub-type label that produced them."""
    if not standard.sub_types:
        return standard.norms, None
    sub = find_sub_type(standard, cultivation, year, description)
    if sub is None:
        return None, None
    return sub.norms, sub.omschrijving


def calculate_nitrogen_norm(norms_input: NormsInput, year: int) -> NormResult:
    """
    Nitrogen norm (kg N/ha) of a field for a regulation year.

    Raises:
        LookupExhaustionError: no standard or no norms apply to the hoofdteelt
        ComplianceWindowError: grassland renewal or destruction outside its window
        GeospatialError: the field location cannot be resolved
    """
    field = norms_input.field
    if field.is_bufferstrip:
        return NormResult(norm_value=Decimal(0), norm_source=BUFFERSTRIP_NORM_SOURCE)

    cultivations = norms_input.cultivations
    cultivation = get_hoofdteelt_cultivation(cultivations, year)
    code = cultivation.catalogue_code

    table = load_nitrogen_standards(year)
    standard = select_standard(table.find_by_code(code), code)

    location = resolve_location(field.centroid.longitude, field.centroid.latitude, year, ("nv",))
    region = location.region

    description = determine_sub_type_description(
        cultivation, standard, cultivations, norms_input.farm, year, code
    )
    norms, sub_label = get_applicable_norms(standard, cultivation, year, description)
    if norms is None:
        raise LookupExhaustionError(
            f"Applicable norms object is undefined for {standard.cultivation_rvo_table2} in region {region}."
        )

    region_norm: Optional[RegionNorm] = norms.get(region)
    if region_norm is None:
        raise LookupExhaustionError(
            f"No norms found for region {region} for {standard.cultivation_rvo_table2}."
        )

    base = region_norm.nv_area if location.is_nv_area else region_norm.standard
    korting = calculate_korting(
        cultivations,
        table,
        code,
        region,
        year,
        norms_input.farm.has_derogation,
        location.is_nv_area,
    )
    norm_value = max(base - korting.amount, Decimal(0))

    # Only a described sub-type names the source; a matched period window does not.
    sub_text = f" ({description})" if description else ""
    logger.debug(
        f"Stikstof {year} {field.field_id}: {standard.cultivation_rvo_table2} [{sub_label}] "
        f"{base} - {korting.amount} in {region}"
    )
    return NormResult(
        norm_value=norm_value,
        norm_source=f"{standard.cultivation_rvo_table2}{sub_text}{korting.description}",
    )
