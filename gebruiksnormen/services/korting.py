"""
Korting engine: reductions on the nitrogen norm.

Two sources of korting, checked in this order:

1. Transitions in the cultivation timeline. Grassland followed by grassland
   (renewal) or grassland followed by maize or a consumption/starch potato
   (destruction) in the regulation year gives a flat reduction, but only inside
   the legal window for the soil group. A transition outside its window is a
   compliance error, not a zero korting.
2. Catch crops on sand and loess. Without a winter crop as hoofdteelt, the
   sowing date of the catch crop of the previous autumn selects a tier.

From 2026 on clay and peat get no korting at all, transitions included.
"""
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import logging

from gebruiksnormen.schemas.norm_schemas import CultivationInput
from gebruiksnormen.services.errors import ComplianceWindowError
from gebruiksnormen.services.norm_rules import (
    DESTRUCTION_DESCRIPTION,
    DESTRUCTION_REDUCTION,
    DESTRUCTION_WINDOWS,
    DUTCH_MONTHS,
    NO_KORTING_DESCRIPTION,
    NO_VANGGEWAS_KORTING,
    NON_BOUWLAND_CODES,
    REGULATION_YEAR_RULES,
    RENEWAL_DESCRIPTION,
    RENEWAL_REDUCTION,
    RENEWAL_WINDOWS,
    SANDY_OR_LOESS_REGIONS,
    SEED_POTATO_CODES,
    SEED_POTATO_NAME_MARKERS,
    SOIL_GROUP_LABELS,
    VANGGEWAS_LATE_TIER,
    VANGGEWAS_PRESENT_UNTIL,
    VANGGEWAS_REMOVED_KORTING,
    VANGGEWAS_SOW_AFTER,
    VANGGEWAS_SOW_BEFORE,
    VANGGEWAS_SOW_TIERS,
    WINTERTEELT_DESCRIPTION,
)
from gebruiksnormen.services.rule_tables import NitrogenStandard, NitrogenTable

logger = logging.getLogger(__name__)

RENEWAL = "graslandvernieuwing"
DESTRUCTION = "graslandvernietiging"


@dataclass
class Korting:
    amount: Decimal
    description: str


def soil_group(region: str) -> str:
    return "zand_loess" if region in SANDY_OR_LOESS_REGIONS else "klei_veen"


def format_day(month_day: Tuple[int, int]) -> str:
    return f"{month_day[1]} {DUTCH_MONTHS[month_day[0] - 1]}"


def _first_standard(table: NitrogenTable, catalogue_code: str) -> Optional[NitrogenStandard]:
    matches = table.find_by_code(catalogue_code)
    return matches[0] if matches else None


def _select_window(windows, has_derogation: bool, is_nv_area: bool):
    for label, derogation, nv_area, start, end in windows:
        if derogation is not None and derogation != has_derogation:
            continue
        if nv_area is not None and nv_area != is_nv_area:
            continue
        return label, start, end
    return None


def _check_window(
    transition: str,
    transition_date: date,
    region: str,
    year: int,
    has_derogation: bool,
    is_nv_area: bool,
):
    """Raise ComplianceWindowError when `transition_date` is outside the legal window."""
    group = soil_group(region)
    windows = RENEWAL_WINDOWS if transition == RENEWAL else DESTRUCTION_WINDOWS
    selected = _select_window(windows[group], has_derogation, is_nv_area)
    if selected is None:
        raise ComplianceWindowError(
            f"{transition.capitalize()} op {SOIL_GROUP_LABELS[group]} is niet toegestaan.",
            transition,
            transition_date,
        )

    label, start, end = selected
    if date(year, *start) <= transition_date <= date(year, *end):
        return

    condition = f" ({label})" if label else ""
    raise ComplianceWindowError(
        f"{transition.capitalize()} op {SOIL_GROUP_LABELS[group]}{condition} is alleen toegestaan "
        f"tussen {format_day(start)} en {format_day(end)}.",
        transition,
        transition_date,
    )


def _is_destruction_crop(cultivation: CultivationInput, standard: Optional[NitrogenStandard]) -> bool:
    if standard is None:
        return False
    name = standard.cultivation_rvo_table2.lower()
    if "mais" in name or "maïs" in name:
        return True
    if standard.type != "aardappel":
        return False
    is_seed_potato = cultivation.catalogue_code in SEED_POTATO_CODES or any(
        marker in name for marker in SEED_POTATO_NAME_MARKERS
    )
    return not is_seed_potato


def find_transition_korting(
    cultivations: Sequence[CultivationInput],
    table: NitrogenTable,
    region: str,
    year: int,
    has_derogation: bool,
    is_nv_area: bool,
) -> Optional[Korting]:
    """Korting for the first grassland renewal or destruction ending in `year`, if any."""
    rules = REGULATION_YEAR_RULES[year]
    derogation = has_derogation and rules["derogation_available"]
    late_sown_from = rules["late_sown_grass_from_month"]

    ordered = sorted(cultivations, key=lambda c: c.start)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.end is None or previous.end.year != year:
            continue
        if previous.catalogue_code not in NON_BOUWLAND_CODES:
            continue

        if current.catalogue_code in NON_BOUWLAND_CODES:
            _check_window(RENEWAL, previous.end, region, year, derogation, is_nv_area)
            logger.debug(f"Graslandvernieuwing on {previous.end}")
            return Korting(RENEWAL_REDUCTION, RENEWAL_DESCRIPTION)

        if not _is_destruction_crop(current, _first_standard(table, current.catalogue_code)):
            continue

        previous_standard = _first_standard(table, previous.catalogue_code)
        if previous_standard is not None and previous_standard.is_vanggewas:
            continue
        if (
            late_sown_from is not None
            and previous.start.year == year - 1
            and previous.start.month >= late_sown_from
        ):
            # Grass sown late in the previous year was a catch crop
            continue

        _check_window(DESTRUCTION, previous.end, region, year, derogation, is_nv_area)
        logger.debug(f"Graslandvernietiging on {previous.end}")
        return Korting(DESTRUCTION_REDUCTION, DESTRUCTION_DESCRIPTION)

    return None


def _vanggewassen(cultivations: Sequence[CultivationInput], table: NitrogenTable, year: int) -> List[CultivationInput]:
    sow_after = date(year - 1, *VANGGEWAS_SOW_AFTER)
    sow_before = date(year, *VANGGEWAS_SOW_BEFORE)
    found = []
    for cultivation in cultivations:
        if cultivation.start.year != year - 1:
            continue
        if not sow_after < cultivation.start < sow_before:
            continue
        standard = _first_standard(table, cultivation.catalogue_code)
        if standard is not None and standard.is_vanggewas:
            found.append(cultivation)
    return found


def catch_crop_korting(
    cultivations: Sequence[CultivationInput],
    table: NitrogenTable,
    hoofdteelt_code: str,
    year: int,
) -> Korting:
    """Korting from the winter crop or the catch crop of the previous autumn."""
    if hoofdteelt_code in NON_BOUWLAND_CODES:
        return Korting(Decimal(0), NO_KORTING_DESCRIPTION)

    hoofdteelt_standard = _first_standard(table, hoofdteelt_code)
    if hoofdteelt_standard is not None and hoofdteelt_standard.is_winterteelt:
        return Korting(Decimal(0), WINTERTEELT_DESCRIPTION)

    vanggewassen = _vanggewassen(cultivations, table, year)
    if not vanggewassen:
        return Korting(*NO_VANGGEWAS_KORTING)

    present_until = date(year, *VANGGEWAS_PRESENT_UNTIL)
    completed = [c for c in vanggewassen if c.end is None or c.end >= present_until]
    if not completed:
        return Korting(*VANGGEWAS_REMOVED_KORTING)

    # The first sown catch crop counts
    sow_date = min(c.start for c in completed)
    for sown_before, amount, description in VANGGEWAS_SOW_TIERS:
        if sow_date < date(year - 1, *sown_before):
            return Korting(amount, description)
    return Korting(*VANGGEWAS_LATE_TIER)


def calculate_korting(
    cultivations: Sequence[CultivationInput],
    table: NitrogenTable,
    hoofdteelt_code: str,
    region: str,
    year: int,
    has_derogation: bool,
    is_nv_area: bool,
) -> Korting:
    """
    Reduction on the nitrogen norm of a field.

    Raises:
        ComplianceWindowError: a renewal or destruction falls outside its legal window
    """
    if REGULATION_YEAR_RULES[year]["korting_sandy_or_loess_only"] and region not in SANDY_OR_LOESS_REGIONS:
        return Korting(Decimal(0), NO_KORTING_DESCRIPTION)

    korting = find_transition_korting(cultivations, table, region, year, has_derogation, is_nv_area)
    if korting is not None:
        return korting

    if region not in SANDY_OR_LOESS_REGIONS:
        return Korting(Decimal(0), NO_KORTING_DESCRIPTION)

    korting = catch_crop_korting(cultivations, table, hoofdteelt_code, year)
    logger.debug(f"Vanggewas korting {year}: {korting.amount}{korting.description}")
    return korting
