"""
Static rule tables for the Dutch gebruiksnormen.

The RVO tables (nitrogen standards, phosphate classes, working coefficients and
manure types) live as version-tagged JSON files under data/. They are parsed
once per process into immutable dataclasses and cached at module level. Numbers
are read as Decimal so legal thresholds are compared exactly.

Sub-type date windows are an explicit tagged variant:
- "vanaf": the cultivation starts on or after the window start
- "vanaf_tot_minstens": starts on or after the window start and is still
  present at the window end
- "van_tot_minstens": present at the window start and still present at the
  window end
"""
from typing import Dict, List, Optional, Tuple, Union
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import json
import os
import logging

from gebruiksnormen.services.errors import DataIntegrityError

logger = logging.getLogger(__name__)

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")

NITROGEN_STANDARDS_PATHS = {
    2025: os.path.join(DATA_DIR, "nitrogen_standards_2025.json"),
    2026: os.path.join(DATA_DIR, "nitrogen_standards_2026.json"),
}
PHOSPHATE_CLASSES_PATH = os.path.join(DATA_DIR, "phosphate_classes.json")
WORKING_COEFFICIENTS_PATH = os.path.join(DATA_DIR, "working_coefficients.json")
MANURE_TYPES_PATH = os.path.join(DATA_DIR, "manure_types.json")

REGION_KEYS = ("klei", "veen", "loess", "zand_nwc", "zand_zuid")

MonthDay = Tuple[int, int]

_nitrogen_standards_cache: Dict[int, "NitrogenTable"] = {}
_phosphate_classes_cache = None
_working_coefficients_cache = None
_manure_types_cache = None


# ==================== WINDOWS ====================

def _bind(month_day: MonthDay, year: int) -> date:
    return date(year, month_day[0], month_day[1])


def _sort_value(month_day: MonthDay) -> int:
    return month_day[0] * 100 + month_day[1]


@dataclass(frozen=True)
class _Window(ABC):
    start: MonthDay
    end: MonthDay

    kind = ""

    def sort_key(self) -> Tuple[int, int]:
        """Earliest start first; on equal start the longest mandated presence wins."""
        return (_sort_value(self.start), -_sort_value(self.end))

    @abstractmethod
    def matches(self, cultivation_start: date, cultivation_end: date) -> bool:
        """True when a cultivation over [start, end] satisfies the window."""

    def contains(self, day: date) -> bool:
        """
        True when `day` falls inside the window bound to the year of `day`.

        A window that ends before it starts runs into the next year.
        """
        window_start = _bind(self.start, day.year)
        wraps = _sort_value(self.end) < _sort_value(self.start)
        window_end = _bind(self.end, day.year + 1 if wraps else day.year)
        return window_start <= day <= window_end


@dataclass(frozen=True)
class FromDateWindow(_Window):
    """'vanaf {start}': the cultivation starts on or after the window start."""

    kind = "vanaf"

    def matches(self, cultivation_start: date, cultivation_end: date) -> bool:
        return cultivation_start >= _bind(self.start, cultivation_end.year)


@dataclass(frozen=True)
class FromDateUntilWindow(_Window):
    """'vanaf {start} tot minstens {end}'."""

    kind = "vanaf_tot_minstens"

    def matches(self, cultivation_start: date, cultivation_end: date) -> bool:
        year = cultivation_end.year
        return cultivation_start >= _bind(self.start, year) and cultivation_end >= _bind(self.end, year)


@dataclass(frozen=True)
class SpanWindow(_Window):
    """'van {start} tot minstens {end}': present over the whole window."""

    kind = "van_tot_minstens"

    def matches(self, cultivation_start: date, cultivation_end: date) -> bool:
        year = cultivation_end.year
        return cultivation_start <= _bind(self.start, year) and cultivation_end >= _bind(self.end, year)


Window = Union[FromDateWindow, FromDateUntilWindow, SpanWindow]

WINDOW_KINDS = {
    FromDateWindow.kind: FromDateWindow,
    FromDateUntilWindow.kind: FromDateUntilWindow,
    SpanWindow.kind: SpanWindow,
}


# ==================== NITROGEN STANDARDS ====================

@dataclass(frozen=True)
class RegionNorm:
    standard: Decimal
    nv_area: Decimal  # applies inside a nitrate-vulnerable area


@dataclass(frozen=True)
class SubType:
    omschrijving: Optional[str]
    norms: Dict[str, RegionNorm]
    varieties: Tuple[str, ...] = ()
    window: Optional[Window] = None


@dataclass(frozen=True)
class NitrogenStandard:
    cultivation_rvo_table2: str
    catalogue_codes: Tuple[str, ...]
    type: str
    is_winterteelt: bool
    is_vanggewas: bool
    norms: Optional[Dict[str, RegionNorm]]
    sub_types: Tuple[SubType, ...] = ()

    def has_descriptive_sub_types(self) -> bool:
        return any(sub.omschrijving or sub.varieties for sub in self.sub_types)


@dataclass(frozen=True)
class NitrogenTable:
    version: str
    standards: Tuple[NitrogenStandard, ...]

    def find_by_code(self, catalogue_code: str) -> List[NitrogenStandard]:
        return [s for s in self.standards if catalogue_code in s.catalogue_codes]


def _decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _parse_region_norms(raw: Optional[Dict]) -> Optional[Dict[str, RegionNorm]]:
    if raw is None:
        return None
    norms = {}
    for region, pair in raw.items():
        if region not in REGION_KEYS:
            raise DataIntegrityError(f"Unknown region key in rule table: {region}")
        norms[region] = RegionNorm(standard=_decimal(pair["standard"]), nv_area=_decimal(pair["nv_area"]))
    return norms


def _parse_window(raw: Optional[Dict]) -> Optional[Window]:
    if raw is None:
        return None
    window_class = WINDOW_KINDS.get(raw.get("kind"))
    if window_class is None:
        raise DataIntegrityError(f"Unknown window kind in rule table: {raw.get('kind')}")
    return window_class(start=tuple(raw["start"]), end=tuple(raw["end"]))


def _parse_standard(raw: Dict) -> NitrogenStandard:
    sub_types = tuple(
        SubType(
            omschrijving=sub.get("omschrijving"),
            norms=_parse_region_norms(sub.get("norms")) or {},
            varieties=tuple(sub.get("varieties", [])),
            window=_parse_window(sub.get("window")),
        )
        for sub in raw.get("sub_types", [])
    )
    return NitrogenStandard(
        cultivation_rvo_table2=raw["cultivation_rvo_table2"],
        catalogue_codes=tuple(raw["catalogue_codes"]),
        type=raw["type"],
        is_winterteelt=raw.get("is_winterteelt", False),
        is_vanggewas=raw.get("is_vanggewas", False),
        norms=_parse_region_norms(raw.get("norms")),
        sub_types=sub_types,
    )


def _read_json(path: str) -> Dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f, parse_float=Decimal)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading rule table {path}: {e}")
        raise DataIntegrityError(f"Rule table could not be loaded: {os.path.basename(path)}") from e


def load_nitrogen_standards(year: int) -> NitrogenTable:
    """Load RVO table 2 for a regulation year."""
    if year in _nitrogen_standards_cache:
        return _nitrogen_standards_cache[year]
    path = NITROGEN_STANDARDS_PATHS.get(year)
    if path is None:
        raise DataIntegrityError(f"No nitrogen standards available for {year}")
    raw = _read_json(path)
    table = NitrogenTable(
        version=raw["version"],
        standards=tuple(_parse_standard(s) for s in raw["standards"]),
    )
    logger.info(f"Loaded {len(table.standards)} nitrogen standards for {year} ({table.version})")
    _nitrogen_standards_cache[year] = table
    return table


def clear_nitrogen_standards_cache():
    """Clear the cache to reload nitrogen standards on next call."""
    _nitrogen_standards_cache.clear()


# ==================== PHOSPHATE CLASSES ====================

@dataclass(frozen=True)
class PhosphateBand:
    p_cacl2_op: Optional[str]  # "lt" or "le"; None for the last band
    p_cacl2_value: Optional[Decimal]
    p_al_steps: Tuple[Tuple[str, Decimal, str], ...]
    otherwise: str


@dataclass(frozen=True)
class PhosphateClassTable:
    version: str
    p_al_precision: int
    p_cacl2_precision: int
    ladders: Dict[str, Tuple[PhosphateBand, ...]]
    norms: Dict[int, Dict[str, Dict[str, Decimal]]]


def load_phosphate_classes() -> PhosphateClassTable:
    """Load the phosphate class ladders and class norms."""
    global _phosphate_classes_cache
    if _phosphate_classes_cache is not None:
        return _phosphate_classes_cache

    raw = _read_json(PHOSPHATE_CLASSES_PATH)
    ladders = {}
    for land_use, bands in raw["ladders"].items():
        ladders[land_use] = tuple(
            PhosphateBand(
                p_cacl2_op=band["p_cacl2"]["op"] if band["p_cacl2"] else None,
                p_cacl2_value=_decimal(band["p_cacl2"]["value"]) if band["p_cacl2"] else None,
                p_al_steps=tuple((op, _decimal(value), klasse) for op, value, klasse in band["p_al"]),
                otherwise=band["otherwise"],
            )
            for band in bands
        )
    norms = {
        int(year): {
            land_use: {klasse: _decimal(value) for klasse, value in classes.items()}
            for land_use, classes in per_land_use.items()
        }
        for year, per_land_use in raw["norms"].items()
    }
    _phosphate_classes_cache = PhosphateClassTable(
        version=raw["version"],
        p_al_precision=raw["precision"]["p_al"],
        p_cacl2_precision=raw["precision"]["p_cacl2"],
        ladders=ladders,
        norms=norms,
    )
    return _phosphate_classes_cache


def clear_phosphate_classes_cache():
    """Clear the cache to reload phosphate classes on next call."""
    global _phosphate_classes_cache
    _phosphate_classes_cache = None


# ==================== WORKING COEFFICIENTS (TABLE 9) ====================

@dataclass(frozen=True)
class ApplicationPeriod:
    start: MonthDay
    end: MonthDay

    def contains(self, day: date) -> bool:
        md = (day.month, day.day)
        if _sort_value(self.start) <= _sort_value(self.end):
            return self.start <= md <= self.end
        return md >= self.start or md <= self.end


@dataclass(frozen=True)
class CoefficientSubType:
    description: str
    coefficient: Decimal
    grazing_intention: Optional[bool] = None
    soil_regions: Optional[Tuple[str, ...]] = None
    is_bouwland: Optional[bool] = None
    application_period: Optional[ApplicationPeriod] = None


@dataclass(frozen=True)
class CoefficientEntry:
    description: str
    type_codes: Tuple[str, ...]
    coefficient: Optional[Decimal] = None
    on_farm_produced: Optional[bool] = None
    sub_types: Tuple[CoefficientSubType, ...] = ()


@dataclass(frozen=True)
class WorkingCoefficientTable:
    version: str
    entries: Tuple[CoefficientEntry, ...]


def _parse_coefficient_sub_type(raw: Dict) -> CoefficientSubType:
    period = raw.get("application_period")
    regions = raw.get("soil_regions")
    return CoefficientSubType(
        description=raw["description"],
        coefficient=_decimal(raw["coefficient"]),
        grazing_intention=raw.get("grazing_intention"),
        soil_regions=tuple(regions) if regions is not None else None,
        is_bouwland=raw.get("is_bouwland"),
        application_period=ApplicationPeriod(tuple(period["start"]), tuple(period["end"])) if period else None,
    )


def load_working_coefficients() -> WorkingCoefficientTable:
    """Load RVO table 9."""
    global _working_coefficients_cache
    if _working_coefficients_cache is not None:
        return _working_coefficients_cache

    raw = _read_json(WORKING_COEFFICIENTS_PATH)
    entries = tuple(
        CoefficientEntry(
            description=entry["description"],
            type_codes=tuple(entry["type_codes"]),
            coefficient=_decimal(entry["coefficient"]) if "coefficient" in entry else None,
            on_farm_produced=entry.get("on_farm_produced"),
            sub_types=tuple(_parse_coefficient_sub_type(sub) for sub in entry.get("sub_types", [])),
        )
        for entry in raw["entries"]
    )
    _working_coefficients_cache = WorkingCoefficientTable(version=raw["version"], entries=entries)
    return _working_coefficients_cache


def clear_working_coefficients_cache():
    """Clear the cache to reload working coefficients on next call."""
    global _working_coefficients_cache
    _working_coefficients_cache = None


# ==================== MANURE TYPES (TABLE 11) ====================

@dataclass(frozen=True)
class ManureType:
    code: str
    description: str
    n_content: Optional[Decimal]  # kg N per ton
    p_content: Optional[Decimal]  # kg P2O5 per ton
    animal_manure: bool


@dataclass(frozen=True)
class ManureTypeTable:
    version: str
    types: Dict[str, ManureType]

    def get(self, code: Optional[str]) -> Optional[ManureType]:
        if code is None:
            return None
        return self.types.get(code)


def load_manure_types() -> ManureTypeTable:
    """Load RVO table 11 keyed by product type code."""
    global _manure_types_cache
    if _manure_types_cache is not None:
        return _manure_types_cache

    raw = _read_json(MANURE_TYPES_PATH)
    types = {}
    for item in raw["types"]:
        types[item["code"]] = ManureType(
            code=item["code"],
            description=item["description"],
            n_content=_decimal(item["n"]) if item.get("n") is not None else None,
            p_content=_decimal(item["p"]) if item.get("p") is not None else None,
            animal_manure=item.get("animal_manure", False),
        )
    _manure_types_cache = ManureTypeTable(version=raw["version"], types=types)
    return _manure_types_cache


def clear_manure_types_cache():
    """Clear the cache to reload manure types on next call."""
    global _manure_types_cache
    _manure_types_cache = None


def clear_all_caches():
    clear_nitrogen_standards_cache()
    clear_phosphate_classes_cache()
    clear_working_coefficients_cache()
    clear_manure_types_cache()


def table_versions() -> Dict[str, str]:
    """Version tags of every loaded rule table, used in the calculator version."""
    versions = {
        f"nitrogen_{year}": load_nitrogen_standards(year).version
        for year in sorted(NITROGEN_STANDARDS_PATHS)
    }
    versions["phosphate_classes"] = load_phosphate_classes().version
    versions["working_coefficients"] = load_working_coefficients().version
    versions["manure_types"] = load_manure_types().version
    return versions
