"""
Regulatory constants for the Dutch gebruiksnormen.

This module centralizes catalogue code lists, date windows and fixed amounts so
the resolvers stay deterministic and every legal number lives in one place.
Dates are stored as (month, day) and bound to a regulation year at use.
"""
from decimal import Decimal

SUPPORTED_REGION = "NL"
SUPPORTED_YEARS = (2025, 2026)

BUFFERSTRIP_NORM_SOURCE = "Bufferstrook: geen plaatsingsruimte"

# ==================== HOOFDTEELT ====================

HOOFDTEELT_WINDOW_START = (5, 15)
HOOFDTEELT_WINDOW_END = (7, 15)
HOOFDTEELT_FALLBACK_CODE = "nl_6794"
HOOFDTEELT_FALLBACK_NAME = "Groene braak, spontane opkomst"

# ==================== LAND USE ====================

# Phosphate classification treats these as grasland
GRASLAND_CODES = ("nl_265", "nl_266", "nl_331", "nl_332", "nl_335")

# Not bouwland for working coefficients and korting transitions
NON_BOUWLAND_CODES = ("nl_265", "nl_266", "nl_331", "nl_332")

SEED_POTATO_CODES = ("nl_2015", "nl_2016")
SEED_POTATO_NAME_MARKERS = ("pootaardappelen", "uitgroeiteelt")

# ==================== REGION LAYERS ====================

SOIL_REGION_CODES = {
    1: "klei",
    2: "loess",
    3: "veen",
    4: "zand_nwc",
    5: "zand_zuid",
}

SANDY_OR_LOESS_REGIONS = ("zand_nwc", "zand_zuid", "loess")

RASTER_LAYERS = {
    2025: {
        "grondsoorten": "norms/nl/2024/grondsoorten.tiff",
        "nv": "norms/nl/2025/nv.tiff",
        "gwbg": "norms/nl/2024/gwbg.tiff",
        "natura2000": "norms/nl/2024/natura2000.tiff",
        "derogatievrije_zones": "norms/nl/2025/derogatievrije_zones.tiff",
    },
    2026: {
        "grondsoorten": "norms/nl/2024/grondsoorten.tiff",
        "nv": "norms/nl/2025/nv.tiff",
        "gwbg": "norms/nl/2024/gwbg.tiff",
        "natura2000": "norms/nl/2024/natura2000.tiff",
        "derogatievrije_zones": "norms/nl/2025/derogatievrije_zones.tiff",
    },
}

# ==================== KORTING ====================

RENEWAL_REDUCTION = Decimal(50)
DESTRUCTION_REDUCTION = Decimal(65)

VANGGEWAS_SOW_AFTER = (7, 15)      # previous year, exclusive
VANGGEWAS_SOW_BEFORE = (2, 1)      # regulation year, exclusive
VANGGEWAS_PRESENT_UNTIL = (2, 1)   # regulation year, inclusive

# (sown before, reduction, description), checked in order; the last tier applies otherwise
VANGGEWAS_SOW_TIERS = (
    ((10, 2), Decimal(0), ". Geen korting: vanggewas gezaaid uiterlijk 1 oktober"),
    ((10, 15), Decimal(5), ". Korting: 5kg N/ha, vanggewas gezaaid tussen 2 t/m 14 oktober"),
    ((11, 1), Decimal(10), ". Korting: 10kg N/ha, vanggewas gezaaid tussen 15 t/m 31 oktober"),
)
VANGGEWAS_LATE_TIER = (Decimal(20), ". Korting: 20kg N/ha, vanggewas gezaaid op of na 1 november")

NO_VANGGEWAS_KORTING = (Decimal(20), ". Korting: 20kg N/ha: geen vanggewas of winterteelt")
VANGGEWAS_REMOVED_KORTING = (Decimal(20), ". Korting: 20kg N/ha: vanggewas staat niet tot 1 februari")
WINTERTEELT_DESCRIPTION = ". Geen korting: winterteelt aanwezig"
RENEWAL_DESCRIPTION = ". Korting: 50kg N/ha: graslandvernieuwing"
DESTRUCTION_DESCRIPTION = ". Korting: 65kg N/ha: graslandvernietiging"
NO_KORTING_DESCRIPTION = "."

DUTCH_MONTHS = (
    "januari", "februari", "maart", "april", "mei", "juni",
    "juli", "augustus", "september", "oktober", "november", "december",
)

# Legal windows for grassland renewal and destruction, keyed by soil group.
# Each entry: (condition label, derogation, nv_area, start, end). None matches any value.
RENEWAL_WINDOWS = {
    "zand_loess": (
        (None, None, None, (6, 1), (8, 31)),
    ),
    "klei_veen": (
        ("derogatie + NV-gebied", True, True, (6, 1), (8, 31)),
        ("derogatie", True, False, (6, 1), (9, 15)),
        ("geen derogatie", False, None, (2, 1), (9, 15)),
    ),
}

DESTRUCTION_WINDOWS = {
    "zand_loess": (
        (None, None, None, (2, 1), (5, 10)),
    ),
    "klei_veen": (
        ("NV-gebied", None, True, (2, 1), (3, 15)),
        ("buiten NV-gebied", None, False, (2, 1), (5, 31)),
    ),
}

SOIL_GROUP_LABELS = {
    "zand_loess": "zand- en lössgrond",
    "klei_veen": "klei- en veengrond",
}

REGULATION_YEAR_RULES = {
    2025: {
        "derogation_available": True,
        # Grass sown from this month of the previous year on counts as a catch crop
        "late_sown_grass_from_month": None,
        # Korting of any kind only applies on sand and loess
        "korting_sandy_or_loess_only": False,
    },
    2026: {
        "derogation_available": False,
        "late_sown_grass_from_month": 8,
        "korting_sandy_or_loess_only": True,
    },
}

# ==================== DIERLIJKE MEST ====================

MANURE_NORM_STANDARD = (Decimal(170), "Standaard - geen derogatie")
MANURE_NORM_DEROGATION = (
    ("natura2000", Decimal(170), "Derogatie - Natura2000 Gebied"),
    ("gwbg", Decimal(170), "Derogatie - Grondwaterbeschermingsgebied"),
    ("derogatievrije_zones", Decimal(170), "Derogatie - Derogatie-vrije zone"),
    ("nv", Decimal(190), "Derogatie - NV Gebied"),
)
MANURE_NORM_DEROGATION_DEFAULT = (Decimal(200), "Derogatie")

# ==================== FOSFAAT FILLING ====================

ORGANIC_RICH_MIN_PHOSPHATE = Decimal(20)

# Compost, zeer schone compost
ORGANIC_RICH_25_PERCENT_CODES = ("111", "112")
# Champost, vaste mest rundvee, geiten, paarden, schapen
ORGANIC_RICH_75_PERCENT_CODES = ("110", "10", "61", "25", "56")
# Vaste mest varkens, only with organic certification
ORGANIC_RICH_75_PERCENT_ORGANIC_CODES = ("40",)

ORGANIC_RICH_25_FACTOR = Decimal("0.25")
ORGANIC_RICH_75_FACTOR = Decimal("0.75")

# ==================== STIKSTOF FILLING ====================

DEFAULT_WORKING_COEFFICIENT = (Decimal("1.0"), "Kunstmest")
