"""
Pydantic schemas for the gebruiksnormen calculator.
Covers the standardized norm input, the filling input and the results.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date
from decimal import Decimal
from enum import Enum


# ==================== ENUMS ====================

class LandUseEnum(str, Enum):
    """Land use split used by the phosphate classes."""
    GRASLAND = "grasland"
    BOUWLAND = "bouwland"


class PhosphateClassEnum(str, Enum):
    """Phosphate status classes, poorest first."""
    ARM = "Arm"
    LAAG = "Laag"
    NEUTRAAL = "Neutraal"
    RUIM = "Ruim"
    HOOG = "Hoog"


# ==================== INPUT SCHEMAS ====================

class Centroid(BaseModel):
    """WGS84 coordinate of the field centroid."""
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")


class FieldInput(BaseModel):
    field_id: str = Field(..., min_length=1, description="Field identifier")
    centroid: Centroid
    is_bufferstrip: bool = Field(default=False, description="Buffer strips have no application space")
    area_ha: Decimal = Field(default=Decimal("1"), ge=0, description="Field area in hectares")


class FarmInput(BaseModel):
    has_derogation: bool = Field(default=False, description="Derogation permit for the regulation year")
    has_grazing_intention: bool = Field(default=False, description="Farm intends to graze")
    produces_manure_on_farm: Optional[bool] = Field(
        None, description="Manure is produced on the farm itself; defaults to the grazing intention"
    )
    has_organic_certification: bool = Field(default=False, description="Certified organic (SKAL)")


class CultivationInput(BaseModel):
    catalogue_code: str = Field(..., min_length=1, description="Crop catalogue code, e.g. nl_265")
    name: Optional[str] = Field(None, description="Crop name")
    start: date = Field(..., description="Sowing or start date")
    end: Optional[date] = Field(None, description="End date; open cultivations run to year end")
    variety: Optional[str] = Field(None, description="Variety, used for potatoes")


class SoilAnalysisInput(BaseModel):
    p_al: Optional[Decimal] = Field(None, ge=0, description="P-Al mg P2O5/100g")
    p_cacl2: Optional[Decimal] = Field(None, ge=0, description="P-CaCl2 mg P/kg")


class FertilizerInput(BaseModel):
    fertilizer_id: str = Field(..., min_length=1, description="Fertilizer catalogue identifier")
    name: Optional[str] = Field(None, description="Product name")
    rvo_type: Optional[str] = Field(None, description="RVO product type code (mestcode)")
    n_content: Optional[Decimal] = Field(None, ge=0, description="kg N per ton")
    p_content: Optional[Decimal] = Field(None, ge=0, description="kg P2O5 per ton")


class FertilizerApplicationInput(BaseModel):
    application_id: str = Field(..., min_length=1, description="Application identifier")
    fertilizer_id: str = Field(..., min_length=1, description="Applied fertilizer")
    amount: Decimal = Field(..., ge=0, description="Applied amount in kg/ha")
    application_date: date = Field(..., description="Date of application")


class NormsInput(BaseModel):
    """Standardized input for the norm resolvers of one field."""
    farm: FarmInput
    field: FieldInput
    cultivations: List[CultivationInput] = Field(default_factory=list)
    soil_analysis: Optional[SoilAnalysisInput] = None


class FillingInput(BaseModel):
    """Standardized input for the filling calculators of one field."""
    farm: FarmInput
    field: FieldInput
    cultivations: List[CultivationInput] = Field(default_factory=list)
    applications: List[FertilizerApplicationInput] = Field(default_factory=list)
    fertilizers: List[FertilizerInput] = Field(default_factory=list)
    norm_value: Decimal = Field(default=Decimal(0), ge=0, description="Norm the applications are scored against")


# ==================== RESULT SCHEMAS ====================

class NormResult(BaseModel):
    norm_value: Decimal = Field(..., description="kg/ha")
    norm_source: str = Field(..., description="Standard, sub-type and korting that applied")


class ApplicationFilling(BaseModel):
    application_id: str
    norm_filling: Decimal = Field(..., description="kg/ha counted against the norm")
    norm_filling_details: Optional[str] = None


class NormFilling(BaseModel):
    norm_filling: Decimal = Field(..., description="Total kg/ha counted against the norm")
    application_filling: List[ApplicationFilling] = Field(default_factory=list)


# ==================== FARM AGGREGATION SCHEMAS ====================

class FieldNorms(BaseModel):
    field_id: str
    area_ha: Decimal = Field(..., ge=0)
    nitrogen: NormResult
    phosphate: NormResult
    manure: NormResult


class FarmNormsRequest(BaseModel):
    fields: List[FieldNorms] = Field(default_factory=list)


class FieldFillings(BaseModel):
    field_id: str
    area_ha: Decimal = Field(..., ge=0)
    nitrogen: NormFilling
    phosphate: NormFilling
    manure: NormFilling


class FarmFillingsRequest(BaseModel):
    fields: List[FieldFillings] = Field(default_factory=list)


class FarmTotals(BaseModel):
    """Farm level totals in kg, rounded to whole kilograms."""
    nitrogen: Decimal
    phosphate: Decimal
    manure: Decimal
