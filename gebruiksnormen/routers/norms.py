"""
Gebruiksnormen Router.
Provides endpoints for norm determination, norm filling and farm totals.
"""
from fastapi import APIRouter, HTTPException
import logging

from gebruiksnormen.schemas.norm_schemas import (
    FarmFillingsRequest,
    FarmNormsRequest,
    FarmTotals,
    FillingInput,
    NormFilling,
    NormResult,
    NormsInput,
)
from gebruiksnormen.services.calculation_cache import get_calculator_version
from gebruiksnormen.services.errors import (
    ComplianceWindowError,
    DataIntegrityError,
    GebruiksnormError,
    GeospatialError,
    LookupExhaustionError,
    UnsupportedRegulationError,
)
from gebruiksnormen.services.farm import aggregate_fillings, aggregate_norms
from gebruiksnormen.services.norm_rules import SUPPORTED_REGION
from gebruiksnormen.services.norms_registry import create_filling_functions, create_norm_functions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/norms", tags=["norms"])


def _to_http_error(error: GebruiksnormError) -> HTTPException:
    if isinstance(error, ComplianceWindowError):
        return HTTPException(
            status_code=422,
            detail={
                "message": str(error),
                "transition": error.transition,
                "transition_date": error.transition_date.isoformat() if error.transition_date else None,
            },
        )
    if isinstance(error, DataIntegrityError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, LookupExhaustionError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, UnsupportedRegulationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, GeospatialError):
        logger.error(f"Geospatial lookup failed: {error}")
        return HTTPException(status_code=502, detail=str(error))
    logger.error(f"Norm calculation failed: {error}")
    return HTTPException(status_code=500, detail=str(error))


@router.get("/health")
def health():
    """Service status and the calculator version in use."""
    return {"status": "ok", "calculator_version": get_calculator_version()}


@router.post("/{year}/nitrogen", response_model=NormResult)
def nitrogen_norm(year: int, request: NormsInput):
    """Stikstofgebruiksnorm of a field in kg N/ha."""
    try:
        return create_norm_functions(SUPPORTED_REGION, year).nitrogen(request)
    except GebruiksnormError as e:
        raise _to_http_error(e)


@router.post("/{year}/phosphate", response_model=NormResult)
def phosphate_norm(year: int, request: NormsInput):
    """Fosfaatgebruiksnorm of a field in kg P2O5/ha."""
    try:
        return create_norm_functions(SUPPORTED_REGION, year).phosphate(request)
    except GebruiksnormError as e:
        raise _to_http_error(e)


@router.post("/{year}/manure", response_model=NormResult)
def manure_norm(year: int, request: NormsInput):
    """Gebruiksnorm dierlijke mest of a field in kg N/ha."""
    try:
        return create_norm_functions(SUPPORTED_REGION, year).manure(request)
    except GebruiksnormError as e:
        raise _to_http_error(e)


@router.post("/{year}/filling/nitrogen", response_model=NormFilling)
def nitrogen_filling(year: int, request: FillingInput):
    """Effective nitrogen counted against the stikstofgebruiksnorm."""
    try:
        return create_filling_functions(SUPPORTED_REGION, year).nitrogen(request)
    except GebruiksnormError as e:
        raise _to_http_error(e)


@router.post("/{year}/filling/phosphate", response_model=NormFilling)
def phosphate_filling(year: int, request: FillingInput):
    """Phosphate counted against the fosfaatgebruiksnorm."""
    try:
        return create_filling_functions(SUPPORTED_REGION, year).phosphate(request)
    except GebruiksnormError as e:
        raise _to_http_error(e)


@router.post("/{year}/filling/manure", response_model=NormFilling)
def manure_filling(year: int, request: FillingInput):
    """Animal manure nitrogen counted against the gebruiksnorm dierlijke mest."""
    try:
        return create_filling_functions(SUPPORTED_REGION, year).manure(request)
    except GebruiksnormError as e:
        raise _to_http_error(e)


@router.post("/farm/norms", response_model=FarmTotals)
def farm_norms(request: FarmNormsRequest):
    """Sum the per-field norms over the farm, weighted by field area."""
    return aggregate_norms(request)


@router.post("/farm/fillings", response_model=FarmTotals)
def farm_fillings(request: FarmFillingsRequest):
    """Sum the per-field fillings over the farm, weighted by field area."""
    return aggregate_fillings(request)
