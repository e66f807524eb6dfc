"""Small builders for test inputs."""
from decimal import Decimal

from gebruiksnormen.schemas.norm_schemas import CultivationInput, FertilizerInput, SoilAnalysisInput


def cultivation(code, start, end=None, variety=None, name=None):
    return CultivationInput(catalogue_code=code, name=name, start=start, end=end, variety=variety)


def fertilizer(fertilizer_id, rvo_type=None, n_content=None, p_content=None):
    return FertilizerInput(
        fertilizer_id=fertilizer_id,
        rvo_type=rvo_type,
        n_content=Decimal(n_content) if n_content is not None else None,
        p_content=Decimal(p_content) if p_content is not None else None,
    )


def soil_analysis(p_cacl2, p_al):
    return SoilAnalysisInput(p_cacl2=Decimal(p_cacl2), p_al=Decimal(p_al))
