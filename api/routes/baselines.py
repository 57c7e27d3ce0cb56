from __future__ import annotations

from fastapi import APIRouter

from api.requests import BaselinesRequest
from api.responses import BaselinesResponse
from api.routes.common import get_service, to_raw
from api.routes.exception import handle_exceptions
from services.baseline_service import BaselineJob

router = APIRouter(tags=["Baselines"])


@router.post("/baselines", response_model=BaselinesResponse, summary="Baseline and excess series for every entry")
@handle_exceptions
async def compute_baselines(req: BaselinesRequest) -> BaselinesResponse:
    job = BaselineJob(
        labels=req.labels,
        data_key=req.data_key,
        granularity=req.granularity,
        method=req.method,
        baseline_from=req.baseline_from,
        baseline_to=req.baseline_to,
        cumulative=req.cumulative,
        age_groups=req.age_groups,
        countries=req.countries,
        clamp_baseline=req.clamp_baseline,
    )
    aligned = await get_service().compute(to_raw(req.entries), job)
    return BaselinesResponse.from_aligned(aligned)
