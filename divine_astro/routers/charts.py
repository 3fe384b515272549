from fastapi import APIRouter, HTTPException
from zoneinfo import ZoneInfoNotFoundError

from ..schemas import ComputeRequest, ComputeResponse
from ..services.chart import build_chart
from ..services.zodiac import InvalidAngle

router = APIRouter(prefix="/v1/charts", tags=["charts"])

@router.post("/compute", response_model=ComputeResponse)
def compute_chart(req: ComputeRequest):
    try:
        return build_chart(req)
    except InvalidAngle as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except (ZoneInfoNotFoundError, ValueError) as exc:
        # unknown tz name or unparsable date/time
        raise HTTPException(status_code=400, detail=f"Invalid chart input: {exc}") from exc
