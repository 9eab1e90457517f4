import logging

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from tailor.core.errors import ErrorKind, RateLimitExceededError, VisionError
from tailor.llm.types import AnalysisRequest, AnalysisResponse
from tailor.schemas.analyze import ErrorOut
from tailor.services.orchestrator import VisionRequestOrchestrator
from tailor.services.shopping import populate_shopping_options

logger = logging.getLogger("uvicorn.error")

router = APIRouter(tags=["analyze"])

ERROR_STATUS = {
    ErrorKind.CONFIGURATION_MISSING: 503,
    ErrorKind.NO_USABLE_IMAGE: 422,
    ErrorKind.NETWORK: 502,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.MALFORMED_OUTPUT: 502,
    ErrorKind.UNKNOWN: 500,
}


def get_orchestrator(request: Request) -> VisionRequestOrchestrator:
    return request.app.state.orchestrator


async def vision_error_handler(request: Request, exc: VisionError) -> JSONResponse:
    cause = exc.__cause__
    logger.warning(
        "analyze failed kind=%s status=%s reason=%s cause=%r", exc.kind.value, exc.status, exc, cause
    )
    body = ErrorOut(
        error=exc.kind.value,
        retryable=exc.retryable,
        detail=str(exc),
        retry_after_s=exc.retry_after_s if isinstance(exc, RateLimitExceededError) else None,
    )
    return JSONResponse(status_code=ERROR_STATUS.get(exc.kind, 500), content=body.model_dump())


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    response_model_by_alias=True,
    responses={code: {"model": ErrorOut} for code in sorted(set(ERROR_STATUS.values()))},
)
async def analyze(
    payload: AnalysisRequest = Body(...),
    orchestrator: VisionRequestOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.analyze(payload)
    return populate_shopping_options(
        result, getattr(payload, "price_tier", None), config=orchestrator.config
    )
