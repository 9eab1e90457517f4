from fastapi import APIRouter, Depends

from tailor.core.config import settings
from tailor.routers.analyze import get_orchestrator
from tailor.schemas.analyze import HealthOut
from tailor.services.orchestrator import VisionRequestOrchestrator

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
async def health(orchestrator: VisionRequestOrchestrator = Depends(get_orchestrator)):
    return HealthOut(
        env=settings.APP_ENV,
        api_key_configured=orchestrator.config.api_key_configured,
        cache_entries=len(orchestrator.cache),
    )
