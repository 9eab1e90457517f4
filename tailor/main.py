import asyncio
import contextlib
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from tailor.core.cache import ResponseCache
from tailor.core.config import settings
from tailor.core.errors import VisionError
from tailor.llm.openai_provider import OpenAIVisionProvider
from tailor.routers import analyze, health
from tailor.services.orchestrator import VisionRequestOrchestrator

logger = logging.getLogger("tailor.requests")


def build_orchestrator() -> VisionRequestOrchestrator:
    return VisionRequestOrchestrator(
        OpenAIVisionProvider(),
        cache=ResponseCache(settings.CACHE_TTL_S),
        config=settings,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "orchestrator", None) is None:
        app.state.orchestrator = build_orchestrator()
    sweeper = asyncio.create_task(app.state.orchestrator.cache.run_sweeper(settings.CACHE_SWEEP_INTERVAL_S))
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.state.orchestrator = None

# CORS
origins = settings.cors_origin_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins if origins != ["*"] else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

prefix = settings.API_PREFIX
app.include_router(analyze.router, prefix=prefix)
app.include_router(health.router, prefix=prefix)
app.add_exception_handler(VisionError, analyze.vision_error_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


@app.get("/")
async def root():
    return {"name": settings.APP_NAME, "env": settings.APP_ENV}
