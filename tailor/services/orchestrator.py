from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ValidationError

from tailor.core.cache import InFlightRequests, ResponseCache, fingerprint
from tailor.core.config import Settings, settings as default_settings
from tailor.core.errors import ConfigurationMissingError, MalformedModelOutputError
from tailor.core.ratelimit import RateLimiter
from tailor.core.retry import RetryPolicy, Sleep, execute
from tailor.llm.base import VisionProvider
from tailor.llm.prompts import PROMPT_VERSION, build_prompt
from tailor.llm.types import AnalysisResponse, request_images
from tailor.services.images import ImagePreprocessor
from tailor.services.normalize import normalize_response

logger = logging.getLogger("uvicorn.error")


def policy_from_settings(s: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=s.RETRY_MAX_ATTEMPTS,
        initial_delay_s=s.RETRY_INITIAL_DELAY_S,
        max_delay_s=s.RETRY_MAX_DELAY_S,
        multiplier=s.RETRY_BACKOFF_MULTIPLIER,
    )


class VisionRequestOrchestrator:
    """Single entry point for one analyze request/response cycle.

    Pipeline: credential check, cache read (image-free requests only),
    image preparation, prompt, model call under the retry policy,
    normalization, cache write. Concurrent image-free calls with the same
    fingerprint share one model call.
    """

    def __init__(
        self,
        provider: VisionProvider,
        *,
        cache: Optional[ResponseCache] = None,
        images: Optional[ImagePreprocessor] = None,
        config: Settings = default_settings,
        policy: Optional[RetryPolicy] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Sleep = asyncio.sleep,
        credentials_configured: Optional[Callable[[], bool]] = None,
    ):
        self.provider = provider
        self.cache = cache if cache is not None else ResponseCache(config.CACHE_TTL_S)
        self.images = images or ImagePreprocessor(
            max_side=config.IMAGE_MAX_SIDE,
            max_width=config.IMAGE_MAX_WIDTH,
            max_height=config.IMAGE_MAX_HEIGHT,
            jpeg_quality=config.IMAGE_JPEG_QUALITY,
            fetch_timeout_s=config.IMAGE_FETCH_TIMEOUT_S,
        )
        self.config = config
        self.policy = policy or policy_from_settings(config)
        self.rate_limiter = rate_limiter or RateLimiter(config.RATE_LIMIT_MAX_CALLS, config.RATE_LIMIT_WINDOW_S)
        self.cache_ttl_s = config.CACHE_TTL_S
        self._sleep = sleep
        self._credentials_configured = credentials_configured or (lambda: config.api_key_configured)
        self._in_flight = InFlightRequests()

    async def analyze(self, request: BaseModel) -> AnalysisResponse:
        if not self._credentials_configured():
            raise ConfigurationMissingError("vision API credential is not configured")

        if request_images(request):
            payload = await self._run(request)
            return self._to_response(payload)

        cached = self.cache.get(request)
        if cached is not None:
            logger.info("llm:cache hit kind=%s", request.kind)
            return self._to_response(cached)

        key = fingerprint(request)
        payload = await self._in_flight.run(key, lambda: self._run_and_store(request))
        return self._to_response(copy.deepcopy(payload))

    async def _run_and_store(self, request: BaseModel) -> Dict[str, Any]:
        payload = await self._run(request)
        self.cache.set(request, payload, self.cache_ttl_s)
        return payload

    async def _run(self, request: BaseModel) -> Dict[str, Any]:
        self.rate_limiter.acquire()
        prepared = await self.images.prepare(request_images(request))
        prompt = build_prompt(request)
        logger.info(
            "llm:analyze kind=%s images=%s prompt_version=%s prompt_chars=%s",
            request.kind,
            len(prepared),
            PROMPT_VERSION,
            len(prompt),
        )
        text = await execute(
            lambda: self.provider.complete(prepared, prompt),
            self.policy,
            sleep=self._sleep,
            label=f"vision:{request.kind}",
        )
        payload = normalize_response(text, request)
        # fail before caching if the reply cannot be represented
        self._to_response(payload)
        return payload

    @staticmethod
    def _to_response(payload: Dict[str, Any]) -> AnalysisResponse:
        try:
            return AnalysisResponse.model_validate(payload)
        except ValidationError as e:
            raise MalformedModelOutputError(f"model reply does not match the response shape: {e}") from e
