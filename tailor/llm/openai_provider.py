from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from tailor.core.config import settings
from tailor.core.errors import ErrorKind, MalformedModelOutputError, TransportError
from tailor.llm.types import PreparedImage

logger = logging.getLogger("uvicorn.error")


def build_content(images: List[PreparedImage], prompt: str) -> List[Dict[str, Any]]:
    """Image blocks in input order, then exactly one text block."""
    content: List[Dict[str, Any]] = [
        {
            "type": "image_url",
            "image_url": {"url": f"data:{img.media_type};base64,{img.data}"},
        }
        for img in images
    ]
    content.append({"type": "text", "text": prompt})
    return content


def classify_sdk_error(e: Exception) -> TransportError:
    """Translate an OpenAI SDK exception into a structured transport error."""
    # APITimeoutError subclasses APIConnectionError, RateLimitError subclasses APIStatusError
    if isinstance(e, openai.APITimeoutError):
        return TransportError(f"vision request timed out: {e}", kind=ErrorKind.TIMEOUT)
    if isinstance(e, openai.APIConnectionError):
        return TransportError(f"vision request failed to connect: {e}", kind=ErrorKind.NETWORK)
    if isinstance(e, openai.APIStatusError):
        status = e.status_code
        if status == 429:
            kind = ErrorKind.RATE_LIMITED
        elif 500 <= status < 600:
            kind = ErrorKind.NETWORK
        else:
            kind = ErrorKind.UNKNOWN
        return TransportError(f"vision request rejected status={status}: {e.message}", kind=kind, status=status)
    return TransportError(f"vision request failed: {e!r}", kind=ErrorKind.UNKNOWN)


class OpenAIVisionProvider:
    def __init__(
        self,
        client: Optional[Any] = None,
        *,
        model: str = settings.VISION_MODEL,
        max_output_tokens: int = settings.VISION_MAX_OUTPUT_TOKENS,
        timeout_ms: int = settings.VISION_TIMEOUT_MS,
    ):
        self._client = client
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.timeout_ms = timeout_ms

    @property
    def client(self) -> Any:
        if self._client is None:
            # retries are handled by the caller's policy
            self._client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY or None, max_retries=0)
        return self._client

    async def complete(self, images: List[PreparedImage], prompt: str) -> str:
        start = time.perf_counter()
        logger.info(
            "llm:openai vision request model=%s images=%s timeout_ms=%s", self.model, len(images), self.timeout_ms
        )
        try:
            resp = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": build_content(images, prompt)}],
                    max_tokens=self.max_output_tokens,
                ),
                timeout=self.timeout_ms / 1000.0,
            )
        except asyncio.TimeoutError as e:
            logger.warning("llm:openai timeout model=%s timeout_ms=%s", self.model, self.timeout_ms)
            raise TransportError(
                f"vision request exceeded {self.timeout_ms}ms", kind=ErrorKind.TIMEOUT
            ) from e
        except openai.OpenAIError as e:
            err = classify_sdk_error(e)
            logger.warning("llm:openai error kind=%s status=%s", err.kind.value, err.status)
            raise err from e
        latency_ms = int((time.perf_counter() - start) * 1000)
        usage = getattr(resp, "usage", None)
        logger.info(
            "llm:openai vision response model=%s latency_ms=%s tokens_in=%s tokens_out=%s",
            self.model,
            latency_ms,
            getattr(usage, "prompt_tokens", 0) if usage else 0,
            getattr(usage, "completion_tokens", 0) if usage else 0,
        )
        return extract_text(resp)


def extract_text(resp: Any) -> str:
    choices = getattr(resp, "choices", None) or []
    if not choices:
        raise MalformedModelOutputError("vision reply has no choices")
    content = choices[0].message.content
    if isinstance(content, list):
        texts = [
            part.get("text") if isinstance(part, dict) else getattr(part, "text", None)
            for part in content
        ]
        texts = [t for t in texts if t]
        if len(texts) != 1:
            raise MalformedModelOutputError(f"vision reply has {len(texts)} text blocks, expected 1")
        content = texts[0]
    if not content or not str(content).strip():
        raise MalformedModelOutputError("vision reply has no text block")
    return content
