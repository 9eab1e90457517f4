from typing import Optional

from pydantic import BaseModel


class ErrorOut(BaseModel):
    error: str
    retryable: bool
    detail: str
    retry_after_s: Optional[float] = None


class HealthOut(BaseModel):
    ok: bool = True
    env: str
    api_key_configured: bool
    cache_entries: int = 0
