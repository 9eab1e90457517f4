"""In-process response cache for image-free model calls.

Entries live only for the lifetime of the process. Expired entries are
evicted lazily on read and by a periodic sweep.
"""
from __future__ import annotations

import asyncio
import copy
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from pydantic import BaseModel

from tailor.llm.types import request_images, request_wardrobe

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

Clock = Callable[[], float]


def _enum_value(v: Any) -> Any:
    return getattr(v, "value", v)


def fingerprint(request: BaseModel) -> str:
    """Stable key over the fields that change the prompt's meaning.

    Wardrobe items contribute only their sorted ids; full item content and
    the regeneration outfit context are deliberately left out.
    """
    parts = {
        "kind": request.kind,
        "occasion": getattr(request, "occasion", None),
        "style": _enum_value(getattr(request, "style_preference", None)),
        "price": _enum_value(getattr(request, "price_tier", None)),
        "regen": _enum_value(getattr(request, "garment_type_to_regenerate", None)),
        "wardrobe": sorted(item.id for item in request_wardrobe(request)),
        "images": len(request_images(request)),
    }
    blob = json.dumps(parts, sort_keys=True, default=str).encode()
    return f"vision:{request.kind}:{hashlib.sha256(blob).hexdigest()}"


@dataclass
class CacheEntry:
    key: str
    payload: Dict[str, Any]
    created_at: float
    expires_at: float

    def expired(self, now: float) -> bool:
        return now > self.expires_at


class ResponseCache:
    def __init__(self, default_ttl_s: float = 300.0, *, clock: Clock = time.monotonic):
        self.default_ttl_s = default_ttl_s
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, request: BaseModel) -> Optional[Dict[str, Any]]:
        key = fingerprint(request)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            self._entries.pop(key, None)
            logger.info("cache:expired key=%s", key)
            return None
        # callers may mutate what they get back
        return copy.deepcopy(entry.payload)

    def set(self, request: BaseModel, payload: Dict[str, Any], ttl_s: Optional[float] = None) -> None:
        key = fingerprint(request)
        now = self._clock()
        ttl = self.default_ttl_s if ttl_s is None else ttl_s
        self._entries[key] = CacheEntry(
            key=key,
            payload=copy.deepcopy(payload),
            created_at=now,
            expires_at=now + ttl,
        )

    def invalidate(self, request: BaseModel) -> None:
        self._entries.pop(fingerprint(request), None)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        now = self._clock()
        stale = [k for k, e in self._entries.items() if e.expired(now)]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.info("cache:sweep removed=%s remaining=%s", len(stale), len(self._entries))
        return len(stale)

    async def run_sweeper(self, interval_s: float) -> None:
        """Sweep forever; meant to run as a background task and be cancelled."""
        while True:
            await asyncio.sleep(interval_s)
            self.sweep()


class InFlightRequests:
    """Coalesces concurrent calls that share a fingerprint into one."""

    def __init__(self) -> None:
        self._pending: Dict[str, asyncio.Future] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._pending

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        pending = self._pending.get(key)
        if pending is not None:
            logger.info("cache:coalesced key=%s", key)
            # shield so one waiter being cancelled does not cancel the shared call
            return await asyncio.shield(pending)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # mark retrieved when nobody else awaited it
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._pending.pop(key, None)
