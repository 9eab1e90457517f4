from __future__ import annotations

from typing import List, Protocol

from tailor.llm.types import PreparedImage


class VisionProvider(Protocol):
    async def complete(self, images: List[PreparedImage], prompt: str) -> str:
        """Send one request and return the reply's single text block."""
        ...
