"""
Fakes and sample data for the vision pipeline tests.
Nothing here touches the network.
"""
import io
import json
from pathlib import Path
from typing import Any, Dict, List

from PIL import Image

from tailor.llm.types import WardrobeItemRef


class FakeProvider:
    """Replays scripted replies; exceptions in the script are raised."""

    def __init__(self, *replies: Any):
        self.replies: List[Any] = list(replies)
        self.calls: List[tuple] = []

    async def complete(self, images, prompt: str) -> str:
        self.calls.append((list(images), prompt))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def blazer() -> WardrobeItemRef:
    return WardrobeItemRef(id="w1", category="Blazer", color="navy", material="wool", pattern="solid", size="40R")


def wardrobe_reply(**overrides: Any) -> str:
    body: Dict[str, Any] = {
        "analysis": "A navy blazer anchors a business casual look.",
        "completeOutfit": [
            {"garmentType": "Blazer", "description": "Navy wool blazer", "existingItem": "w1"},
            {
                "garmentType": "Loafers",
                "description": "Brown suede loafers",
                "existingItem": None,
                "shoppingKeywords": ["brown suede loafers"],
                "colors": ["brown"],
            },
        ],
    }
    body.update(overrides)
    return json.dumps(body)


def write_image(path: Path, size=(64, 48), color=(30, 60, 200), fmt="PNG") -> Path:
    Image.new("RGB", size, color).save(path, format=fmt)
    return path


def image_bytes(size=(64, 48), color=(200, 40, 40), fmt="PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()
