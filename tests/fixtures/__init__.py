from .vision_fixtures import (
    FakeProvider,
    RecordingSleep,
    blazer,
    wardrobe_reply,
    write_image,
    image_bytes,
)

__all__ = [
    "FakeProvider",
    "RecordingSleep",
    "blazer",
    "wardrobe_reply",
    "write_image",
    "image_bytes",
]
