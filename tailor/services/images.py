import asyncio
import base64
import binascii
import io
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union
from urllib.parse import unquote, unquote_to_bytes, urlparse

import httpx
from PIL import Image, ImageOps

from tailor.core.config import settings
from tailor.core.errors import NoUsableImageError
from tailor.llm.types import EncodedImage, ImageRef, PreparedImage

logger = logging.getLogger("uvicorn.error")


class ImageRejected(ValueError):
    pass


def _decode_data_uri(uri: str) -> bytes:
    header, _, payload = uri.partition(",")
    if not payload:
        raise ImageRejected("empty data uri")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ImageRejected(f"bad base64 payload: {e}") from e
    return unquote_to_bytes(payload)


class ImagePreprocessor:
    """Turns heterogeneous image inputs into bounded JPEG payloads.

    Each reference is resolved, downsized so neither side exceeds
    ``max_side``, re-encoded as JPEG and checked against the width/height
    bounds. Pre-encoded payloads are forwarded untouched.
    """

    def __init__(
        self,
        *,
        max_side: int = settings.IMAGE_MAX_SIDE,
        max_width: int = settings.IMAGE_MAX_WIDTH,
        max_height: int = settings.IMAGE_MAX_HEIGHT,
        jpeg_quality: int = settings.IMAGE_JPEG_QUALITY,
        fetch_timeout_s: float = settings.IMAGE_FETCH_TIMEOUT_S,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.max_side = max_side
        self.max_width = max_width
        self.max_height = max_height
        self.jpeg_quality = jpeg_quality
        self.fetch_timeout_s = fetch_timeout_s
        self._http = http_client

    async def prepare(self, images: Sequence[Union[EncodedImage, ImageRef]]) -> List[PreparedImage]:
        if not images:
            return []
        results = await asyncio.gather(*(self._prepare_one(i, img) for i, img in enumerate(images)))
        usable = [r for r in results if r is not None]
        if not usable:
            raise NoUsableImageError(f"none of the {len(images)} images could be used")
        if len(usable) < len(images):
            logger.info("images:prepared usable=%s dropped=%s", len(usable), len(images) - len(usable))
        return usable

    async def _prepare_one(self, index: int, image: Union[EncodedImage, ImageRef]) -> Optional[PreparedImage]:
        try:
            if isinstance(image, EncodedImage):
                if not image.data:
                    raise ImageRejected("empty payload")
                return PreparedImage(data=image.data, media_type=image.media_type)
            raw = await self._load(image.uri)
            return await asyncio.to_thread(self._encode, raw)
        except Exception as e:
            logger.warning("images:dropped index=%s reason=%s", index, e)
            return None

    async def _load(self, uri: str) -> bytes:
        if uri.startswith("data:"):
            return _decode_data_uri(uri)
        parsed = urlparse(uri)
        if parsed.scheme in ("http", "https"):
            return await self._fetch(uri)
        if parsed.scheme == "file":
            path = Path(unquote(parsed.path))
        elif parsed.scheme in ("", None) or len(parsed.scheme) == 1:
            # bare paths; single-letter schemes are windows drive letters
            path = Path(uri)
        else:
            raise ImageRejected(f"unsupported uri scheme: {parsed.scheme}")
        return await asyncio.to_thread(path.read_bytes)

    async def _fetch(self, url: str) -> bytes:
        if self._http is not None:
            resp = await self._http.get(url, timeout=self.fetch_timeout_s)
            resp.raise_for_status()
            return resp.content
        async with httpx.AsyncClient(timeout=self.fetch_timeout_s, follow_redirects=True) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.content

    def _encode(self, raw: bytes) -> PreparedImage:
        with Image.open(io.BytesIO(raw)) as im:
            im = ImageOps.exif_transpose(im)
            im = im.convert("RGB")
            im.thumbnail((self.max_side, self.max_side))
            w, h = im.size
            if w <= 0 or h <= 0 or w > self.max_width or h > self.max_height:
                raise ImageRejected(f"dimensions out of bounds: {w}x{h}")
            buf = io.BytesIO()
            im.save(buf, format="JPEG", quality=self.jpeg_quality, optimize=True)
        return PreparedImage(
            data=base64.b64encode(buf.getvalue()).decode(),
            media_type="image/jpeg",
            width=w,
            height=h,
        )
