"""Screen capture payload validation and data-URL encoding."""

from __future__ import annotations

import base64
import io
import logging

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

logger = logging.getLogger("dv.vision.payload")

MAX_BASE64_BYTES = 4 * 1024 * 1024
REENCODE_QUALITY = 70
DEFAULT_MIME_TYPE = "image/png"


class InvalidPayloadError(ValueError):
    """Capture payload is missing or too small to be an image."""


class ImagePayload(BaseModel):
    """Base64 image body plus its mime type, ready for a vision request."""

    mime_type: str
    base64_data: str
    original_bytes: int
    reencoded: bool = False

    @classmethod
    def from_bytes(
        cls,
        data: bytes | None,
        mime_type: str | None = DEFAULT_MIME_TYPE,
        min_bytes: int = 100,
    ) -> ImagePayload:
        """Validate raw capture bytes and shrink oversize images.

        Raises:
            InvalidPayloadError: when ``data`` is empty or below ``min_bytes``.
        """
        if not data or len(data) < min_bytes:
            raise InvalidPayloadError(
                f"Invalid image data: expected at least {min_bytes} bytes, got {len(data or b'')}"
            )
        mime = mime_type or DEFAULT_MIME_TYPE
        encoded = base64.b64encode(data).decode("ascii")
        if len(encoded) <= MAX_BASE64_BYTES:
            return cls(mime_type=mime, base64_data=encoded, original_bytes=len(data))

        logger.warning("Capture is %d bytes base64; re-encoding as JPEG", len(encoded))
        try:
            shrunk = _reencode_jpeg(data)
        except (OSError, UnidentifiedImageError) as exc:
            logger.warning("JPEG re-encode failed, sending original image: %s", exc)
            return cls(mime_type=mime, base64_data=encoded, original_bytes=len(data))
        return cls(
            mime_type="image/jpeg",
            base64_data=base64.b64encode(shrunk).decode("ascii"),
            original_bytes=len(data),
            reencoded=True,
        )

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"

    def as_content_part(self) -> dict[str, object]:
        """OpenAI-style ``image_url`` message part."""
        return {"type": "image_url", "image_url": {"url": self.data_url}}


def _reencode_jpeg(data: bytes) -> bytes:
    with Image.open(io.BytesIO(data)) as image:
        buffer = io.BytesIO()
        image.convert("RGB").save(buffer, format="JPEG", quality=REENCODE_QUALITY)
    return buffer.getvalue()
