"""Client-side image normalization for inline transmission.

Processing flow:
    1. Open the source (path, bytes or binary file object) with Pillow.
    2. Apply EXIF orientation and convert to RGB.
    3. Scale down so the longest edge is at most `MAX_IMAGE_DIMENSION`
       (never upscale; aspect ratio preserved; each edge at least 1 px).
    4. Encode JPEG at descending qualities and accept the first result within
       `MAX_ENCODED_BYTES`; otherwise fall back to `FALLBACK_QUALITY`.

Size validation:
    - The byte budget applies to the decoded JPEG size (what the data URL carries
      once base64-decoded).
    - The fallback quality is accepted even if it is still over budget; the
      request-size guard in the caller catches anything truly oversized.

Error handling strategy:
    - Undecodable or non-image input raises `ImageProcessingError`, whose message
      is safe to show to users. Other slots and inputs are unaffected.
"""

import base64
import io
import logging
import mimetypes
import os
from typing import BinaryIO, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from prompt_architect.core.errors import ImageProcessingError
from prompt_architect.core.prompt_types import EncodedImage


logger = logging.getLogger(__name__)


MAX_IMAGE_DIMENSION = 1600
MAX_ENCODED_BYTES = 800 * 1024
QUALITY_STEPS = (85, 75, 65, 55, 45)
FALLBACK_QUALITY = 40
OUTPUT_MIME_TYPE = "image/jpeg"

ImageSource = Union[str, os.PathLike, bytes, BinaryIO]


def _open(source: ImageSource) -> Image.Image:
    if isinstance(source, (str, os.PathLike)):
        guessed, _ = mimetypes.guess_type(os.fspath(source))
        if guessed and not guessed.startswith("image/"):
            raise ImageProcessingError("Only image files are supported.")
    elif isinstance(source, bytes):
        source = io.BytesIO(source)

    try:
        # Pillow opens and closes path sources itself.
        image = Image.open(source)
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        logger.warning("Image decode failed: %s", exc)
        raise ImageProcessingError()

    return image


def target_size(width: int, height: int, max_dimension: int = MAX_IMAGE_DIMENSION) -> tuple[int, int]:
    """Scale `(width, height)` down to fit `max_dimension`; never up."""
    scale = min(1.0, max_dimension / max(width, height))
    return max(1, round(width * scale)), max(1, round(height * scale))


def _encode(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def normalize_image(
    source: ImageSource,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    max_bytes: int = MAX_ENCODED_BYTES,
) -> EncodedImage:
    """Downsize and re-encode an image to a size-bounded JPEG.

    Args:
        source: Path, raw bytes or binary file object.
        max_dimension: Longest-edge limit in pixels.
        max_bytes: Encoded byte budget.

    Returns:
        `EncodedImage` with `image/jpeg` mime type and base64 payload.

    Raises:
        ImageProcessingError: Input cannot be decoded as an image.
    """
    image = _open(source)

    try:
        image = ImageOps.exif_transpose(image)
        if image.mode != "RGB":
            image = image.convert("RGB")

        size = target_size(image.width, image.height, max_dimension)
        if size != image.size:
            image = image.resize(size, Image.Resampling.LANCZOS)

        encoded = None
        for quality in QUALITY_STEPS:
            candidate = _encode(image, quality)
            if len(candidate) <= max_bytes:
                encoded = candidate
                break

        if encoded is None:
            logger.info("Image over budget at all quality steps; using quality %d", FALLBACK_QUALITY)
            encoded = _encode(image, FALLBACK_QUALITY)
    except (OSError, ValueError) as exc:
        logger.warning("Image re-encode failed: %s", exc)
        raise ImageProcessingError()

    return EncodedImage(
        mime_type=OUTPUT_MIME_TYPE,
        data=base64.b64encode(encoded).decode("ascii"),
    )
