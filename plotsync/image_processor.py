"""Compress plot photos into the data URIs stored on the image queue."""
import base64
import binascii
import re
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from plotsync import settings
from plotsync.logging_conf import logger

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w.+-]+=[^;,]*)*);base64,(?P<data>.*)$", re.DOTALL)


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URI into its media type and decoded bytes.

    Example: "data:image/jpeg;base64,Zm9v" -> ("image/jpeg", b"foo")

    Raises:
        ValueError if the string is not a base64 data URI
    """
    match = _DATA_URL_RE.match(data_url or "")
    if not match:
        raise ValueError("Not a base64 data URI")
    try:
        content = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return match.group("mime") or "text/plain", content


def to_data_url(content: bytes, mime_type: str = "image/jpeg") -> str:
    """Encode bytes as a self-describing base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


def compress_to_jpeg(img: Image.Image, quality: int = 75) -> bytes:
    """Compress PIL Image to JPEG bytes.

    Args:
        img: PIL Image to compress
        quality: JPEG quality (1-100)

    Returns:
        JPEG image as bytes
    """
    buffer = BytesIO()
    img.save(buffer, format="JPEG", quality=quality, optimize=True, progressive=True)
    return buffer.getvalue()


class ImageProcessor:
    """Shrinks and re-encodes captured photos before they are queued."""

    def __init__(self, max_dimension: Optional[int] = None, quality: Optional[int] = None):
        self.max_dimension = max_dimension or settings.IMAGE_MAX_DIMENSION
        self.quality = quality or settings.IMAGE_JPEG_QUALITY

    def prepare(self, content: bytes) -> str:
        """
        Compress raw image bytes and return a JPEG data URI.

        Args:
            content: Image file contents in any format Pillow can read

        Returns:
            "data:image/jpeg;base64,..." ready for ImageUploadQueue.enqueue_image

        Raises:
            ValueError if the bytes are not a readable image
        """
        try:
            with Image.open(BytesIO(content)) as img:
                img.load()
                img = ImageOps.exif_transpose(img)
                original_size = img.size
                img = self._to_rgb(img)
                img.thumbnail((self.max_dimension, self.max_dimension))
                jpeg = compress_to_jpeg(img, self.quality)
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Unreadable image: {e}") from e

        logger.info(
            f"Compressed image {original_size[0]}x{original_size[1]} -> "
            f"{img.size[0]}x{img.size[1]} ({len(content)} -> {len(jpeg)} bytes)"
        )
        return to_data_url(jpeg, "image/jpeg")

    def _to_rgb(self, img: Image.Image) -> Image.Image:
        """Flatten transparency onto white; JPEG has no alpha channel."""
        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        if img.mode != "RGB":
            return img.convert("RGB")
        return img
