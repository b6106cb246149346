"""Utility functions for deriving thumbnails from uploaded images"""

import io

from PIL import Image, UnidentifiedImageError

DEFAULT_FORMAT = "PNG"


class InvalidImage(ValueError):
    pass


def create_thumbnail(image_data: bytes, width: int) -> bytes:
    """
    Resize an image to the given width, keeping its aspect ratio and its format.
    Returns the encoded thumbnail.
    """
    img = _load_image_from_bytes(image_data)
    format = img.format or DEFAULT_FORMAT
    thumbnail = _resize_to_width(img, width)
    return _encode(thumbnail, format)


def _load_image_from_bytes(image_data: bytes) -> Image.Image:
    """Loads an image from raw binary data into a PIL Image object."""
    try:
        img = Image.open(io.BytesIO(image_data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImage(f"Cannot read image: {e}") from e
    return img


def _resize_to_width(img: Image.Image, width: int) -> Image.Image:
    height = max(1, round(img.height * width / img.width))
    return img.resize((width, height), Image.Resampling.LANCZOS)


def _encode(img: Image.Image, format: str) -> bytes:
    # JPEG cannot store transparency or palettes
    if format == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    output_buffer = io.BytesIO()
    img.save(output_buffer, format=format)
    return output_buffer.getvalue()
