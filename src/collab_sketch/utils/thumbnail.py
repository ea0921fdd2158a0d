"""
Reference image thumbnails attached to shared and saved maps
"""

import io
import logging

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


def make_thumbnail(image: np.ndarray, max_size: int = 320, quality: int = 70) -> bytes:
    """
    Downscale a captured view image and encode it as JPEG

    Args:
        image: HxWx3 (RGB) or HxW (grayscale) array, uint8 or float in [0, 1]
        max_size: longest edge of the thumbnail in pixels
        quality: JPEG quality
    """
    array = np.asarray(image)
    if array.ndim not in (2, 3) or (array.ndim == 3 and array.shape[2] not in (3, 4)):
        raise ValueError(f"Unsupported image shape {array.shape}")
    if array.size == 0:
        raise ValueError("Image is empty")

    if array.dtype != np.uint8:
        array = (np.clip(array, 0.0, 1.0) * 255).astype(np.uint8)

    img = Image.fromarray(array)
    if img.mode != "RGB":
        img = img.convert("RGB")
    img.thumbnail((max_size, max_size))

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=quality)
    data = buffer.getvalue()

    logger.debug(f"Thumbnail {img.size[0]}x{img.size[1]} encoded to {len(data)} bytes")
    return data


def load_thumbnail(data: bytes) -> Image.Image:
    """Decode thumbnail bytes for display"""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img
