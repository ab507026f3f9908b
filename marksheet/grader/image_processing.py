"""
Image Processing Module
Handles page loading and binarization with guide-line filtering
"""
import cv2
import numpy as np
from typing import Optional, Union
from pathlib import Path
import logging

from ..core.constants import (
    INK_LEVEL,
    LUMA_WEIGHTS,
    PINK_MAX_BLUE,
    PINK_MIN_GREEN,
    PINK_MIN_RED,
    PINK_MIN_RED_BLUE_GAP,
)

logger = logging.getLogger(__name__)

INK = 0
BACKGROUND = 255


def to_rgba(img: np.ndarray) -> np.ndarray:
    """
    Normalize a page to an opaque-capable RGBA uint8 array.

    Args:
        img: Grayscale (H, W), RGB (H, W, 3) or RGBA (H, W, 4) array

    Returns:
        (H, W, 4) uint8 array
    """
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_RGB2RGBA)
    return img


def guide_line_mask(pixels: np.ndarray) -> np.ndarray:
    """
    Find pixels in the pink/red cast of printed guide lines.

    Args:
        pixels: RGB or RGBA page

    Returns:
        Boolean (H, W) mask, True where the pixel is guide-line colored
    """
    rgb = pixels[..., :3].astype(np.int16)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    return (
        (r > PINK_MIN_RED)
        & (g > PINK_MIN_GREEN)
        & (b < PINK_MAX_BLUE)
        & (r - b > PINK_MIN_RED_BLUE_GAP)
    )


def binarize(pixels: np.ndarray, threshold: int = 128) -> np.ndarray:
    """
    Classify every pixel as ink or background.

    Guide-line colored pixels are forced to background before the
    brightness test, so pink printing never reads as a filled bubble.
    Everything else is ink when its luma is below ``threshold``.

    Args:
        pixels: RGBA (or RGB) page; alpha is ignored
        threshold: Luma threshold 0-255

    Returns:
        RGBA uint8 array of the same size: ink pixels are black,
        background pixels white, alpha always 255
    """
    pixels = to_rgba(pixels)
    # luma < threshold, scaled by 1000 to stay in exact integers
    rgb = pixels[..., :3].astype(np.int32)
    wr, wg, wb = LUMA_WEIGHTS
    luma = wr * rgb[..., 0] + wg * rgb[..., 1] + wb * rgb[..., 2]

    ink = (luma < threshold * 1000) & ~guide_line_mask(pixels)

    out = np.full(pixels.shape[:2] + (4,), BACKGROUND, dtype=np.uint8)
    out[ink, :3] = INK
    return out


def ink_mask(buffer: np.ndarray) -> np.ndarray:
    """Boolean (H, W) mask of ink pixels in a binarized buffer"""
    if buffer.ndim == 2:
        return buffer < INK_LEVEL
    return buffer[..., 0] < INK_LEVEL


def decode_image_bytes(data: bytes) -> Optional[np.ndarray]:
    """
    Decode an encoded image (PNG, JPEG, ...) into an RGBA page.

    Returns:
        RGBA array or None if the bytes are not a readable image
    """
    raw = np.frombuffer(data, dtype=np.uint8)
    if raw.size == 0:
        return None
    img = cv2.imdecode(raw, cv2.IMREAD_COLOR)
    if img is None:
        return None
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)


def load_image(path: Union[str, Path]) -> Optional[np.ndarray]:
    """
    Load a rasterized page from file.

    Args:
        path: Path to image file

    Returns:
        RGBA array or None if loading fails
    """
    img = cv2.imread(str(path), cv2.IMREAD_COLOR)

    if img is None:
        logger.warning(f"Failed to load image: {path}")
        return None

    return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
