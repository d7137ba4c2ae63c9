"""Image export utilities for shaded images.

This module converts the linear RGBA output of a ShadingPass into 8-bit
images and saves them with Pillow. Values are only clamped to [0, 1];
color-space conversion and tone mapping are left to the host pipeline.

Supported formats:
    - PNG (8-bit RGB or RGBA via Pillow)

Example:
    >>> from src.toonshade.preview.export import save_png
    >>> image = shading.get_image_numpy()  # (H, W, 4)
    >>> save_png(image, "sphere.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.floating],
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8.

    Args:
        image: Image array of shape (H, W, 3) or (H, W, 4).

    Returns:
        Image array of the same shape with dtype uint8. NaN maps to 0.

    Raises:
        ValueError: If the image does not have 3 or 4 channels.
    """
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Image must have shape (H, W, 3) or (H, W, 4), got {image.shape}")

    clamped = np.clip(np.nan_to_num(image.astype(np.float32), nan=0.0), 0.0, 1.0)
    return np.round(clamped * 255.0).astype(np.uint8)


def save_png(
    image: npt.NDArray[np.floating],
    filepath: str | Path,
    *,
    keep_alpha: bool = True,
) -> None:
    """Save a linear float image as a PNG file.

    Args:
        image: Image array of shape (H, W, 3) or (H, W, 4).
        filepath: Output file path (should end in .png).
        keep_alpha: Write an RGBA PNG when the image has an alpha channel.
            When False, the alpha channel is dropped.

    Raises:
        ValueError: If the image does not have 3 or 4 channels.
    """
    image_uint8 = image_to_uint8(image)
    if image_uint8.shape[2] == 4 and not keep_alpha:
        image_uint8 = np.ascontiguousarray(image_uint8[..., :3])

    mode = "RGBA" if image_uint8.shape[2] == 4 else "RGB"
    # Pillow infers RGB or RGBA from the channel count
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)
    logger.info("Saved %dx%d %s image to %s", image_uint8.shape[1], image_uint8.shape[0], mode, filepath)
