"""Preview module for shaded image output.

Components:
    export: uint8 conversion and PNG export via Pillow

Example:
    >>> from src.toonshade.preview import save_png
    >>> save_png(shading.get_image_numpy(), "output.png")
"""

from src.toonshade.preview.export import image_to_uint8, save_png

__all__ = [
    "image_to_uint8",
    "save_png",
]
