"""Material samplers: the texture-sampling collaborator of the shading core.

The shading functions never sample textures themselves. The host looks up
each material channel through a MaterialSampler and hands the already-sampled
colors to the Taichi kernels.

Filtering and mip selection are outside the scope of this module;
ImageSampler performs nearest-texel lookup only.

Example:
    >>> import numpy as np
    >>> from src.toonshade.material.sampler import ConstantSampler, MaterialChannel
    >>> sampler = ConstantSampler(albedo=(0.8, 0.2, 0.2))
    >>> uvs = np.zeros((4, 4, 2), dtype=np.float32)
    >>> sampler.sample(MaterialChannel.ALBEDO, uvs).shape
    (4, 4, 3)
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Protocol

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


class MaterialChannel(enum.Enum):
    """Texture channels the shading pass can request."""

    ALBEDO = "albedo"
    EMISSION = "emission"


# Colors returned for channels that have no texture
DEFAULT_CHANNEL_COLORS = {
    MaterialChannel.ALBEDO: (1.0, 1.0, 1.0),
    MaterialChannel.EMISSION: (0.0, 0.0, 0.0),
}


class MaterialSampler(Protocol):
    """Anything that can look up an RGB color for a channel at given UVs."""

    def sample(
        self, channel: MaterialChannel, uv: npt.ArrayLike
    ) -> npt.NDArray[np.float32]:
        """Sample a channel.

        Args:
            channel: The material channel to look up.
            uv: Texture coordinates with shape (..., 2).

        Returns:
            RGB colors with shape (..., 3).
        """
        ...


def _check_channel(channel: MaterialChannel) -> MaterialChannel:
    if not isinstance(channel, MaterialChannel):
        raise KeyError(f"Unknown material channel: {channel!r}")
    return channel


def _as_uv(uv: npt.ArrayLike) -> npt.NDArray[np.float32]:
    uv = np.asarray(uv, dtype=np.float32)
    if uv.shape[-1:] != (2,):
        raise ValueError(f"UV array must have shape (..., 2), got {uv.shape}")
    if not np.all(np.isfinite(uv)):
        raise ValueError("UV array must contain only finite values")
    return uv


class ConstantSampler:
    """Sampler returning one fixed color per channel, independent of UV."""

    def __init__(
        self,
        albedo: tuple[float, float, float] = DEFAULT_CHANNEL_COLORS[MaterialChannel.ALBEDO],
        emission: tuple[float, float, float] = DEFAULT_CHANNEL_COLORS[MaterialChannel.EMISSION],
    ) -> None:
        self._colors = {
            MaterialChannel.ALBEDO: np.asarray(albedo, dtype=np.float32),
            MaterialChannel.EMISSION: np.asarray(emission, dtype=np.float32),
        }

    def sample(
        self, channel: MaterialChannel, uv: npt.ArrayLike
    ) -> npt.NDArray[np.float32]:
        color = self._colors[_check_channel(channel)]
        uv = _as_uv(uv)
        return np.broadcast_to(color, uv.shape[:-1] + (3,)).copy()


class ImageSampler:
    """Nearest-texel sampler over in-memory images.

    Texture coordinates wrap (repeat addressing). v = 0 is the bottom row of
    the image, matching the usual UV convention.

    Attributes:
        channels: The channels backed by an image. Other channels return
            their default color.
    """

    def __init__(
        self, images: dict[MaterialChannel, npt.ArrayLike]
    ) -> None:
        """Initialize the sampler.

        Args:
            images: Mapping of channel to an image array of shape (H, W, 3)
                with float values in [0, 1].

        Raises:
            KeyError: If a key is not a MaterialChannel.
            ValueError: If an image does not have shape (H, W, 3).
        """
        self._images: dict[MaterialChannel, npt.NDArray[np.float32]] = {}
        for channel, image in images.items():
            image = np.asarray(image, dtype=np.float32)
            if image.ndim != 3 or image.shape[2] != 3 or image.shape[0] == 0 or image.shape[1] == 0:
                raise ValueError(
                    f"Image for channel {channel} must have shape (H, W, 3), got {image.shape}"
                )
            self._images[_check_channel(channel)] = image

    @property
    def channels(self) -> frozenset[MaterialChannel]:
        return frozenset(self._images)

    @classmethod
    def from_files(
        cls,
        albedo: str | Path | None = None,
        emission: str | Path | None = None,
    ) -> ImageSampler:
        """Load 8-bit images with Pillow.

        Args:
            albedo: Path to the albedo texture, if any.
            emission: Path to the emission texture, if any.

        Returns:
            An ImageSampler over the loaded images.
        """
        images = {}
        for channel, path in (
            (MaterialChannel.ALBEDO, albedo),
            (MaterialChannel.EMISSION, emission),
        ):
            if path is None:
                continue
            with PILImage.open(path) as pil_image:
                rgb = np.asarray(pil_image.convert("RGB"), dtype=np.float32) / 255.0
            images[channel] = rgb
        return cls(images)

    def sample(
        self, channel: MaterialChannel, uv: npt.ArrayLike
    ) -> npt.NDArray[np.float32]:
        channel = _check_channel(channel)
        uv = _as_uv(uv)

        image = self._images.get(channel)
        if image is None:
            color = np.asarray(DEFAULT_CHANNEL_COLORS[channel], dtype=np.float32)
            return np.broadcast_to(color, uv.shape[:-1] + (3,)).copy()

        height, width = image.shape[:2]
        # Repeat addressing
        u = uv[..., 0] - np.floor(uv[..., 0])
        v = uv[..., 1] - np.floor(uv[..., 1])
        x = np.minimum((u * width).astype(np.int64), width - 1)
        y = np.minimum(((1.0 - v) * height).astype(np.int64), height - 1)
        return image[y, x]
