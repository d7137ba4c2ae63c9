"""Material parameters for the stylized shading model.

MaterialParameters is the host-side, immutable bundle of per-draw material
settings. It is validated and clamped once on construction so that the
Taichi-side shading functions can assume in-range inputs.

Recognized parameters and defaults:
    base_color       RGBA  (1, 1, 1, 1)
    roughness        [0, 1] 0.5
    metallic         [0, 1] 0.0
    subsurface       [0, 1] 0.0
    subsurface_tint  RGB   (1, 1, 1)
    wrap_value       [0, 1] 0.5
    sheen_intensity  [0, 1] 0.0
    sheen_color      RGB   (1, 1, 1)
    emission_color   RGB   (0, 0, 0)

Example:
    >>> from src.toonshade.material.parameters import MaterialParameters
    >>> params = MaterialParameters(roughness=0.3, metallic=0.5)
    >>> params.to_dict()["roughness"]
    0.3
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

# Roughness is clamped away from zero before use (the NDF divides by r^2)
MIN_ROUGHNESS = 1e-2

# Number of floats produced by MaterialParameters.pack()
MATERIAL_PACK_SIZE = 18

_SCALAR_FIELDS = (
    "roughness",
    "metallic",
    "subsurface",
    "wrap_value",
    "sheen_intensity",
)

_COLOR_FIELDS = {
    "base_color": 4,
    "subsurface_tint": 3,
    "sheen_color": 3,
    "emission_color": 3,
}


def _clamp_unit(name: str, value: float) -> float:
    clamped = min(max(value, 0.0), 1.0)
    if clamped != value:
        logger.warning("Material parameter %s=%s clamped to %s", name, value, clamped)
    return clamped


def _check_scalar(name: str, value: Any) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Material parameter {name} must be a number, got {value!r}") from exc
    if not math.isfinite(value):
        raise ValueError(f"Material parameter {name} must be finite, got {value}")
    return _clamp_unit(name, value)


def _check_color(name: str, value: Any, size: int) -> tuple[float, ...]:
    """Validate a color, clamping each channel to [0, 1].

    An RGB value is accepted for base_color and gets alpha = 1.
    """
    try:
        components = [float(c) for c in value]
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Material parameter {name} must be a sequence of numbers, got {value!r}"
        ) from exc

    if size == 4 and len(components) == 3:
        components.append(1.0)
    if len(components) != size:
        raise ValueError(
            f"Material parameter {name} must have {size} components, got {len(components)}"
        )

    for i, component in enumerate(components):
        if not math.isfinite(component):
            raise ValueError(f"Material parameter {name}[{i}] must be finite, got {component}")

    return tuple(_clamp_unit(f"{name}[{i}]", c) for i, c in enumerate(components))


@dataclass(frozen=True)
class MaterialParameters:
    """Per-draw material settings.

    Attributes:
        base_color: Base color tint (RGBA) multiplied with the albedo sample.
        roughness: Specular roughness in [0, 1]. Larger values broaden the
            Beckmann highlight.
        metallic: Blend between the plain base color (0) and the
            matcap-darkened base color (1).
        subsurface: Strength of the wrap-lighting subsurface term.
        subsurface_tint: Color of the subsurface term (RGB).
        wrap_value: How far light wraps around the terminator, in [0, 1].
        sheen_intensity: Strength of the grazing-angle fabric sheen.
        sheen_color: Color of the sheen term (RGB).
        emission_color: Emission tint (RGB) multiplied with the emission sample.
    """

    base_color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    roughness: float = 0.5
    metallic: float = 0.0
    subsurface: float = 0.0
    subsurface_tint: tuple[float, float, float] = (1.0, 1.0, 1.0)
    wrap_value: float = 0.5
    sheen_intensity: float = 0.0
    sheen_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    emission_color: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        """Validate types and clamp every value into its recognized range."""
        # Frozen dataclass: write through object.__setattr__
        for name in _SCALAR_FIELDS:
            object.__setattr__(self, name, _check_scalar(name, getattr(self, name)))
        for name, size in _COLOR_FIELDS.items():
            object.__setattr__(self, name, _check_color(name, getattr(self, name), size))

    @property
    def effective_roughness(self) -> float:
        """Roughness clamped away from zero, as used by the NDF."""
        return max(self.roughness, MIN_ROUGHNESS)

    @classmethod
    def from_dict(cls, cfg: dict[str, Any]) -> MaterialParameters:
        """Create MaterialParameters from a dictionary.

        Missing keys take their defaults.

        Raises:
            ValueError: If the dictionary has unknown keys or malformed values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(cfg) - known)
        if unknown:
            raise ValueError(f"Unknown material parameters: {', '.join(unknown)}")
        return cls(**cfg)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in asdict(self).items()
        }

    def pack(self) -> npt.NDArray[np.float32]:
        """Flatten the parameters into a float32 array for Taichi kernels.

        Layout (see material.uniforms.unpack_material):
            [0:4] base_color, [4:7] emission_color, [7:10] subsurface_tint,
            [10:13] sheen_color, [13] effective roughness, [14] metallic,
            [15] subsurface, [16] wrap_value, [17] sheen_intensity
        """
        packed = np.array(
            [
                *self.base_color,
                *self.emission_color,
                *self.subsurface_tint,
                *self.sheen_color,
                self.effective_roughness,
                self.metallic,
                self.subsurface,
                self.wrap_value,
                self.sheen_intensity,
            ],
            dtype=np.float32,
        )
        return packed


def load_material(filepath: str | Path) -> MaterialParameters:
    """Load material parameters from a JSON file.

    Args:
        filepath: Path to a JSON object with MaterialParameters keys.

    Returns:
        The parsed MaterialParameters.

    Raises:
        ValueError: If the file does not contain a JSON object, or the object
            has unknown keys or malformed values.
    """
    path = Path(filepath)
    with path.open("r", encoding="utf-8") as f:
        cfg = json.load(f)
    if not isinstance(cfg, dict):
        raise ValueError(f"Material file {path} must contain a JSON object")
    logger.debug("Loaded material from %s", path)
    return MaterialParameters.from_dict(cfg)


def save_material(params: MaterialParameters, filepath: str | Path) -> None:
    """Write material parameters to a JSON file."""
    path = Path(filepath)
    with path.open("w", encoding="utf-8") as f:
        json.dump(params.to_dict(), f, indent=2)
    logger.info("Saved material to %s", path)
