"""Geometry helpers for building shading-pass input buffers.

These helpers stand in for the rasterizer of a host pipeline: they produce
per-pixel normals, texture coordinates and coverage for simple test scenes,
and the world-to-view rotation used by the matcap metalness.

Example:
    >>> from src.toonshade.pipeline.geometry import sphere_surface
    >>> surface = sphere_surface(64, 64)
    >>> surface.normals.shape
    (64, 64, 3)
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt


@dataclass
class SphereSurface:
    """Per-pixel buffers for an analytic sphere filling the image.

    Attributes:
        normals: Unit normals of shape (H, W, 3). Pixels outside the sphere
            hold (0, 0, 1).
        uvs: Spherical texture coordinates of shape (H, W, 2).
        mask: Coverage of shape (H, W): 1 inside the sphere, 0 outside.
    """

    normals: npt.NDArray[np.float32]
    uvs: npt.NDArray[np.float32]
    mask: npt.NDArray[np.float32]


def sphere_surface(width: int, height: int, radius: float = 0.9) -> SphereSurface:
    """Rasterize a view-facing sphere centered in the image.

    The sphere is seen along -z, so the normal at the image center is
    (0, 0, 1). Image row 0 is the top of the sphere.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        radius: Sphere radius relative to the half-extent of the shorter
            image side, in (0, 1].

    Returns:
        The sphere's normals, UVs and coverage mask.

    Raises:
        ValueError: If the dimensions are not positive or radius is out of range.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if not 0.0 < radius <= 1.0:
        raise ValueError(f"Radius must be in (0, 1], got {radius}")

    aspect = width / height
    xs = (np.arange(width, dtype=np.float32) + 0.5) / width * 2.0 - 1.0
    ys = 1.0 - (np.arange(height, dtype=np.float32) + 0.5) / height * 2.0
    x, y = np.meshgrid(xs, ys)

    # Keep the sphere round on non-square images
    if aspect >= 1.0:
        x = x * aspect
    else:
        y = y / aspect
    x = x / radius
    y = y / radius

    r2 = x * x + y * y
    inside = r2 < 1.0
    z = np.sqrt(np.clip(1.0 - r2, 0.0, 1.0))

    normals = np.stack([x, y, z], axis=-1).astype(np.float32)
    normals[~inside] = (0.0, 0.0, 1.0)

    u = 0.5 + np.arctan2(normals[..., 0], normals[..., 2]) / (2.0 * math.pi)
    v = 0.5 + np.arcsin(np.clip(normals[..., 1], -1.0, 1.0)) / math.pi
    uvs = np.stack([u, v], axis=-1).astype(np.float32)
    uvs[~inside] = 0.0

    return SphereSurface(
        normals=normals,
        uvs=uvs,
        mask=inside.astype(np.float32),
    )


def look_at_rotation(
    eye: tuple[float, float, float],
    target: tuple[float, float, float],
    up: tuple[float, float, float] = (0.0, 1.0, 0.0),
) -> npt.NDArray[np.float32]:
    """Compute the world-to-view rotation for a camera.

    Builds the camera basis (u, v, w) with w pointing from the target back
    to the eye, so that in view space the camera looks along -z and a normal
    facing the camera is +z. The rows of the result are u, v, w.

    Args:
        eye: Camera position in world space.
        target: Point the camera looks at.
        up: Approximate up direction.

    Returns:
        A (3, 3) float32 rotation matrix.

    Raises:
        ValueError: If eye equals target or up is parallel to the view axis.
    """
    eye_v = np.asarray(eye, dtype=np.float64)
    target_v = np.asarray(target, dtype=np.float64)
    up_v = np.asarray(up, dtype=np.float64)

    w = eye_v - target_v
    w_len = np.linalg.norm(w)
    if w_len < 1e-8:
        raise ValueError("Camera eye and target must differ")
    w = w / w_len

    u = np.cross(up_v, w)
    u_len = np.linalg.norm(u)
    if u_len < 1e-8:
        raise ValueError("Camera up vector must not be parallel to the view direction")
    u = u / u_len

    v = np.cross(w, u)
    return np.stack([u, v, w]).astype(np.float32)
