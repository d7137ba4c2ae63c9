#!/usr/bin/env python3
"""Shade a sphere with the stylized shading model.

This script demonstrates end-to-end use of the shading pass: it rasterizes an
analytic sphere, prepares the surface from a material (optionally loaded from
JSON, optionally textured), evaluates a key light and a dimmer back light, and
saves the result as a PNG.

Usage:
    python -m examples.render_toon_sphere [options]

Options:
    --width WIDTH       Image width in pixels (default: 512)
    --height HEIGHT     Image height in pixels (default: 512)
    --material PATH     JSON file with material parameters
    --texture PATH      Albedo texture mapped onto the sphere
    --policy POLICY     Composition policy: diffuse_only or full (default: full)
    --output OUTPUT     Output file path (default: toon_sphere.png)
    --quiet             Suppress progress output

Example:
    python -m examples.render_toon_sphere --policy full --output sphere.png
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti

# Key light from the upper left, rim light from behind
KEY_LIGHT_DIRECTION = (-0.4, 0.6, 0.7)
KEY_LIGHT_COLOR = (1.0, 0.96, 0.9)
BACK_LIGHT_DIRECTION = (0.3, 0.2, -0.9)
BACK_LIGHT_COLOR = (0.35, 0.4, 0.6)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Shade a sphere with the stylized shading model.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=512,
        help="Image width in pixels (default: 512)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=512,
        help="Image height in pixels (default: 512)",
    )
    parser.add_argument(
        "--material",
        type=str,
        default=None,
        help="JSON file with material parameters",
    )
    parser.add_argument(
        "--texture",
        type=str,
        default=None,
        help="Albedo texture mapped onto the sphere",
    )
    parser.add_argument(
        "--policy",
        type=str,
        default="full",
        help="Composition policy: diffuse_only or full (default: full)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="toon_sphere.png",
        help="Output file path (default: toon_sphere.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_toon_sphere(
    width: int = 512,
    height: int = 512,
    material_path: str | None = None,
    texture_path: str | None = None,
    policy: str = "full",
    output_path: str = "toon_sphere.png",
    quiet: bool = False,
) -> Path:
    """Shade the sphere and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        material_path: Optional JSON material file.
        texture_path: Optional albedo texture.
        policy: Composition policy name.
        output_path: Output file path (PNG).
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.toonshade.material.parameters import MaterialParameters, load_material
    from src.toonshade.material.sampler import ImageSampler
    from src.toonshade.pipeline.geometry import look_at_rotation, sphere_surface
    from src.toonshade.pipeline.shading_pass import ShadingPass
    from src.toonshade.preview.export import save_png

    if material_path is not None:
        material = load_material(material_path)
    else:
        material = MaterialParameters(
            base_color=(0.85, 0.45, 0.35, 1.0),
            roughness=0.35,
            metallic=0.25,
            subsurface=0.3,
            subsurface_tint=(0.9, 0.3, 0.2),
            wrap_value=0.5,
            sheen_intensity=0.4,
            sheen_color=(1.0, 0.9, 0.8),
        )

    if not quiet:
        print(f"Shading sphere ({width}x{height}, policy={policy})...")

    start_time = time.time()

    sphere = sphere_surface(width, height)
    shading = ShadingPass(width, height, material, policy)

    if texture_path is not None:
        sampler = ImageSampler.from_files(albedo=texture_path)
        shading.set_surface_from_sampler(sampler, sphere.uvs, sphere.normals, alpha=sphere.mask)
    else:
        shading.set_surface(sphere.normals, alpha=sphere.mask)

    shading.set_view(look_at_rotation((0.0, 0.0, 3.0), (0.0, 0.0, 0.0)))
    shading.prepare()
    shading.add_light(KEY_LIGHT_DIRECTION, color=KEY_LIGHT_COLOR)
    shading.add_light(BACK_LIGHT_DIRECTION, color=BACK_LIGHT_COLOR, attenuation=0.8)

    output_file = Path(output_path)
    save_png(shading.get_image_numpy(), output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_toon_sphere(
            width=args.width,
            height=args.height,
            material_path=args.material,
            texture_path=args.texture,
            policy=args.policy,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (OSError, KeyError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
