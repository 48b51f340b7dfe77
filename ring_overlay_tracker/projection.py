"""
Pixel-to-world projection for the overlay renderer.

Maps a filtered pixel-space anchor onto the plane the render camera sees at
its distance, using a pinhole model with a vertical field of view.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .anchor_reducer import Anchor
from .config import (
    PROJECTION_FOV_DEG,
    PROJECTION_CAMERA_DISTANCE,
    PROJECTION_BASE_CAMERA_DISTANCE,
    PROJECTION_DEPTH_FACTOR,
    PROJECTION_MIRRORED,
    PROJECTION_POSITION_SCALE,
    PROJECTION_MODEL_SCALE,
    PROJECTION_ROTATION_OFFSET,
)


@dataclass(frozen=True)
class ProjectionConfig:
    """
    Render camera model and user tuning offsets.

    Attributes:
        fov_degrees: Vertical field of view of the render camera.
        camera_distance: Camera distance from the overlay plane (world units).
        base_camera_distance: Distance the model scale was tuned at.
        depth_factor: Multiplier turning pseudo-depth into a Z offset.
        mirrored: True if the video is shown mirrored (selfie view).
        position_offset: (x, y, z) offsets as fractions of camera distance.
        position_scale: Multiplier on the projected x, y position.
        rotation_offset: Euler XYZ offsets (radians) for the rendered model.
        model_scale: Model scale at base_camera_distance.
    """
    fov_degrees: float = PROJECTION_FOV_DEG
    camera_distance: float = PROJECTION_CAMERA_DISTANCE
    base_camera_distance: float = PROJECTION_BASE_CAMERA_DISTANCE
    depth_factor: float = PROJECTION_DEPTH_FACTOR
    mirrored: bool = PROJECTION_MIRRORED
    position_offset: tuple[float, float, float] = (0.0, 0.0, 0.0)
    position_scale: float = PROJECTION_POSITION_SCALE
    rotation_offset: tuple[float, float, float] = PROJECTION_ROTATION_OFFSET
    model_scale: float = PROJECTION_MODEL_SCALE


@dataclass(frozen=True)
class WorldPlacement:
    """Renderable placement of one overlay."""
    label: str
    x: float
    y: float
    z: float
    rotation: float  # In-plane anchor orientation (radians)
    rotation_offset: tuple[float, float, float]
    scale: float


def visible_extent(
    config: ProjectionConfig,
    width: float,
    height: float
) -> tuple[float, float]:
    """
    Visible world width and height at the camera distance.

    Args:
        config: Projection configuration.
        width: Viewport width in pixels.
        height: Viewport height in pixels.

    Returns:
        (visible_width, visible_height) in world units.

    Raises:
        ValueError: If the viewport size is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Viewport must be positive, got {width}x{height}")

    v_fov = math.radians(config.fov_degrees)
    visible_height = 2.0 * math.tan(v_fov / 2.0) * config.camera_distance
    visible_width = visible_height * (width / height)
    return visible_width, visible_height


def project_anchor(
    anchor: Anchor,
    width: float,
    height: float,
    config: Optional[ProjectionConfig] = None,
    label: str = ""
) -> WorldPlacement:
    """
    Project a pixel-space anchor into world space.

    Args:
        anchor: Filtered anchor in pixels (origin top-left).
        width: Viewport width in pixels.
        height: Viewport height in pixels.
        config: Projection configuration, or None for defaults.
        label: Hand label to tag the placement with.

    Returns:
        World placement for the renderer.
    """
    config = config or ProjectionConfig()
    visible_width, visible_height = visible_extent(config, width, height)
    distance = config.camera_distance

    nx = anchor.x / width
    ny = anchor.y / height

    world_x = (nx - 0.5) * visible_width
    world_y = -(ny - 0.5) * visible_height  # Pixel Y grows downward

    if config.mirrored:
        world_x = -world_x

    offset_x, offset_y, offset_z = config.position_offset
    x3d = world_x * config.position_scale + offset_x * distance
    y3d = world_y * config.position_scale + offset_y * distance
    z3d = (anchor.z * config.depth_factor + offset_z) * distance

    return WorldPlacement(
        label=label,
        x=x3d,
        y=y3d,
        z=z3d,
        rotation=anchor.rotation,
        rotation_offset=config.rotation_offset,
        scale=config.model_scale * (distance / config.base_camera_distance)
    )
