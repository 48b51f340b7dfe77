"""
Profile loader for RingOverlayTracker.

Loads and validates JSON overlay profiles. Profile properties use camelCase,
grouped into smoothing, anchor, projection, camera and tracking sections.
Invalid optional values are logged and replaced by defaults; an unreadable
file or missing identity fields is an error.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .anchor_reducer import AnchorConfig
from .config import (
    SmoothingSettings,
    CameraSettings,
    TrackingSettings,
    SMOOTHING_MODES,
    POSITION_OFFSET_RANGE,
    POSITION_SCALE_RANGE,
    MODEL_SCALE_RANGE,
)
from .logger import get_logger
from .projection import ProjectionConfig

logger = get_logger("ProfileLoader")


class ProfileLoadError(Exception):
    """Raised when profile loading or validation fails."""
    pass


@dataclass
class OverlayProfile:
    """
    Profile configuration loaded from JSON.

    Attributes:
        id: Unique identifier.
        name: Profile display name.
        smoothing: Anchor smoothing parameters.
        anchor: Landmark indices and blend weight for the anchor.
        projection: Render camera model and tuning offsets.
        camera: Capture device settings.
        tracking: Per-frame pipeline settings.
    """

    id: str
    name: str
    smoothing: SmoothingSettings = field(default_factory=SmoothingSettings)
    anchor: AnchorConfig = field(default_factory=AnchorConfig)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    camera: CameraSettings = field(default_factory=CameraSettings)
    tracking: TrackingSettings = field(default_factory=TrackingSettings)


def load_profile(profile_path: Union[str, Path]) -> OverlayProfile:
    """
    Load and validate a profile from a JSON file.

    Args:
        profile_path: Path to the JSON profile file.

    Returns:
        Validated OverlayProfile instance.

    Raises:
        ProfileLoadError: If file cannot be read or validation fails.
    """
    path = Path(profile_path)
    logger.info(f"Loading profile from: {path}")

    if not path.exists():
        raise ProfileLoadError(f"Profile file not found: {path}")

    if not path.is_file():
        raise ProfileLoadError(f"Profile path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ProfileLoadError(f"Invalid JSON in profile: {e}")
    except OSError as e:
        raise ProfileLoadError(f"Cannot read profile file: {e}")

    if not isinstance(data, dict):
        raise ProfileLoadError("Profile root must be a JSON object")

    return parse_profile(data)


def parse_profile(data: dict[str, Any]) -> OverlayProfile:
    """
    Parse and validate profile data from dictionary.

    Args:
        data: Dictionary with camelCase profile properties.

    Returns:
        Validated OverlayProfile instance.

    Raises:
        ProfileLoadError: If required fields are missing.
    """
    if "id" not in data:
        raise ProfileLoadError("Profile missing required field: id")

    if "name" not in data:
        raise ProfileLoadError("Profile missing required field: name")

    profile = OverlayProfile(
        id=str(data["id"]),
        name=str(data["name"]),
        smoothing=_parse_smoothing(_section(data, "smoothing")),
        anchor=_parse_anchor(_section(data, "anchor")),
        projection=_parse_projection(_section(data, "projection")),
        camera=_parse_camera(_section(data, "camera")),
        tracking=_parse_tracking(_section(data, "tracking")),
    )

    logger.info(f"Loaded profile: {profile.name} (id={profile.id})")
    logger.debug(f"  Smoothing mode: {profile.smoothing.mode}")
    logger.debug(f"  Teleport threshold: {profile.smoothing.teleport_threshold}")
    logger.debug(f"  Velocity threshold: {profile.smoothing.velocity_threshold}")
    logger.debug(f"  Anchor landmarks: {profile.anchor.base_index}/{profile.anchor.joint_index}")
    logger.debug(f"  Mirrored: {profile.projection.mirrored}")
    logger.debug(f"  Camera index: {profile.camera.index}")

    return profile


def create_default_profile() -> OverlayProfile:
    """
    Create a default profile with standard settings.

    Returns:
        OverlayProfile with default values.
    """
    return OverlayProfile(id="default", name="Default")


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        logger.warning(f"Invalid '{key}' section, using defaults")
        return {}
    return value


def _number(
    data: dict[str, Any],
    key: str,
    default: float,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None
) -> float:
    """Read a number, falling back to the default and clamping to range."""
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning(f"Invalid {key}, using default: {default}")
        value = default
    value = float(value)
    if minimum is not None:
        value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def _integer(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        logger.warning(f"Invalid {key}, using default: {default}")
        return default
    return value


def _boolean(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        logger.warning(f"Invalid {key}, using default: {default}")
        return default
    return value


def _vector3(
    data: dict[str, Any],
    key: str,
    default: tuple[float, float, float],
    bounds: Optional[tuple[float, float]] = None
) -> tuple[float, float, float]:
    value = data.get(key, default)
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 3
        or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
    ):
        logger.warning(f"Invalid {key}, using default: {default}")
        return default
    if bounds is None:
        return (float(value[0]), float(value[1]), float(value[2]))
    low, high = bounds
    return tuple(max(low, min(high, float(v))) for v in value)


def _parse_smoothing(data: dict[str, Any]) -> SmoothingSettings:
    defaults = SmoothingSettings()

    mode = data.get("mode", defaults.mode)
    if mode not in SMOOTHING_MODES:
        logger.warning(f"Invalid smoothing mode '{mode}', defaulting to {defaults.mode}")
        mode = defaults.mode

    return SmoothingSettings(
        mode=mode,
        teleport_threshold=_number(data, "teleportThreshold", defaults.teleport_threshold, minimum=1.0),
        velocity_threshold=_number(data, "velocityThreshold", defaults.velocity_threshold, minimum=0.0),
        micro_alpha=_number(data, "microAlpha", defaults.micro_alpha, minimum=0.01, maximum=1.0),
        teleport_window=_number(data, "teleportWindowMs", defaults.teleport_window * 1000.0, minimum=0.0) / 1000.0,
        exponential_alpha=_number(data, "exponentialAlpha", defaults.exponential_alpha, minimum=0.01, maximum=1.0),
        process_noise=_number(data, "processNoise", defaults.process_noise, minimum=0.0),
        measurement_noise=_number(data, "measurementNoise", defaults.measurement_noise, minimum=1e-6),
    )


def _parse_anchor(data: dict[str, Any]) -> AnchorConfig:
    defaults = AnchorConfig()
    return AnchorConfig(
        base_index=max(0, _integer(data, "baseIndex", defaults.base_index)),
        joint_index=max(0, _integer(data, "jointIndex", defaults.joint_index)),
        base_weight=_number(data, "baseWeight", defaults.base_weight, minimum=0.0, maximum=1.0),
    )


def _parse_projection(data: dict[str, Any]) -> ProjectionConfig:
    defaults = ProjectionConfig()
    return ProjectionConfig(
        fov_degrees=_number(data, "fovDegrees", defaults.fov_degrees, minimum=1.0, maximum=179.0),
        camera_distance=_number(data, "cameraDistance", defaults.camera_distance, minimum=1e-3),
        base_camera_distance=_number(data, "baseCameraDistance", defaults.base_camera_distance, minimum=1e-3),
        depth_factor=_number(data, "depthFactor", defaults.depth_factor),
        mirrored=_boolean(data, "mirrored", defaults.mirrored),
        position_offset=_vector3(data, "positionOffset", defaults.position_offset, POSITION_OFFSET_RANGE),
        position_scale=_number(data, "positionScale", defaults.position_scale, *POSITION_SCALE_RANGE),
        rotation_offset=_vector3(data, "rotationOffset", defaults.rotation_offset),
        model_scale=_number(data, "modelScale", defaults.model_scale, *MODEL_SCALE_RANGE),
    )


def _parse_camera(data: dict[str, Any]) -> CameraSettings:
    defaults = CameraSettings()
    return CameraSettings(
        index=_integer(data, "index", defaults.index),
        width=max(1, _integer(data, "width", defaults.width)),
        height=max(1, _integer(data, "height", defaults.height)),
        fps=max(1, _integer(data, "fps", defaults.fps)),
    )


def _parse_tracking(data: dict[str, Any]) -> TrackingSettings:
    defaults = TrackingSettings()

    max_placements = data.get("maxPlacements", defaults.max_placements)
    if max_placements is not None and (
        isinstance(max_placements, bool) or not isinstance(max_placements, int) or max_placements < 0
    ):
        logger.warning(f"Invalid maxPlacements, using default: {defaults.max_placements}")
        max_placements = defaults.max_placements

    return TrackingSettings(
        min_confidence=_number(data, "minConfidence", defaults.min_confidence, minimum=0.0, maximum=1.0),
        max_hands=max(1, _integer(data, "maxHands", defaults.max_hands)),
        max_placements=max_placements,
    )
