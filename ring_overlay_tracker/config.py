"""
Configuration constants for RingOverlayTracker.

This module contains all tunable parameters for camera capture,
hand detection, anchor smoothing, and world-space projection.
"""

from dataclasses import dataclass
from typing import Final, Optional

from .landmarks import LandmarkIndex


# Camera configuration
CAMERA_WIDTH: Final[int] = 640
CAMERA_HEIGHT: Final[int] = 480
CAMERA_FPS: Final[int] = 30
DEFAULT_CAMERA_INDEX: Final[int] = -1  # -1 = auto-select

# MediaPipe configuration
MEDIAPIPE_MODEL_COMPLEXITY: Final[int] = 1  # Full model, matches the overlay's accuracy needs
MEDIAPIPE_MAX_NUM_HANDS: Final[int] = 2
MEDIAPIPE_MIN_DETECTION_CONFIDENCE: Final[float] = 0.7
MEDIAPIPE_MIN_TRACKING_CONFIDENCE: Final[float] = 0.5

# =============================================================================
# Anchor Smoothing
# =============================================================================
# "teleport" = jump-aware micro smoothing, "exponential" / "kalman" = plain
# per-channel filters.
SMOOTHING_MODE: Final[str] = "teleport"
SMOOTHING_MODES: Final[tuple[str, ...]] = ("teleport", "exponential", "kalman")

# Teleport-aware smoother (pixel units)
TELEPORT_DISTANCE_THRESHOLD: Final[float] = 150.0  # Jump larger than this snaps instantly
VELOCITY_THRESHOLD: Final[float] = 15.0  # px/s, above this the raw anchor is used
MICRO_SMOOTHING_ALPHA: Final[float] = 0.2  # Jitter removal while the hand is still
TELEPORT_WINDOW_SEC: Final[float] = 0.1  # Debug flag stays raised this long

# Exponential smoothing (alpha close to 1 = responsive)
EXPONENTIAL_ALPHA: Final[float] = 0.7
EXPONENTIAL_ROTATION_FACTOR: Final[float] = 0.9  # Rotation slightly slower

# Scalar Kalman filter
KALMAN_PROCESS_NOISE: Final[float] = 0.005
KALMAN_MEASUREMENT_NOISE: Final[float] = 0.05
KALMAN_ROTATION_NOISE_FACTOR: Final[float] = 2.0
KALMAN_INITIAL_COVARIANCE: Final[float] = 1.0

# =============================================================================
# Anchor Reduction
# =============================================================================
# Ring sits between the ring finger MCP and PIP, close to the PIP.
ANCHOR_BASE_INDEX: Final[int] = LandmarkIndex.RING_MCP
ANCHOR_JOINT_INDEX: Final[int] = LandmarkIndex.RING_PIP
ANCHOR_BASE_WEIGHT: Final[float] = 0.18

# =============================================================================
# World Projection
# =============================================================================
PROJECTION_FOV_DEG: Final[float] = 75.0  # Vertical FOV of the render camera
PROJECTION_CAMERA_DISTANCE: Final[float] = 100.0  # Must match render camera Z
PROJECTION_BASE_CAMERA_DISTANCE: Final[float] = 1.0
PROJECTION_DEPTH_FACTOR: Final[float] = -0.01
PROJECTION_MIRRORED: Final[bool] = True  # Selfie view
PROJECTION_POSITION_SCALE: Final[float] = 1.0
PROJECTION_MODEL_SCALE: Final[float] = 0.005
PROJECTION_ROTATION_OFFSET: Final[tuple[float, float, float]] = (-1.3, -1.2, -2.9)

# Profile clamps (mirrors the tuning panel ranges)
POSITION_OFFSET_RANGE: Final[tuple[float, float]] = (-0.5, 0.5)
POSITION_SCALE_RANGE: Final[tuple[float, float]] = (0.5, 2.0)
MODEL_SCALE_RANGE: Final[tuple[float, float]] = (0.001, 0.02)

# Tracking
TRACKING_MIN_CONFIDENCE: Final[float] = 0.0

# Logging
LOG_FILENAME: Final[str] = "ring_overlay_tracker.log"
LOG_MAX_BYTES: Final[int] = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT: Final[int] = 3

# Exit codes
EXIT_SUCCESS: Final[int] = 0
EXIT_PROFILE_ERROR: Final[int] = 1
EXIT_CAMERA_ERROR: Final[int] = 2
EXIT_RUNTIME_ERROR: Final[int] = 3


@dataclass
class SmoothingSettings:
    """Container for anchor smoothing parameters."""

    mode: str = SMOOTHING_MODE
    teleport_threshold: float = TELEPORT_DISTANCE_THRESHOLD
    velocity_threshold: float = VELOCITY_THRESHOLD
    micro_alpha: float = MICRO_SMOOTHING_ALPHA
    teleport_window: float = TELEPORT_WINDOW_SEC
    exponential_alpha: float = EXPONENTIAL_ALPHA
    process_noise: float = KALMAN_PROCESS_NOISE
    measurement_noise: float = KALMAN_MEASUREMENT_NOISE


@dataclass
class CameraSettings:
    """Container for capture device settings."""

    index: int = DEFAULT_CAMERA_INDEX
    width: int = CAMERA_WIDTH
    height: int = CAMERA_HEIGHT
    fps: int = CAMERA_FPS


@dataclass
class TrackingSettings:
    """Container for per-frame pipeline settings."""

    min_confidence: float = TRACKING_MIN_CONFIDENCE
    max_hands: int = MEDIAPIPE_MAX_NUM_HANDS
    max_placements: Optional[int] = None  # None = one placement per tracked hand
