"""
RingOverlayTracker - stable 3D ring placement on a tracked hand.

Turns noisy per-frame hand landmarks into a smooth, jump-aware world
transform for an overlay renderer.
"""

__version__ = "1.0.0"
__author__ = "RingOverlay Team"

from .anchor_reducer import Anchor, AnchorConfig, reduce_to_anchor
from .landmarks import HandLandmarks, Landmark, LandmarkIndex
from .overlay_tracker import OverlayTracker
from .profile_loader import OverlayProfile, ProfileLoadError, load_profile, create_default_profile
from .projection import ProjectionConfig, WorldPlacement, project_anchor
from .scalar_filters import ExponentialSmoothing, KalmanFilter
from .target_registry import HandLabel, TargetRegistry
from .vector_smoother import (
    ExponentialSmoothing3D,
    KalmanFilter3D,
    MotionState,
    SmoothedPose,
    TeleportAwareSmoother,
    classify_motion,
    create_smoother,
)

__all__ = [
    "Anchor",
    "AnchorConfig",
    "reduce_to_anchor",
    "HandLandmarks",
    "Landmark",
    "LandmarkIndex",
    "OverlayTracker",
    "OverlayProfile",
    "ProfileLoadError",
    "load_profile",
    "create_default_profile",
    "ProjectionConfig",
    "WorldPlacement",
    "project_anchor",
    "ExponentialSmoothing",
    "KalmanFilter",
    "HandLabel",
    "TargetRegistry",
    "ExponentialSmoothing3D",
    "KalmanFilter3D",
    "MotionState",
    "SmoothedPose",
    "TeleportAwareSmoother",
    "classify_motion",
    "create_smoother",
]
