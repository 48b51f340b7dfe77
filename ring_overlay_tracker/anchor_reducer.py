"""
Reduces a full hand landmark set to a single ring anchor.

The anchor is a weighted blend of two keypoints on the tracked finger
segment, oriented along that segment.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .config import ANCHOR_BASE_INDEX, ANCHOR_JOINT_INDEX, ANCHOR_BASE_WEIGHT
from .landmarks import HandLandmarks, Landmark
from .logger import get_logger

logger = get_logger("AnchorReducer")


@dataclass(frozen=True)
class Anchor:
    """Reduced anchor for one hand in pixel space."""
    x: float
    y: float
    z: float  # Pseudo-depth
    rotation: float  # Radians, atan2 of the base -> joint segment


@dataclass
class AnchorConfig:
    """Configuration for anchor reduction."""

    base_index: int = ANCHOR_BASE_INDEX  # Ring finger MCP
    joint_index: int = ANCHOR_JOINT_INDEX  # Ring finger PIP
    base_weight: float = ANCHOR_BASE_WEIGHT  # Small = anchor near the joint

    def __post_init__(self) -> None:
        if not 0.0 <= self.base_weight <= 1.0:
            raise ValueError(f"base_weight must be in [0, 1], got {self.base_weight}")
        if self.base_index < 0 or self.joint_index < 0:
            raise ValueError("Landmark indices must be non-negative")


def _is_usable(lm: Optional[Landmark]) -> bool:
    if lm is None:
        return False
    return math.isfinite(lm.x) and math.isfinite(lm.y)


def _blend(base: float, joint: float, w: float) -> float:
    """base*w + joint*(1 - w), exact when the two points coincide."""
    return joint + w * (base - joint)


def reduce_to_anchor(
    hand: HandLandmarks,
    config: Optional[AnchorConfig] = None
) -> Optional[Anchor]:
    """
    Compute the ring anchor for one detected hand.

    Args:
        hand: Detected hand landmarks.
        config: Anchor configuration, or None for defaults.

    Returns:
        Anchor, or None if either designated landmark is missing or invalid.
    """
    config = config or AnchorConfig()

    base = hand.get_landmark(config.base_index)
    joint = hand.get_landmark(config.joint_index)

    if not (_is_usable(base) and _is_usable(joint)):
        logger.debug(
            f"{hand.handedness} hand missing landmarks "
            f"{config.base_index}/{config.joint_index}, no anchor"
        )
        return None

    w = config.base_weight
    base_z = base.z if base.z is not None and math.isfinite(base.z) else 0.0
    joint_z = joint.z if joint.z is not None and math.isfinite(joint.z) else 0.0

    return Anchor(
        x=_blend(base.x, joint.x, w),
        y=_blend(base.y, joint.y, w),
        z=_blend(base_z, joint_z, w),
        rotation=math.atan2(joint.y - base.y, joint.x - base.x)
    )
