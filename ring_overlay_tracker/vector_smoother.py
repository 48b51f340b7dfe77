"""
Position + orientation smoothers for a tracked anchor.

Provides the teleport-aware smoother used for the ring overlay, plus plain
per-channel exponential and Kalman composites. All share the same
filter(x, y, z, rotation, timestamp) / reset contract.
"""

import math
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Protocol

import numpy as np

from .config import (
    SmoothingSettings,
    TELEPORT_DISTANCE_THRESHOLD,
    VELOCITY_THRESHOLD,
    MICRO_SMOOTHING_ALPHA,
    TELEPORT_WINDOW_SEC,
    EXPONENTIAL_ALPHA,
    EXPONENTIAL_ROTATION_FACTOR,
    KALMAN_PROCESS_NOISE,
    KALMAN_MEASUREMENT_NOISE,
    KALMAN_ROTATION_NOISE_FACTOR,
)
from .logger import get_logger
from .scalar_filters import ExponentialSmoothing, KalmanFilter

logger = get_logger("VectorSmoother")


@dataclass(frozen=True)
class SmoothedPose:
    """Filtered anchor position and in-plane rotation."""
    x: float
    y: float
    z: float
    rotation: float  # Radians


class MotionState(Enum):
    """Per-update motion classification."""
    FIRST = auto()     # No prior state for this target
    TELEPORT = auto()  # Discontinuous jump, snap to raw
    MOVING = auto()    # Genuine fast motion, follow raw
    STILL = auto()     # Stationary, micro smoothing


class VectorSmoother(Protocol):
    """Interface shared by all anchor smoothers."""

    def filter(
        self,
        x: float,
        y: float,
        z: float,
        rotation: float,
        timestamp: Optional[float] = None
    ) -> SmoothedPose: ...

    def reset(self, x: float, y: float, z: float, rotation: float) -> None: ...


def classify_motion(
    distance: float,
    dt: float,
    previous_velocity: float,
    teleport_threshold: float = TELEPORT_DISTANCE_THRESHOLD,
    velocity_threshold: float = VELOCITY_THRESHOLD
) -> tuple[MotionState, float]:
    """
    Classify a non-first update as teleport, moving, or still.

    Args:
        distance: Distance between the new and previous raw positions.
        dt: Seconds since the previous update.
        previous_velocity: Velocity estimate from the previous update.
        teleport_threshold: Jump distance above which the update is a teleport.
        velocity_threshold: Speed above which the target counts as moving.

    Returns:
        (state, velocity). For a non-positive dt the previous velocity is
        retained and the update is classified as still.
    """
    if distance > teleport_threshold:
        return MotionState.TELEPORT, previous_velocity

    if dt <= 0:
        return MotionState.STILL, previous_velocity

    velocity = distance / dt
    if velocity > velocity_threshold:
        return MotionState.MOVING, velocity
    return MotionState.STILL, velocity


def _wrap_angle(angle: float) -> float:
    """Normalize an angle to (-pi, pi]."""
    wrapped = math.atan2(math.sin(angle), math.cos(angle))
    if wrapped == -math.pi:
        return math.pi
    return wrapped


def _nearest_turn(reference: Optional[float], angle: float) -> float:
    """Shift angle by whole turns so it lies within pi of reference."""
    if reference is None:
        return angle
    return reference + _wrap_angle(angle - reference)


class TeleportAwareSmoother:
    """
    Jump-aware smoother for a single tracked anchor.

    Each update is classified independently:
    - first observation: raw values are adopted verbatim
    - teleport (raw jump > teleport_threshold): raw values, micro reference reset
    - moving (speed > velocity_threshold): raw values, micro reference follows
    - still: light exponential smoothing of the micro reference

    Distances and velocities use the x, y, z channels; rotation is only
    smoothed, never used for classification.

    Usage:
        smoother = TeleportAwareSmoother()

        # Each frame:
        pose = smoother.filter(x, y, z, angle, timestamp)
    """

    def __init__(
        self,
        micro_alpha: float = MICRO_SMOOTHING_ALPHA,
        teleport_threshold: float = TELEPORT_DISTANCE_THRESHOLD,
        velocity_threshold: float = VELOCITY_THRESHOLD,
        teleport_window: float = TELEPORT_WINDOW_SEC,
        clock: Callable[[], float] = time.perf_counter
    ):
        """
        Initialize the smoother.

        Args:
            micro_alpha: EMA factor applied while still, in (0, 1].
            teleport_threshold: Raw jump distance that bypasses smoothing.
            velocity_threshold: Speed (units/s) above which smoothing is skipped.
            teleport_window: Seconds is_teleporting() stays True after a jump.
            clock: Monotonic time source in seconds, used when no timestamp
                   is passed to filter().
        """
        if not 0.0 < micro_alpha <= 1.0:
            raise ValueError(f"micro_alpha must be in (0, 1], got {micro_alpha}")
        if teleport_threshold <= 0:
            raise ValueError(f"teleport_threshold must be > 0, got {teleport_threshold}")
        if velocity_threshold < 0:
            raise ValueError(f"velocity_threshold must be >= 0, got {velocity_threshold}")

        self.micro_alpha = micro_alpha
        self.teleport_threshold = teleport_threshold
        self.velocity_threshold = velocity_threshold
        self.teleport_window = teleport_window
        self._clock = clock

        self._micro: Optional[np.ndarray] = None  # [x, y, z, rotation]
        self._prev_raw: Optional[np.ndarray] = None  # [x, y, z]
        self._prev_time: Optional[float] = None
        self._last_teleport_time: Optional[float] = None
        self._velocity: float = 0.0
        self._last_state: Optional[MotionState] = None
        self._update_count: int = 0

    def filter(
        self,
        x: float,
        y: float,
        z: float,
        rotation: float,
        timestamp: Optional[float] = None
    ) -> SmoothedPose:
        """
        Filter one anchor sample.

        Args:
            x, y, z: Raw anchor position.
            rotation: Raw anchor rotation in radians.
            timestamp: Sample time in seconds. If None, uses the clock.

        Returns:
            Smoothed pose.
        """
        now = self._clock() if timestamp is None else timestamp
        raw = np.array([x, y, z, rotation], dtype=np.float64)
        self._update_count += 1

        if self._micro is None or self._prev_raw is None:
            self._micro = raw.copy()
            self._remember(raw, now)
            self._last_state = MotionState.FIRST
            return self._pose(raw)

        distance = float(np.linalg.norm(raw[:3] - self._prev_raw))
        # No elapsed time after a seeded reset: classified by distance only
        seeded = self._prev_time is None
        dt = 0.0 if seeded else now - self._prev_time

        state, self._velocity = classify_motion(
            distance,
            dt,
            self._velocity,
            self.teleport_threshold,
            self.velocity_threshold
        )
        self._last_state = state

        if state is MotionState.TELEPORT:
            logger.debug(f"Teleport detected ({distance:.1f} > {self.teleport_threshold:.1f})")
            self._last_teleport_time = now
            self._micro = raw.copy()
            output = raw
        elif state is MotionState.MOVING:
            self._micro = raw.copy()
            output = raw
        else:
            if dt <= 0 and not seeded:
                logger.debug(f"Non-positive elapsed time ({dt:.4f}s), treating as still")
            self._micro = self._blend(self._micro, raw)
            output = self._micro

        self._remember(raw, now)
        return self._pose(output)

    def _blend(self, micro: np.ndarray, raw: np.ndarray) -> np.ndarray:
        """Exponential step of the micro reference towards raw, per channel."""
        alpha = self.micro_alpha
        blended = micro + alpha * (raw - micro)

        # Rotation takes the shortest path across the +/-pi seam
        delta = _wrap_angle(raw[3] - micro[3])
        blended[3] = _wrap_angle(micro[3] + alpha * delta)
        return blended

    def _remember(self, raw: np.ndarray, now: float) -> None:
        """Store raw position and time as the reference for the next update."""
        self._prev_raw = raw[:3].copy()
        self._prev_time = now

    @staticmethod
    def _pose(values: np.ndarray) -> SmoothedPose:
        return SmoothedPose(
            x=float(values[0]),
            y=float(values[1]),
            z=float(values[2]),
            rotation=float(values[3])
        )

    def reset(self, x: float, y: float, z: float, rotation: float) -> None:
        """
        Reinitialize the smoother at the given pose.

        Velocity and teleport history are dropped. The next sample has no
        elapsed time to measure against, so it is a teleport if it lies
        beyond teleport_threshold of the pose and a still update otherwise.
        """
        seed = np.array([x, y, z, rotation], dtype=np.float64)
        seed[3] = _wrap_angle(seed[3])
        self._micro = seed
        self._prev_raw = seed[:3].copy()
        self._prev_time = None
        self._last_teleport_time = None
        self._velocity = 0.0
        self._last_state = None

    def is_teleporting(self, now: Optional[float] = None) -> bool:
        """
        Check whether a teleport happened within the teleport window.

        Args:
            now: Reference time in seconds. If None, uses the clock.

        Returns:
            True if the last teleport is at most teleport_window seconds old.
        """
        if self._last_teleport_time is None:
            return False
        reference = self._clock() if now is None else now
        return (reference - self._last_teleport_time) <= self.teleport_window

    @property
    def velocity(self) -> float:
        """Last computed speed in units per second."""
        return self._velocity

    @property
    def last_motion_state(self) -> Optional[MotionState]:
        """Classification of the most recent update."""
        return self._last_state

    @property
    def micro_reference(self) -> Optional[SmoothedPose]:
        """Current micro-smoothed reference, None before the first update."""
        if self._micro is None:
            return None
        return self._pose(self._micro)

    @property
    def update_count(self) -> int:
        """Total number of samples filtered."""
        return self._update_count


class ExponentialSmoothing3D:
    """
    Per-channel exponential smoothing of position and rotation.

    Rotation uses a slightly lower alpha than position and, like the
    teleport-aware smoother, blends along the shortest arc across +/-pi.
    """

    def __init__(self, alpha: float = EXPONENTIAL_ALPHA):
        self.alpha = alpha
        self._x = ExponentialSmoothing(alpha)
        self._y = ExponentialSmoothing(alpha)
        self._z = ExponentialSmoothing(alpha)
        self._rotation = ExponentialSmoothing(alpha * EXPONENTIAL_ROTATION_FACTOR)

    def filter(
        self,
        x: float,
        y: float,
        z: float,
        rotation: float,
        timestamp: Optional[float] = None
    ) -> SmoothedPose:
        """Smooth each channel independently; timestamp is ignored."""
        heading = _nearest_turn(self._rotation.value, rotation)
        return SmoothedPose(
            x=self._x.filter(x),
            y=self._y.filter(y),
            z=self._z.filter(z),
            rotation=_wrap_angle(self._rotation.filter(heading))
        )

    def reset(self, x: float, y: float, z: float, rotation: float) -> None:
        """Reset every channel to the given pose."""
        self._x.reset(x)
        self._y.reset(y)
        self._z.reset(z)
        self._rotation.reset(_wrap_angle(rotation))


class KalmanFilter3D:
    """
    Per-channel scalar Kalman filtering of position and rotation.

    Rotation uses doubled process and measurement noise and is filtered
    along the shortest arc across +/-pi.
    """

    def __init__(
        self,
        process_noise: float = KALMAN_PROCESS_NOISE,
        measurement_noise: float = KALMAN_MEASUREMENT_NOISE
    ):
        self._x = KalmanFilter(process_noise, measurement_noise)
        self._y = KalmanFilter(process_noise, measurement_noise)
        self._z = KalmanFilter(process_noise, measurement_noise)
        self._rotation = KalmanFilter(
            process_noise * KALMAN_ROTATION_NOISE_FACTOR,
            measurement_noise * KALMAN_ROTATION_NOISE_FACTOR
        )

    def filter(
        self,
        x: float,
        y: float,
        z: float,
        rotation: float,
        timestamp: Optional[float] = None
    ) -> SmoothedPose:
        """Filter each channel independently; timestamp is ignored."""
        heading = _nearest_turn(self._rotation.value, rotation)
        return SmoothedPose(
            x=self._x.filter(x),
            y=self._y.filter(y),
            z=self._z.filter(z),
            rotation=_wrap_angle(self._rotation.filter(heading))
        )

    def reset(self, x: float, y: float, z: float, rotation: float) -> None:
        """Reset every channel to the given pose."""
        self._x.reset(x)
        self._y.reset(y)
        self._z.reset(z)
        self._rotation.reset(_wrap_angle(rotation))


def create_smoother(
    settings: Optional[SmoothingSettings] = None,
    clock: Callable[[], float] = time.perf_counter
) -> VectorSmoother:
    """
    Build the smoother selected by the smoothing settings.

    Args:
        settings: Smoothing configuration, or None for defaults.
        clock: Time source for the teleport-aware smoother.

    Returns:
        A new smoother instance.

    Raises:
        ValueError: If the mode is unknown.
    """
    settings = settings or SmoothingSettings()

    if settings.mode == "teleport":
        return TeleportAwareSmoother(
            micro_alpha=settings.micro_alpha,
            teleport_threshold=settings.teleport_threshold,
            velocity_threshold=settings.velocity_threshold,
            teleport_window=settings.teleport_window,
            clock=clock
        )
    if settings.mode == "exponential":
        return ExponentialSmoothing3D(settings.exponential_alpha)
    if settings.mode == "kalman":
        return KalmanFilter3D(settings.process_noise, settings.measurement_noise)

    raise ValueError(f"Unknown smoothing mode: {settings.mode}")
