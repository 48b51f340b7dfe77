"""Shared fixtures for the overlay tests."""

from typing import Callable, Optional

import pytest

from ring_overlay_tracker.landmarks import HandLandmarks, Landmark, NUM_HAND_LANDMARKS


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_hand() -> Callable[..., HandLandmarks]:
    """Factory for a 21-point hand with selected landmarks overridden."""

    def _make(
        handedness: str = "Right",
        points: Optional[dict[int, tuple]] = None,
        score: Optional[float] = 0.9,
        count: int = NUM_HAND_LANDMARKS
    ) -> HandLandmarks:
        landmarks = [Landmark(x=0.0, y=0.0, z=0.0) for _ in range(count)]
        for index, coords in (points or {}).items():
            x, y = coords[0], coords[1]
            z = coords[2] if len(coords) > 2 else None
            landmarks[index] = Landmark(x=x, y=y, z=z)
        return HandLandmarks(landmarks=landmarks, handedness=handedness, score=score)

    return _make


@pytest.fixture
def ring_hand(make_hand) -> Callable[..., HandLandmarks]:
    """Hand whose ring anchor lands exactly on (x, y): both ring joints coincide."""

    def _make(x: float, y: float, handedness: str = "Right", score: float = 0.9) -> HandLandmarks:
        return make_hand(handedness, {13: (x, y, 0.0), 14: (x, y, 0.0)}, score=score)

    return _make
