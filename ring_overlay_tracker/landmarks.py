"""
Hand landmark data types shared by the detector and the overlay pipeline.

Coordinates are in pixel space of the source frame (origin top-left).
"""

from dataclasses import dataclass
from typing import Optional


class LandmarkIndex:
    """MediaPipe hand landmark indices."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


NUM_HAND_LANDMARKS = 21

# Finger chains for debug drawing
HAND_CONNECTIONS: list[tuple[int, int]] = [
    (0, 1), (1, 2), (2, 3), (3, 4),  # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),  # Index
    (0, 9), (9, 10), (10, 11), (11, 12),  # Middle
    (0, 13), (13, 14), (14, 15), (15, 16),  # Ring
    (0, 17), (17, 18), (18, 19), (19, 20),  # Pinky
]


@dataclass
class Landmark:
    """Single hand keypoint."""
    x: float  # Pixels
    y: float  # Pixels
    z: Optional[float] = None  # Relative depth, None if the detector has none


@dataclass
class HandLandmarks:
    """
    One detected hand for one frame.

    Attributes:
        landmarks: Ordered keypoints (21 for MediaPipe Hands).
        handedness: Entity-class label, 'Left' or 'Right'.
        score: Detection confidence, None if not reported.
    """
    landmarks: list[Landmark]
    handedness: str
    score: Optional[float] = None

    def get_landmark(self, index: int) -> Optional[Landmark]:
        """Get landmark by index, None if absent."""
        if 0 <= index < len(self.landmarks):
            return self.landmarks[index]
        return None
