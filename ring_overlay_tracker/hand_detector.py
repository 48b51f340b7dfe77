"""
Hand detector using MediaPipe Hands.

Wraps MediaPipe as the external landmark source for the overlay and returns
every detected hand in pixel coordinates. Supports both the Solutions API
and the Tasks API, whichever the installed MediaPipe provides.
"""

from typing import Optional

import numpy as np

try:
    import mediapipe as mp
except ImportError as e:
    raise ImportError(
        "MediaPipe is required. Install with: pip install mediapipe"
    ) from e

from .config import (
    MEDIAPIPE_MODEL_COMPLEXITY,
    MEDIAPIPE_MAX_NUM_HANDS,
    MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
    MEDIAPIPE_MIN_TRACKING_CONFIDENCE,
)
from .landmarks import HandLandmarks, Landmark
from .logger import get_logger

logger = get_logger("HandDetector")

# Legacy Solutions API first, Tasks API on newer MediaPipe builds
USING_TASKS_API = not (hasattr(mp, "solutions") and hasattr(mp.solutions, "hands"))


class HandDetector:
    """
    Multi-hand landmark detector.

    Attributes:
        max_num_hands: Maximum number of hands to detect per frame.
    """

    def __init__(
        self,
        model_complexity: int = MEDIAPIPE_MODEL_COMPLEXITY,
        max_num_hands: int = MEDIAPIPE_MAX_NUM_HANDS,
        min_detection_confidence: float = MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
        min_tracking_confidence: float = MEDIAPIPE_MIN_TRACKING_CONFIDENCE
    ):
        """
        Initialize hand detector.

        Args:
            model_complexity: Model complexity (0=Lite, 1=Full).
            max_num_hands: Maximum number of hands to detect.
            min_detection_confidence: Minimum detection confidence.
            min_tracking_confidence: Minimum tracking confidence.
        """
        self.model_complexity = model_complexity
        self.max_num_hands = max_num_hands
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence

        self._hands = None  # Solutions API Hands object
        self._landmarker = None  # Tasks API HandLandmarker object
        self._timestamp_ms = 0
        self._is_initialized = False
        self._using_tasks_api = USING_TASKS_API

        api_type = "Tasks API" if self._using_tasks_api else "Solutions API"
        logger.info(
            f"HandDetector initialized ({api_type}, complexity={model_complexity}, "
            f"max_hands={max_num_hands})"
        )

    def initialize(self) -> None:
        """Create the MediaPipe model."""
        if self._is_initialized:
            return

        if self._using_tasks_api:
            self._initialize_tasks_api()
        else:
            self._hands = mp.solutions.hands.Hands(
                static_image_mode=False,
                model_complexity=self.model_complexity,
                max_num_hands=self.max_num_hands,
                min_detection_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence
            )
            logger.info("MediaPipe Hands initialized (Solutions API)")

        self._is_initialized = True

    def _initialize_tasks_api(self) -> None:
        """Create a VIDEO-mode HandLandmarker, downloading the model if needed."""
        from mediapipe.tasks import python as mp_python
        from mediapipe.tasks.python import vision as mp_vision

        from .model_manager import ensure_hand_landmarker_model

        model_path = ensure_hand_landmarker_model()
        options = mp_vision.HandLandmarkerOptions(
            base_options=mp_python.BaseOptions(model_asset_path=model_path),
            running_mode=mp_vision.RunningMode.VIDEO,
            num_hands=self.max_num_hands,
            min_hand_detection_confidence=self.min_detection_confidence,
            min_hand_presence_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_tracking_confidence
        )
        self._landmarker = mp_vision.HandLandmarker.create_from_options(options)
        self._timestamp_ms = 0
        logger.info("MediaPipe Hands initialized (Tasks API, VIDEO mode)")

    def close(self) -> None:
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
        self._is_initialized = False
        logger.debug("HandDetector closed")

    def detect(self, rgb_image: np.ndarray) -> list[HandLandmarks]:
        """
        Detect all hands in an RGB image.

        Args:
            rgb_image: RGB image as numpy array (H, W, 3).

        Returns:
            Detected hands in pixel coordinates, possibly empty.
        """
        if not self._is_initialized:
            self.initialize()

        height, width = rgb_image.shape[:2]

        if self._using_tasks_api:
            raw_hands = self._detect_tasks_api(rgb_image)
        else:
            raw_hands = self._detect_solutions_api(rgb_image)

        return [
            _to_pixel_space(points, label, score, width, height)
            for points, label, score in raw_hands
        ]

    def _detect_solutions_api(self, rgb_image: np.ndarray) -> list[tuple[list, str, float]]:
        results = self._hands.process(rgb_image)
        if not results.multi_hand_landmarks:
            return []

        hands = []
        for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
            label, score = "Right", 1.0
            if results.multi_handedness and i < len(results.multi_handedness):
                classification = results.multi_handedness[i].classification[0]
                label, score = classification.label, classification.score
            hands.append((list(hand_landmarks.landmark), label, score))
        return hands

    def _detect_tasks_api(self, rgb_image: np.ndarray) -> list[tuple[list, str, float]]:
        if not rgb_image.flags["C_CONTIGUOUS"]:
            rgb_image = np.ascontiguousarray(rgb_image)

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_image)
        self._timestamp_ms += 33  # ~30 FPS
        result = self._landmarker.detect_for_video(mp_image, self._timestamp_ms)

        if not result.hand_landmarks:
            return []

        hands = []
        for i, hand_landmarks in enumerate(result.hand_landmarks):
            label, score = "Right", 1.0
            if result.handedness and i < len(result.handedness):
                category = result.handedness[i][0]
                label, score = category.category_name, category.score
            hands.append((list(hand_landmarks), label, score))
        return hands


def _to_pixel_space(
    points: list,
    label: str,
    score: Optional[float],
    width: int,
    height: int
) -> HandLandmarks:
    """
    Convert MediaPipe normalized landmarks to pixel coordinates.

    MediaPipe's z uses roughly the same scale as x, so it is scaled by the
    frame width.
    """
    return HandLandmarks(
        landmarks=[
            Landmark(x=lm.x * width, y=lm.y * height, z=lm.z * width)
            for lm in points
        ],
        handedness=label,
        score=score
    )
