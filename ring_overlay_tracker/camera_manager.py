"""
Video source for RingOverlayTracker.

Wraps OpenCV VideoCapture and hands RGB frames to the overlay loop.
"""

import sys
from typing import Optional

import cv2
import numpy as np

from .config import CameraSettings
from .logger import get_logger

logger = get_logger("CameraManager")


class CameraError(Exception):
    """Raised when camera operations fail."""
    pass


def _open_capture(index: int) -> cv2.VideoCapture:
    """Open a capture device, preferring DirectShow on Windows."""
    if sys.platform == "win32":
        capture = cv2.VideoCapture(index, cv2.CAP_DSHOW)
        if capture.isOpened():
            return capture
        capture.release()
        logger.debug("DirectShow failed, trying default backend")
    return cv2.VideoCapture(index)


class CameraManager:
    """
    Webcam frame source.

    Usage:
        with CameraManager(index, profile.camera) as camera:
            frame = camera.read_frame_rgb()
    """

    def __init__(self, camera_index: int, settings: Optional[CameraSettings] = None):
        """
        Args:
            camera_index: Device index to open.
            settings: Requested resolution and frame rate, or None for defaults.
        """
        self.camera_index = camera_index
        self.settings = settings or CameraSettings()

        self._capture: Optional[cv2.VideoCapture] = None
        self._frame_count = 0

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    @property
    def capture_size(self) -> tuple[int, int]:
        """Negotiated (width, height), (0, 0) while closed."""
        if self._capture is None:
            return (0, 0)
        return (
            int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        )

    def open(self) -> None:
        """
        Open the device and apply the requested settings.

        Raises:
            CameraError: If the device cannot be opened.
        """
        if self._capture is not None:
            logger.warning("Camera already open, reopening")
            self.close()

        logger.info(f"Opening camera {self.camera_index}...")
        capture = _open_capture(self.camera_index)
        if not capture.isOpened():
            capture.release()
            raise CameraError(f"Failed to open camera {self.camera_index}")

        requested = (self.settings.width, self.settings.height)
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, requested[0])
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, requested[1])
        capture.set(cv2.CAP_PROP_FPS, self.settings.fps)
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)  # Latest frame only

        self._capture = capture
        self._frame_count = 0

        negotiated = self.capture_size
        logger.info(f"Camera opened: {negotiated[0]}x{negotiated[1]}")
        if negotiated != requested:
            logger.warning(f"Requested {requested[0]}x{requested[1]}, got {negotiated[0]}x{negotiated[1]}")

    def close(self) -> None:
        """Release the device."""
        if self._capture is not None:
            logger.info(f"Closing camera after {self._frame_count} frames")
            self._capture.release()
            self._capture = None

    def read_frame_rgb(self) -> Optional[np.ndarray]:
        """
        Grab the next frame as RGB.

        Returns:
            RGB image, or None if the device returned no frame.

        Raises:
            CameraError: If the camera is not open.
        """
        if self._capture is None:
            raise CameraError("Camera is not open")

        ok, frame = self._capture.read()
        if not ok or frame is None:
            logger.warning("Camera returned no frame")
            return None

        self._frame_count += 1
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def __enter__(self) -> "CameraManager":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def select_camera(preferred_index: int = -1, max_index: int = 10) -> int:
    """
    Pick the capture device.

    Args:
        preferred_index: Explicit index, or -1 to probe for the first working one.
        max_index: Number of indices to probe.

    Returns:
        Camera index.

    Raises:
        CameraError: If probing finds no camera.
    """
    if preferred_index >= 0:
        return preferred_index

    for index in range(max_index):
        capture = _open_capture(index)
        found = capture.isOpened()
        capture.release()
        if found:
            logger.info(f"Auto-selected camera index: {index}")
            return index

    raise CameraError("No cameras available")
