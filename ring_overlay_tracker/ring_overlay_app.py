#!/usr/bin/env python3
"""
Ring Overlay Tracker

Main entry point. Captures webcam frames, detects hands with MediaPipe and
turns the ring-finger anchor of every hand into a stable world placement
for a 3D renderer.

Usage:
    ring-overlay-tracker [--profile <path>] [--camera <index>] [--debug] [--emit-json]

Exit Codes:
    0 - Success
    1 - Profile error
    2 - Camera error
    3 - Runtime error
"""

import argparse
import asyncio
import json
import math
import signal
import sys
import time
from dataclasses import asdict
from typing import Callable, Optional

import cv2
import numpy as np

from .camera_manager import CameraManager, CameraError, select_camera
from .config import (
    EXIT_SUCCESS,
    EXIT_PROFILE_ERROR,
    EXIT_CAMERA_ERROR,
    EXIT_RUNTIME_ERROR,
)
from .landmarks import HandLandmarks, HAND_CONNECTIONS
from .logger import setup_logging, get_logger
from .overlay_tracker import OverlayTracker
from .profile_loader import (
    OverlayProfile,
    ProfileLoadError,
    create_default_profile,
    load_profile,
)
from .projection import WorldPlacement
from .target_registry import TargetRegistry
from .vector_smoother import TeleportAwareSmoother, create_smoother

PlacementRenderer = Callable[[list[WorldPlacement]], None]

DEBUG_WINDOW_NAME = "Ring Overlay Debug"


class RingOverlayApp:
    """
    Frame-driven overlay application.

    One tick = capture, detect, reduce, filter, project, render. Ticks never
    overlap: the next one starts only after the previous detection resolved.
    Detection runs in a worker thread and is the only suspension point, so
    filter state is only touched from the loop task.
    """

    def __init__(
        self,
        profile: OverlayProfile,
        camera_index: int = -1,
        debug: bool = False,
        renderer: Optional[PlacementRenderer] = None,
        camera=None,
        detector=None,
        clock: Callable[[], float] = time.perf_counter
    ):
        """
        Initialize the overlay application.

        Args:
            profile: Loaded profile configuration.
            camera_index: Camera device index (-1 = profile / auto-select).
            debug: Show an OpenCV debug window.
            renderer: Consumer of each frame's placements.
            camera: Frame source with open/close/read_frame_rgb, or None for
                    a webcam CameraManager.
            detector: Hand detector with initialize/close/detect, or None for
                      the MediaPipe HandDetector.
            clock: Monotonic time source in seconds.
        """
        self.profile = profile
        self.camera_index = camera_index
        self.debug = debug

        self._logger = get_logger("App")
        self._renderer = renderer or self._log_placements
        self._camera = camera
        self._detector = detector
        self._clock = clock
        self._running = False
        self._closed = False

        self.registry = TargetRegistry(lambda: create_smoother(profile.smoothing, clock))
        self.tracker = OverlayTracker(
            self.registry,
            anchor_config=profile.anchor,
            projection_config=profile.projection,
            min_confidence=profile.tracking.min_confidence,
            max_placements=profile.tracking.max_placements
        )

        # Stats
        self._frame_count = 0
        self._detector_failures = 0
        self._start_time = 0.0
        self._last_tick_time: Optional[float] = None
        self._fps = 0.0

    def initialize(self) -> None:
        """
        Open the camera and the hand detector.

        Raises:
            CameraError: If the camera cannot be opened.
        """
        self._logger.info("Initializing ring overlay tracker...")

        if self._camera is None:
            settings = self.profile.camera
            index = self.camera_index if self.camera_index >= 0 else settings.index
            self._camera = CameraManager(select_camera(index), settings)
        self._camera.open()

        if self._detector is None:
            # Imported here so MediaPipe is only loaded when actually used
            from .hand_detector import HandDetector
            self._detector = HandDetector(max_num_hands=self.profile.tracking.max_hands)
        self._detector.initialize()

        self._logger.info(
            f"Smoothing: {self.profile.smoothing.mode}, "
            f"teleport>{self.profile.smoothing.teleport_threshold:.0f}px, "
            f"moving>{self.profile.smoothing.velocity_threshold:.0f}px/s"
        )

    def run(self, max_frames: Optional[int] = None) -> None:
        """Run the tracking loop until stopped."""
        asyncio.run(self.run_async(max_frames))

    async def run_async(self, max_frames: Optional[int] = None) -> None:
        """
        Cooperative tracking loop.

        Args:
            max_frames: Stop after this many ticks, None to run until stop().
        """
        self._running = True
        self._start_time = self._clock()
        self._logger.info("Starting tracking loop...")

        try:
            while self._running:
                await self._tick()

                if max_frames is not None and self._frame_count >= max_frames:
                    break

                if self.debug:
                    key = cv2.waitKey(1) & 0xFF
                    if key == ord('q') or key == 27:  # q or ESC
                        self._logger.info("Quit key pressed")
                        break

                await asyncio.sleep(0)
        finally:
            self._running = False
            self.close()

    async def _tick(self) -> list[WorldPlacement]:
        """Process a single frame."""
        frame = self._camera.read_frame_rgb()
        if frame is None:
            return []

        now = self._clock()
        self._frame_count += 1
        height, width = frame.shape[:2]

        hands = await self._detect(frame)
        if not self._running:
            return []

        placements = self.tracker.process_frame(hands, width, height, now)
        self._renderer(placements)

        if self.debug:
            self._show_debug_frame(frame, hands)

        self._update_fps(now)
        return placements

    async def _detect(self, frame: np.ndarray) -> list[HandLandmarks]:
        """Run detection off the loop; any failure counts as no hands."""
        try:
            return await asyncio.to_thread(self._detector.detect, frame)
        except Exception as e:
            self._detector_failures += 1
            self._logger.warning(f"Hand detection failed: {e}")
            return []

    def _log_placements(self, placements: list[WorldPlacement]) -> None:
        for placement in placements:
            self._logger.debug(
                f"{placement.label}: ({placement.x:.2f}, {placement.y:.2f}, {placement.z:.2f}) "
                f"rot={math.degrees(placement.rotation):.1f}deg"
            )

    def _show_debug_frame(self, frame: np.ndarray, hands: list[HandLandmarks]) -> None:
        """Draw landmarks, ring anchors and stats, mirrored for selfie view."""
        display = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
        anchor_cfg = self.profile.anchor

        for hand in hands:
            color = (0, 255, 0) if hand.handedness == "Left" else (0, 0, 255)
            points = [(int(lm.x), int(lm.y)) for lm in hand.landmarks]
            for start, end in HAND_CONNECTIONS:
                if start < len(points) and end < len(points):
                    cv2.line(display, points[start], points[end], color, 2)
            for point in points:
                cv2.circle(display, point, 3, color, -1)

            base = hand.get_landmark(anchor_cfg.base_index)
            joint = hand.get_landmark(anchor_cfg.joint_index)
            if base is not None and joint is not None:
                cv2.line(
                    display,
                    (int(base.x), int(base.y)),
                    (int(joint.x), int(joint.y)),
                    (0, 255, 255), 3
                )

        for label, anchor in self.tracker.last_anchors.items():
            center = (int(anchor.x), int(anchor.y))
            cv2.circle(display, center, 15, (0, 215, 255), 4)
            gem = (
                int(anchor.x + 15 * math.sin(anchor.rotation)),
                int(anchor.y - 15 * math.cos(anchor.rotation))
            )
            cv2.circle(display, gem, 5, (196, 205, 78), -1)

            smoother = self.registry.get(label)
            if isinstance(smoother, TeleportAwareSmoother) and smoother.is_teleporting():
                cv2.circle(display, center, 22, (255, 0, 255), 2)

        if self.profile.projection.mirrored:
            display = cv2.flip(display, 1)

        cv2.putText(
            display, f"FPS: {self._fps:.1f}", (10, 30),
            cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 255), 2
        )
        cv2.putText(
            display, f"Hands: {len(hands)}", (10, 60),
            cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2
        )

        cv2.imshow(DEBUG_WINDOW_NAME, display)

    def _update_fps(self, now: float) -> None:
        if self._last_tick_time is not None:
            delta = now - self._last_tick_time
            if delta > 0:
                self._fps = 1.0 / delta
        self._last_tick_time = now

    def stop(self) -> None:
        """Request the loop to stop after the current tick."""
        if self._running:
            self._logger.info("Stopping ring overlay tracker...")
        self._running = False

    def close(self) -> None:
        """Release the detector and camera (idempotent)."""
        if self._closed:
            return
        self._closed = True

        if self._detector:
            self._detector.close()

        if self._camera:
            self._camera.close()

        if self.debug:
            cv2.destroyAllWindows()

        if self._frame_count > 0:
            elapsed = self._clock() - self._start_time
            avg_fps = self._frame_count / elapsed if elapsed > 0 else 0
            self._logger.info(
                f"Tracking stopped. Processed {self._frame_count} frames "
                f"in {elapsed:.1f}s ({avg_fps:.1f} FPS average), "
                f"{self._detector_failures} detector failures"
            )

    @property
    def frame_count(self) -> int:
        """Frames processed since the loop started."""
        return self._frame_count

    @property
    def detector_failures(self) -> int:
        """Detection calls that raised."""
        return self._detector_failures

    @property
    def is_running(self) -> bool:
        """Check if the loop is running."""
        return self._running


def emit_json_placements(placements: list[WorldPlacement]) -> None:
    """Write one JSON line per frame to stdout for an external renderer."""
    print(json.dumps([asdict(p) for p in placements]), flush=True)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Ring Overlay Tracker - stable 3D ring placement on a tracked hand",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0  Success
  1  Profile error (file not found, invalid JSON)
  2  Camera error (camera not available)
  3  Runtime error (unexpected error)

Examples:
  ring-overlay-tracker
  ring-overlay-tracker --profile ring.json --camera 1
  ring-overlay-tracker --debug --emit-json
"""
    )

    parser.add_argument(
        "--profile", "-p",
        default=None,
        help="Path to JSON profile file (default: built-in settings)"
    )

    parser.add_argument(
        "--camera", "-c",
        type=int,
        default=-1,
        help="Camera index (default: profile setting or auto-detect)"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug mode with visualization window"
    )

    parser.add_argument(
        "--emit-json",
        action="store_true",
        help="Print each frame's placements as a JSON line on stdout"
    )

    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Log to the console only"
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    args = parse_args(argv)

    # Keep stdout clean for the placement stream
    logger = setup_logging(
        debug=args.debug,
        log_to_file=not args.no_log_file,
        console_stream=sys.stderr if args.emit_json else None
    )
    logger.info("Ring Overlay Tracker starting...")

    try:
        profile = load_profile(args.profile) if args.profile else create_default_profile()
    except ProfileLoadError as e:
        logger.error(f"Failed to load profile: {e}")
        return EXIT_PROFILE_ERROR

    app: Optional[RingOverlayApp] = None

    try:
        app = RingOverlayApp(
            profile=profile,
            camera_index=args.camera,
            debug=args.debug,
            renderer=emit_json_placements if args.emit_json else None
        )

        def signal_handler(sig, frame):
            logger.info("Received shutdown signal")
            if app:
                app.stop()

        signal.signal(signal.SIGINT, signal_handler)
        # SIGTERM is not available on Windows
        if sys.platform != 'win32':
            signal.signal(signal.SIGTERM, signal_handler)

        app.initialize()
        app.run()

        return EXIT_SUCCESS

    except CameraError as e:
        logger.error(f"Camera error: {e}")
        return EXIT_CAMERA_ERROR
    except Exception as e:
        logger.exception(f"Runtime error: {e}")
        return EXIT_RUNTIME_ERROR
    finally:
        if app:
            app.close()


if __name__ == "__main__":
    sys.exit(main())
