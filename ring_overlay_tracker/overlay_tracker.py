"""
Per-frame overlay pipeline.

Turns the detector's hand list for one frame into world placements:
reduce each hand to an anchor, filter it through that hand's smoother,
then project it for the renderer.
"""

from typing import Iterable, Optional

from .anchor_reducer import Anchor, AnchorConfig, reduce_to_anchor
from .landmarks import HandLandmarks
from .logger import get_logger
from .projection import ProjectionConfig, WorldPlacement, project_anchor
from .target_registry import HandLabel, TargetRegistry

logger = get_logger("OverlayTracker")


class OverlayTracker:
    """
    Stateless frame processor over a caller-owned target registry.

    All filter state lives in the registry, so independent sessions use
    independent registries.

    Attributes:
        registry: Per-hand smoother store.
        anchor_config: Anchor reduction settings.
        projection_config: Render camera and tuning offsets.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        anchor_config: Optional[AnchorConfig] = None,
        projection_config: Optional[ProjectionConfig] = None,
        min_confidence: float = 0.0,
        max_placements: Optional[int] = None
    ):
        """
        Initialize the overlay tracker.

        Args:
            registry: Target registry owning the per-hand smoothers.
            anchor_config: Anchor configuration, or None for defaults.
            projection_config: Projection configuration, or None for defaults.
            min_confidence: Hands scoring below this are ignored.
            max_placements: Cap on placements per frame, None for no cap.
        """
        self.registry = registry
        self.anchor_config = anchor_config or AnchorConfig()
        self.projection_config = projection_config or ProjectionConfig()
        self.min_confidence = min_confidence
        self.max_placements = max_placements

        self._last_anchors: dict[HandLabel, Anchor] = {}

    def process_frame(
        self,
        hands: Iterable[HandLandmarks],
        width: float,
        height: float,
        timestamp: float
    ) -> list[WorldPlacement]:
        """
        Process one frame of detections.

        Args:
            hands: Detected hands for this frame (may be empty).
            width: Frame width in pixels.
            height: Frame height in pixels.
            timestamp: Monotonic frame time in seconds.

        Returns:
            One placement per usable hand, in detection order.
        """
        self._last_anchors = {}
        placements: list[WorldPlacement] = []

        for label, hand in self._select_hands(hands):
            anchor = reduce_to_anchor(hand, self.anchor_config)
            if anchor is None:
                continue

            smoother = self.registry.get_or_create(label)
            pose = smoother.filter(anchor.x, anchor.y, anchor.z, anchor.rotation, timestamp)
            filtered = Anchor(x=pose.x, y=pose.y, z=pose.z, rotation=pose.rotation)
            self._last_anchors[label] = filtered

            placements.append(project_anchor(
                filtered,
                width,
                height,
                self.projection_config,
                label=label.value
            ))

        if self.max_placements is not None:
            placements = placements[:self.max_placements]

        return placements

    def _select_hands(
        self,
        hands: Iterable[HandLandmarks]
    ) -> list[tuple[HandLabel, HandLandmarks]]:
        """
        Filter detections down to one confident hand per label.

        When the detector reports the same label twice, the higher score
        wins and keeps the position of the first occurrence.
        """
        selected: dict[HandLabel, HandLandmarks] = {}

        for hand in hands:
            score = hand.score if hand.score is not None else 1.0
            if score < self.min_confidence:
                logger.debug(f"Skipping {hand.handedness} hand (score {score:.2f})")
                continue

            label = HandLabel.parse(hand.handedness)
            if label is None:
                logger.warning(f"Unknown hand label '{hand.handedness}', skipping")
                continue

            current = selected.get(label)
            if current is None:
                selected[label] = hand
            elif score > (current.score if current.score is not None else 1.0):
                selected[label] = hand

        return list(selected.items())

    @property
    def last_anchors(self) -> dict[HandLabel, Anchor]:
        """Filtered pixel-space anchors from the last frame, keyed by hand."""
        return dict(self._last_anchors)
