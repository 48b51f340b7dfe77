import pytest

from ring_overlay_tracker.anchor_reducer import Anchor, reduce_to_anchor
from ring_overlay_tracker.overlay_tracker import OverlayTracker
from ring_overlay_tracker.projection import project_anchor
from ring_overlay_tracker.target_registry import HandLabel, TargetRegistry

WIDTH, HEIGHT = 640, 480


@pytest.fixture
def tracker() -> OverlayTracker:
    return OverlayTracker(TargetRegistry())


def test_empty_frame_yields_no_placements(tracker):
    assert tracker.process_frame([], WIDTH, HEIGHT, 0.0) == []
    assert tracker.last_anchors == {}


def test_teleport_snaps_to_new_position(tracker, ring_hand):
    tracker.process_frame([ring_hand(100.0, 100.0)], WIDTH, HEIGHT, 0.0)
    assert tracker.last_anchors[HandLabel.RIGHT].x == 100.0

    tracker.process_frame([ring_hand(100.0, 100.0)], WIDTH, HEIGHT, 0.016)
    assert tracker.last_anchors[HandLabel.RIGHT].x == pytest.approx(100.0)

    jumped = ring_hand(500.0, 100.0)
    placements = tracker.process_frame([jumped], WIDTH, HEIGHT, 0.032)

    assert tracker.last_anchors[HandLabel.RIGHT] == reduce_to_anchor(jumped)
    assert tracker.last_anchors[HandLabel.RIGHT].x == 500.0
    expected = project_anchor(Anchor(500.0, 100.0, 0.0, 0.0), WIDTH, HEIGHT, label="Right")
    assert placements == [expected]


def test_hands_are_smoothed_independently(tracker, ring_hand):
    tracker.process_frame([ring_hand(100.0, 100.0, "Left")], WIDTH, HEIGHT, 0.0)
    placements = tracker.process_frame(
        [ring_hand(100.0, 100.0, "Left"), ring_hand(400.0, 300.0, "Right")],
        WIDTH,
        HEIGHT,
        0.016
    )

    assert [p.label for p in placements] == ["Left", "Right"]
    assert tracker.last_anchors[HandLabel.RIGHT] == Anchor(400.0, 300.0, 0.0, 0.0)
    assert set(tracker.registry.keys()) == {HandLabel.LEFT, HandLabel.RIGHT}


def test_hand_without_anchor_does_not_affect_others(tracker, make_hand, ring_hand):
    broken = make_hand("Left", count=5)
    placements = tracker.process_frame([broken, ring_hand(200.0, 200.0)], WIDTH, HEIGHT, 0.0)

    assert [p.label for p in placements] == ["Right"]
    assert HandLabel.LEFT not in tracker.registry


def test_low_confidence_hand_is_skipped(ring_hand):
    tracker = OverlayTracker(TargetRegistry(), min_confidence=0.5)
    placements = tracker.process_frame([ring_hand(200.0, 200.0, score=0.3)], WIDTH, HEIGHT, 0.0)
    assert placements == []


def test_unknown_label_is_skipped(tracker, ring_hand):
    placements = tracker.process_frame([ring_hand(200.0, 200.0, "Unknown")], WIDTH, HEIGHT, 0.0)
    assert placements == []
    assert len(tracker.registry) == 0


def test_duplicate_label_keeps_highest_score(tracker, ring_hand):
    placements = tracker.process_frame(
        [ring_hand(100.0, 100.0, score=0.6), ring_hand(300.0, 300.0, score=0.95)],
        WIDTH,
        HEIGHT,
        0.0
    )

    assert len(placements) == 1
    assert tracker.last_anchors[HandLabel.RIGHT].x == 300.0


def test_max_placements_caps_output(ring_hand):
    tracker = OverlayTracker(TargetRegistry(), max_placements=1)
    placements = tracker.process_frame(
        [ring_hand(100.0, 100.0, "Left"), ring_hand(400.0, 300.0, "Right")],
        WIDTH,
        HEIGHT,
        0.0
    )
    assert [p.label for p in placements] == ["Left"]
