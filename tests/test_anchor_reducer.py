import math

import pytest

from ring_overlay_tracker.anchor_reducer import AnchorConfig, reduce_to_anchor
from ring_overlay_tracker.landmarks import LandmarkIndex


def test_anchor_blends_base_and_joint(make_hand):
    hand = make_hand(points={13: (100.0, 200.0, 10.0), 14: (200.0, 200.0, 20.0)})

    anchor = reduce_to_anchor(hand)

    assert anchor.x == pytest.approx(100.0 * 0.18 + 200.0 * 0.82)
    assert anchor.y == pytest.approx(200.0)
    assert anchor.z == pytest.approx(10.0 * 0.18 + 20.0 * 0.82)
    assert anchor.rotation == pytest.approx(0.0)


def test_rotation_follows_segment(make_hand):
    hand = make_hand(points={13: (0.0, 100.0), 14: (0.0, 0.0)})
    anchor = reduce_to_anchor(hand)
    assert anchor.rotation == pytest.approx(-math.pi / 2)


def test_missing_depth_counts_as_zero(make_hand):
    hand = make_hand(points={13: (0.0, 0.0, 10.0), 14: (10.0, 0.0)})
    anchor = reduce_to_anchor(hand)
    assert anchor.z == pytest.approx(1.8)


def test_custom_weight(make_hand):
    hand = make_hand(points={13: (0.0, 0.0), 14: (100.0, 0.0)})
    anchor = reduce_to_anchor(hand, AnchorConfig(base_weight=0.5))
    assert anchor.x == pytest.approx(50.0)


def test_too_few_landmarks_yields_no_anchor(make_hand):
    hand = make_hand(count=10)
    assert reduce_to_anchor(hand) is None


def test_non_finite_landmark_yields_no_anchor(make_hand):
    hand = make_hand(points={13: (float("nan"), 0.0), 14: (10.0, 0.0)})
    assert reduce_to_anchor(hand) is None


@pytest.mark.parametrize("kwargs", [
    {"base_weight": 1.5},
    {"base_weight": -0.1},
    {"base_index": -1},
])
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        AnchorConfig(**kwargs)


def test_coinciding_points_give_exact_position(make_hand):
    hand = make_hand(points={13: (500.0, 100.0, 0.0), 14: (500.0, 100.0, 0.0)})
    anchor = reduce_to_anchor(hand)
    assert (anchor.x, anchor.y, anchor.z) == (500.0, 100.0, 0.0)


def test_default_points_are_ring_finger_joints():
    config = AnchorConfig()
    assert config.base_index == LandmarkIndex.RING_MCP
    assert config.joint_index == LandmarkIndex.RING_PIP
