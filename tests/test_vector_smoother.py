import math

import pytest

from ring_overlay_tracker.config import SmoothingSettings
from ring_overlay_tracker.vector_smoother import (
    ExponentialSmoothing3D,
    KalmanFilter3D,
    MotionState,
    SmoothedPose,
    TeleportAwareSmoother,
    classify_motion,
    create_smoother,
)


def _pose_tuple(pose: SmoothedPose) -> tuple[float, float, float, float]:
    return (pose.x, pose.y, pose.z, pose.rotation)


class TestClassifyMotion:
    def test_jump_above_threshold_is_teleport(self):
        state, velocity = classify_motion(151.0, 0.016, 3.0, 150.0, 15.0)
        assert state is MotionState.TELEPORT
        assert velocity == 3.0

    def test_jump_at_threshold_is_not_teleport(self):
        state, _ = classify_motion(150.0, 100.0, 0.0, 150.0, 15.0)
        assert state is MotionState.STILL

    def test_fast_motion_is_moving(self):
        state, velocity = classify_motion(10.0, 0.1, 0.0, 150.0, 15.0)
        assert state is MotionState.MOVING
        assert velocity == pytest.approx(100.0)

    def test_slow_motion_is_still(self):
        state, velocity = classify_motion(1.0, 0.1, 0.0, 150.0, 15.0)
        assert state is MotionState.STILL
        assert velocity == pytest.approx(10.0)

    @pytest.mark.parametrize("dt", [0.0, -0.5])
    def test_non_positive_dt_keeps_previous_velocity(self, dt):
        state, velocity = classify_motion(5.0, dt, 42.0, 150.0, 15.0)
        assert state is MotionState.STILL
        assert velocity == 42.0


class TestTeleportAwareSmoother:
    def test_first_observation_is_returned_verbatim(self):
        smoother = TeleportAwareSmoother()
        pose = smoother.filter(12.5, -3.25, 0.75, 1.2, timestamp=0.0)

        assert _pose_tuple(pose) == (12.5, -3.25, 0.75, 1.2)
        assert smoother.last_motion_state is MotionState.FIRST

    def test_jump_just_above_threshold_snaps_to_raw(self):
        smoother = TeleportAwareSmoother(teleport_threshold=150.0)
        smoother.filter(0.0, 0.0, 0.0, 0.0, timestamp=0.0)

        pose = smoother.filter(150.5, 0.0, 0.0, 0.3, timestamp=1.0)

        assert _pose_tuple(pose) == (150.5, 0.0, 0.0, 0.3)
        assert smoother.last_motion_state is MotionState.TELEPORT
        assert smoother.micro_reference == pose

    def test_jump_just_below_threshold_is_smoothed(self):
        smoother = TeleportAwareSmoother(micro_alpha=0.2, teleport_threshold=150.0, velocity_threshold=15.0)
        smoother.filter(0.0, 0.0, 0.0, 0.0, timestamp=0.0)

        # 149.5 units over 20 s is slow enough to count as still
        pose = smoother.filter(149.5, 0.0, 0.0, 0.0, timestamp=20.0)

        assert smoother.last_motion_state is MotionState.STILL
        assert 0.0 < pose.x < 149.5
        assert pose.x == pytest.approx(0.2 * 149.5)

    def test_fast_motion_follows_raw(self):
        smoother = TeleportAwareSmoother(velocity_threshold=15.0)
        smoother.filter(0.0, 0.0, 0.0, 0.0, timestamp=0.0)

        pose = smoother.filter(10.0, 0.0, 0.0, 0.1, timestamp=0.1)

        assert _pose_tuple(pose) == (10.0, 0.0, 0.0, 0.1)
        assert smoother.last_motion_state is MotionState.MOVING
        assert smoother.velocity == pytest.approx(100.0)

    def test_still_converges_monotonically_without_overshoot(self):
        target = (100.0, 50.0, 10.0, 0.5)
        smoother = TeleportAwareSmoother(micro_alpha=0.2)
        smoother.filter(0.0, 0.0, 0.0, 0.0, timestamp=0.0)

        previous = (0.0, 0.0, 0.0, 0.0)
        for step in range(1, 101):
            pose = _pose_tuple(smoother.filter(*target, timestamp=step * 10.0))
            assert smoother.last_motion_state is MotionState.STILL
            for value, last, goal in zip(pose, previous, target):
                assert last <= value <= goal + 1e-12
            previous = pose

        for value, goal in zip(previous, target):
            assert value == pytest.approx(goal, abs=1e-6)

    def test_zero_elapsed_time_is_still_and_keeps_velocity(self):
        smoother = TeleportAwareSmoother(micro_alpha=0.2, velocity_threshold=15.0)
        smoother.filter(0.0, 0.0, 0.0, 0.0, timestamp=0.0)
        smoother.filter(5.0, 0.0, 0.0, 0.0, timestamp=0.1)
        assert smoother.velocity == pytest.approx(50.0)

        pose = smoother.filter(6.0, 0.0, 0.0, 0.0, timestamp=0.1)

        assert smoother.last_motion_state is MotionState.STILL
        assert smoother.velocity == pytest.approx(50.0)
        assert pose.x == pytest.approx(5.2)

    def test_rotation_blends_across_pi_seam(self):
        smoother = TeleportAwareSmoother(micro_alpha=0.5)
        smoother.filter(0.0, 0.0, 0.0, math.pi - 0.1, timestamp=0.0)

        pose = smoother.filter(0.0, 0.0, 0.0, -math.pi + 0.1, timestamp=1.0)

        # Halfway along the short arc is the seam itself
        assert abs(pose.rotation) == pytest.approx(math.pi)

    def test_is_teleporting_window(self, clock):
        smoother = TeleportAwareSmoother(teleport_window=0.1, clock=clock)
        assert not smoother.is_teleporting()

        smoother.filter(0.0, 0.0, 0.0, 0.0, timestamp=0.0)
        smoother.filter(500.0, 0.0, 0.0, 0.0, timestamp=1.0)

        assert smoother.is_teleporting(now=1.05)
        assert smoother.is_teleporting(now=1.09)
        assert not smoother.is_teleporting(now=1.2)

        clock.now = 1.02
        assert smoother.is_teleporting()

    def test_uses_clock_when_no_timestamp(self, clock):
        smoother = TeleportAwareSmoother(velocity_threshold=15.0, clock=clock)
        smoother.filter(0.0, 0.0, 0.0, 0.0)
        clock.advance(0.1)
        smoother.filter(10.0, 0.0, 0.0, 0.0)

        assert smoother.last_motion_state is MotionState.MOVING
        assert smoother.velocity == pytest.approx(100.0)

    def test_reset_seeds_micro_reference(self):
        smoother = TeleportAwareSmoother(micro_alpha=0.2)
        smoother.filter(0.0, 0.0, 0.0, 0.0, timestamp=0.0)
        smoother.filter(10.0, 0.0, 0.0, 0.0, timestamp=0.1)

        smoother.reset(50.0, 50.0, 0.0, 0.0)
        assert smoother.micro_reference == SmoothedPose(50.0, 50.0, 0.0, 0.0)
        assert smoother.velocity == 0.0

        pose = smoother.filter(51.0, 50.0, 0.0, 0.0, timestamp=0.2)

        assert smoother.last_motion_state is MotionState.STILL
        assert pose.x == pytest.approx(50.2)
        assert smoother.update_count == 3

    def test_sample_far_from_reset_pose_teleports(self):
        smoother = TeleportAwareSmoother(teleport_threshold=150.0)
        smoother.reset(50.0, 50.0, 0.0, 0.0)

        pose = smoother.filter(400.0, 50.0, 0.0, 0.0, timestamp=1.0)

        assert smoother.last_motion_state is MotionState.TELEPORT
        assert pose.x == 400.0
        assert smoother.is_teleporting(now=1.0)

    @pytest.mark.parametrize("kwargs", [
        {"micro_alpha": 0.0},
        {"micro_alpha": 1.5},
        {"teleport_threshold": 0.0},
        {"velocity_threshold": -1.0},
    ])
    def test_invalid_parameters_rejected(self, kwargs):
        with pytest.raises(ValueError):
            TeleportAwareSmoother(**kwargs)


class TestComposites:
    def test_exponential_composite_uses_lower_rotation_alpha(self):
        smoother = ExponentialSmoothing3D(alpha=0.5)
        smoother.filter(0.0, 0.0, 0.0, 0.0)
        pose = smoother.filter(10.0, 10.0, 10.0, 1.0)

        assert pose.x == pytest.approx(5.0)
        assert pose.rotation == pytest.approx(1.0 * 0.5 * 0.9)

    @pytest.mark.parametrize("smoother", [
        ExponentialSmoothing3D(alpha=0.5),
        KalmanFilter3D(),
        TeleportAwareSmoother(micro_alpha=0.5),
    ])
    def test_rotation_stays_near_seam(self, smoother):
        smoother.filter(0.0, 0.0, 0.0, math.pi - 0.05, timestamp=0.0)
        for step in range(1, 6):
            pose = smoother.filter(0.0, 0.0, 0.0, -math.pi + 0.05, timestamp=step * 1.0)
            assert abs(pose.rotation) > math.pi - 0.06
            assert -math.pi < pose.rotation <= math.pi

    def test_kalman_composite_first_sample_adopted(self):
        smoother = KalmanFilter3D()
        pose = smoother.filter(1.0, 2.0, 3.0, 0.4)
        assert _pose_tuple(pose) == (1.0, 2.0, 3.0, 0.4)

    def test_composite_reset(self):
        smoother = KalmanFilter3D()
        smoother.filter(1.0, 2.0, 3.0, 0.4)
        smoother.reset(0.0, 0.0, 0.0, 0.0)
        pose = smoother.filter(0.0, 0.0, 0.0, 0.0)
        assert _pose_tuple(pose) == (0.0, 0.0, 0.0, 0.0)

    @pytest.mark.parametrize("mode", ["teleport", "exponential", "kalman"])
    def test_reset_pose_is_honoured_by_every_mode(self, mode):
        smoother = create_smoother(SmoothingSettings(mode=mode))
        smoother.filter(0.0, 0.0, 0.0, 0.0, timestamp=0.0)

        smoother.reset(50.0, 50.0, 0.0, 0.0)
        pose = smoother.filter(51.0, 50.0, 0.0, 0.0, timestamp=0.1)

        assert 50.0 < pose.x < 51.0
        assert pose.y == pytest.approx(50.0)


class TestCreateSmoother:
    @pytest.mark.parametrize("mode, expected", [
        ("teleport", TeleportAwareSmoother),
        ("exponential", ExponentialSmoothing3D),
        ("kalman", KalmanFilter3D),
    ])
    def test_mode_selects_smoother(self, mode, expected):
        assert isinstance(create_smoother(SmoothingSettings(mode=mode)), expected)

    def test_defaults_to_teleport_aware(self):
        smoother = create_smoother()
        assert isinstance(smoother, TeleportAwareSmoother)
        assert smoother.teleport_threshold == 150.0
        assert smoother.velocity_threshold == 15.0

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            create_smoother(SmoothingSettings(mode="median"))
