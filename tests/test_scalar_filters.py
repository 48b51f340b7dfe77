import pytest

from ring_overlay_tracker.scalar_filters import ExponentialSmoothing, KalmanFilter


class TestExponentialSmoothing:
    def test_blends_towards_measurement(self):
        ema = ExponentialSmoothing(alpha=0.5, initial_value=0.0)
        assert ema.filter(10.0) == pytest.approx(5.0)
        assert ema.filter(10.0) == pytest.approx(7.5)

    def test_first_measurement_adopted_without_initial_value(self):
        ema = ExponentialSmoothing(alpha=0.3)
        assert ema.value is None
        assert ema.filter(42.0) == 42.0
        assert ema.filter(42.0) == 42.0

    def test_alpha_one_disables_smoothing(self):
        ema = ExponentialSmoothing(alpha=1.0, initial_value=0.0)
        assert ema.filter(3.0) == 3.0
        assert ema.filter(-7.0) == -7.0

    def test_reset_discards_history(self):
        ema = ExponentialSmoothing(alpha=0.2, initial_value=0.0)
        ema.filter(100.0)
        ema.reset(50.0)
        assert ema.value == 50.0
        assert ema.filter(50.0) == pytest.approx(50.0)

    @pytest.mark.parametrize("alpha", [0.0, -0.1, 1.5])
    def test_invalid_alpha_rejected(self, alpha):
        with pytest.raises(ValueError):
            ExponentialSmoothing(alpha=alpha)


class TestKalmanFilter:
    def test_update_rule(self):
        kf = KalmanFilter(process_noise=0.01, measurement_noise=0.1, initial_value=0.0)
        p = 1.0 + 0.01
        k = p / (p + 0.1)

        assert kf.filter(1.0) == pytest.approx(k)
        assert kf.covariance == pytest.approx((1 - k) * p)

    def test_zero_process_noise_is_idempotent_on_converged_value(self):
        kf = KalmanFilter(process_noise=0.0, measurement_noise=0.1, initial_value=5.0)
        for _ in range(10):
            assert kf.filter(5.0) == 5.0

    def test_covariance_shrinks_without_process_noise(self):
        kf = KalmanFilter(process_noise=0.0, measurement_noise=0.1)
        kf.filter(3.0)
        previous = kf.covariance
        for _ in range(5):
            kf.filter(3.0)
            assert kf.covariance < previous
            previous = kf.covariance
        assert kf.value == 3.0

    def test_low_measurement_noise_trusts_measurements(self):
        trusting = KalmanFilter(process_noise=0.1, measurement_noise=0.001, initial_value=0.0)
        sceptical = KalmanFilter(process_noise=0.1, measurement_noise=10.0, initial_value=0.0)
        assert trusting.filter(10.0) > sceptical.filter(10.0)

    def test_reset_restores_covariance(self):
        kf = KalmanFilter(process_noise=0.01, measurement_noise=0.1, initial_covariance=2.0)
        kf.filter(1.0)
        kf.filter(2.0)
        kf.reset(9.0)
        assert kf.value == 9.0
        assert kf.covariance == 2.0

    def test_invalid_noise_rejected(self):
        with pytest.raises(ValueError):
            KalmanFilter(process_noise=-1.0)
        with pytest.raises(ValueError):
            KalmanFilter(measurement_noise=0.0)
