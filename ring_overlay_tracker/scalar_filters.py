"""
Single-channel smoothing filters.

Exponential moving average and scalar Kalman filter, both with the same
filter/reset contract so the vector smoothers can compose either one.
"""

from typing import Optional

from .config import (
    EXPONENTIAL_ALPHA,
    KALMAN_PROCESS_NOISE,
    KALMAN_MEASUREMENT_NOISE,
    KALMAN_INITIAL_COVARIANCE,
)


class ExponentialSmoothing:
    """
    Exponential moving average.

    value = alpha * measurement + (1 - alpha) * value

    Lower alpha = smoother but more lag.
    Higher alpha = more responsive but more jitter.
    """

    def __init__(
        self,
        alpha: float = EXPONENTIAL_ALPHA,
        initial_value: Optional[float] = None
    ):
        """
        Initialize exponential smoothing.

        Args:
            alpha: Smoothing factor in (0, 1]. 1.0 disables smoothing.
            initial_value: Starting estimate. If None, the first measurement
                           is adopted verbatim.
        """
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")

        self.alpha = alpha
        self._value: Optional[float] = initial_value

    def filter(self, measurement: float) -> float:
        """
        Update with a new measurement.

        Args:
            measurement: New raw value.

        Returns:
            Smoothed value.
        """
        if self._value is None:
            self._value = float(measurement)
            return self._value

        self._value = self.alpha * measurement + (1.0 - self.alpha) * self._value
        return self._value

    def reset(self, value: float) -> None:
        """Reinitialize the estimate to the given value."""
        self._value = float(value)

    @property
    def value(self) -> Optional[float]:
        """Current estimate, None before the first measurement."""
        return self._value


class KalmanFilter:
    """
    One-dimensional Kalman filter with a constant-position model.

    Predict:  p = p + q
    Update:   k = p / (p + r)
              x = x + k * (z - x)
              p = (1 - k) * p

    A smaller measurement noise r relative to the process noise q trusts
    new measurements more.
    """

    def __init__(
        self,
        process_noise: float = KALMAN_PROCESS_NOISE,
        measurement_noise: float = KALMAN_MEASUREMENT_NOISE,
        initial_value: Optional[float] = None,
        initial_covariance: float = KALMAN_INITIAL_COVARIANCE
    ):
        """
        Initialize the Kalman filter.

        Args:
            process_noise: Process noise covariance q (>= 0).
            measurement_noise: Measurement noise covariance r (> 0).
            initial_value: Starting estimate. If None, the first measurement
                           is adopted verbatim.
            initial_covariance: Error covariance after construction or reset.
        """
        if process_noise < 0:
            raise ValueError(f"process_noise must be >= 0, got {process_noise}")
        if measurement_noise <= 0:
            raise ValueError(f"measurement_noise must be > 0, got {measurement_noise}")

        self.q = process_noise
        self.r = measurement_noise
        self.initial_covariance = initial_covariance

        self._x: Optional[float] = initial_value
        self._p: float = initial_covariance

    def filter(self, measurement: float) -> float:
        """
        Update filter with new measurement.

        Args:
            measurement: New measured value.

        Returns:
            Filtered value.
        """
        if self._x is None:
            self.reset(measurement)
            return self._x

        # Prediction update
        self._p = self._p + self.q

        # Measurement update
        k = self._p / (self._p + self.r)
        self._x = self._x + k * (measurement - self._x)
        self._p = (1.0 - k) * self._p

        return self._x

    def reset(self, value: float) -> None:
        """Reset estimate to value and covariance to its initial level."""
        self._x = float(value)
        self._p = self.initial_covariance

    @property
    def value(self) -> Optional[float]:
        """Current estimate, None before the first measurement."""
        return self._x

    @property
    def covariance(self) -> float:
        """Current estimation error covariance."""
        return self._p
