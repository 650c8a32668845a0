"""Baseline demand forecasting methods

Each method exists as a pure function over a numeric series and as a
BaseForecaster subclass wrapping it. The functions never raise on short or
empty series; they degrade to the last / first value or 0. NaN and infinite
observations are dropped first.
"""

import numpy as np
from typing import Sequence
from sklearn.linear_model import LinearRegression
from rakeplan.models.base import BaseForecaster
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


def finite_values(series: Sequence[float]) -> np.ndarray:
    """Series as a float array with NaN / infinite observations removed"""
    data = np.asarray(series, dtype=float)
    return data[np.isfinite(data)]


def simple_moving_average(series: Sequence[float], window: int) -> float:
    """
    Average of the last `window` observations

    Args:
        series: Historical values, oldest first
        window: Number of trailing periods to average (values below 1 act as 1)

    Returns:
        Moving average, the last value when the series is shorter than the
        window, or 0.0 for an empty series
    """
    data = finite_values(series)
    window = max(1, int(window))

    if len(data) < window:
        return float(data[-1]) if len(data) else 0.0

    return float(np.mean(data[-window:]))


def exponential_smoothing(series: Sequence[float], alpha: float = 0.3) -> float:
    """
    Simple exponential smoothing seeded with the first observation

    Args:
        series: Historical values, oldest first
        alpha: Smoothing factor (weight of the newest observation)

    Returns:
        Smoothed level after the last observation (0.0 for an empty series)
    """
    data = finite_values(series)

    if len(data) == 0:
        return 0.0

    level = data[0]
    for value in data[1:]:
        level = alpha * value + (1 - alpha) * level

    return float(level)


def linear_trend(series: Sequence[float], periods_ahead: int = 1) -> float:
    """
    Least-squares line over positions 1..n, extrapolated beyond the series

    Args:
        series: Historical values, oldest first
        periods_ahead: Steps beyond position n to evaluate the line at

    Returns:
        Trend value at position n + periods_ahead; the first value (or 0.0)
        when fewer than two observations exist
    """
    data = finite_values(series)
    n = len(data)

    if n < 2:
        return float(data[0]) if n else 0.0

    X = np.arange(1, n + 1, dtype=float).reshape(-1, 1)

    model = LinearRegression()
    model.fit(X, data)

    slope = model.coef_[0]
    intercept = model.intercept_

    return float(slope * (n + periods_ahead) + intercept)


def seasonal_forecast(
    series: Sequence[float],
    season_length: int = 7,
    periods_ahead: int = 1
) -> float:
    """
    Multiplicative seasonal decomposition with a linear trend

    Needs at least two full seasons, otherwise falls back to exponential
    smoothing. Seasonal indices are per-phase averages relative to the
    overall mean; the deseasonalized series is extrapolated with
    linear_trend and the index of the target phase is reapplied.

    Args:
        series: Historical values, oldest first
        season_length: Number of periods in one season (7 = weekly cycle on daily data)
        periods_ahead: Forecast horizon

    Returns:
        Seasonal forecast value
    """
    data = finite_values(series)
    n = len(data)

    if n < season_length * 2:
        return exponential_smoothing(data)

    overall_average = np.mean(data)
    if overall_average == 0:
        # No level to normalize against
        return linear_trend(data, periods_ahead)

    phases = np.arange(n) % season_length
    seasonal_averages = np.array([
        data[phases == phase].mean() for phase in range(season_length)
    ])
    seasonal_indices = seasonal_averages / overall_average

    # A phase that never sees demand has index 0; dividing by 1 keeps it at 0
    divisors = np.where(seasonal_indices == 0, 1.0, seasonal_indices)
    with np.errstate(over='ignore'):
        deseasonalized = data / divisors[phases]

    if not np.all(np.isfinite(deseasonalized)):
        return exponential_smoothing(data)

    trend_value = linear_trend(deseasonalized, periods_ahead)

    target_phase = (n + periods_ahead - 1) % season_length
    return float(trend_value * seasonal_indices[target_phase])


class MovingAverageForecaster(BaseForecaster):
    """
    Moving Average forecaster

    Uses the average of the last N periods as the forecast for every horizon.
    """

    def __init__(self, window: int = 7):
        """
        Initialize Moving Average forecaster

        Args:
            window: Number of periods to average (7 = one week of daily data)
        """
        super().__init__(model_name=f'MA-{window}')
        self.window = window

    def predict(self, periods_ahead: int = 1) -> float:
        if not self.is_fitted:
            raise ValueError("Model must be fitted before making predictions")
        return simple_moving_average(self.series, self.window)


class ExponentialSmoothingForecaster(BaseForecaster):
    """Exponential smoothing forecaster (flat forecast at the smoothed level)"""

    def __init__(self, alpha: float = 0.3):
        super().__init__(model_name=f'ES-{alpha}')
        self.alpha = alpha

    def predict(self, periods_ahead: int = 1) -> float:
        if not self.is_fitted:
            raise ValueError("Model must be fitted before making predictions")
        return exponential_smoothing(self.series, self.alpha)


class LinearTrendForecaster(BaseForecaster):
    """
    Linear Trend forecaster

    Fits a linear regression over the period index and extrapolates.
    """

    def __init__(self):
        super().__init__(model_name='Linear Trend')

    def predict(self, periods_ahead: int = 1) -> float:
        if not self.is_fitted:
            raise ValueError("Model must be fitted before making predictions")
        return linear_trend(self.series, periods_ahead)


class SeasonalForecaster(BaseForecaster):
    """
    Seasonal forecaster

    Seasonal indices on top of a deseasonalized linear trend. Degrades to
    exponential smoothing with fewer than two seasons of history.
    """

    def __init__(self, season_length: int = 7):
        super().__init__(model_name=f'Seasonal-{season_length}')
        self.season_length = season_length

    def predict(self, periods_ahead: int = 1) -> float:
        if not self.is_fitted:
            raise ValueError("Model must be fitted before making predictions")

        if len(self.series) < self.season_length * 2:
            logger.debug(f"{self.model_name}: {len(self.series)} observations, "
                         f"falling back to exponential smoothing")

        return seasonal_forecast(self.series, self.season_length, periods_ahead)
