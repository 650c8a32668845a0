"""Demand forecasting models"""

from .base import BaseForecaster
from .baseline_forecasters import (
    simple_moving_average,
    exponential_smoothing,
    linear_trend,
    seasonal_forecast,
    MovingAverageForecaster,
    ExponentialSmoothingForecaster,
    LinearTrendForecaster,
    SeasonalForecaster
)
from .ensemble import DemandEnsemble, generate_demand_forecast, batch_forecast

__all__ = [
    'BaseForecaster',
    'simple_moving_average',
    'exponential_smoothing',
    'linear_trend',
    'seasonal_forecast',
    'MovingAverageForecaster',
    'ExponentialSmoothingForecaster',
    'LinearTrendForecaster',
    'SeasonalForecaster',
    'DemandEnsemble',
    'generate_demand_forecast',
    'batch_forecast'
]
