"""Weighted demand ensemble and route demand forecast generation"""

import math
import numpy as np
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Union
from rakeplan.data.schemas import DemandForecast, RouteDemandHistory
from rakeplan.models.base import calculate_metrics
from rakeplan.models.baseline_forecasters import (
    MovingAverageForecaster,
    ExponentialSmoothingForecaster,
    LinearTrendForecaster,
    SeasonalForecaster,
    finite_values
)
from rakeplan.utils.config import ConfigLoader
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


DEFAULT_WEIGHTS = {
    'moving_average': 0.20,
    'exponential_smoothing': 0.30,
    'linear_trend': 0.25,
    'seasonal': 0.25
}

CONFIDENCE_FLOOR = 0.5


class DemandEnsemble:
    """
    Ensemble demand model

    Combines four baseline forecasters with fixed weights:
    - Moving average (window 7): 20%
    - Exponential smoothing (alpha 0.3): 30%
    - Linear trend: 25%
    - Seasonal decomposition (season 7): 25%

    Weights and member parameters can be overridden in the `forecasting`
    section of the configuration. Weights must sum to 1.0.
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """
        Initialize Demand Ensemble

        Args:
            config: Configuration loader instance (built-in defaults when omitted)
        """
        config = config if config else ConfigLoader.from_dict({})

        self.weights = dict(config.get('forecasting.weights', DEFAULT_WEIGHTS))
        self._check_weights()

        self.members = {
            'moving_average': MovingAverageForecaster(
                window=config.get('forecasting.sma_window', 7)
            ),
            'exponential_smoothing': ExponentialSmoothingForecaster(
                alpha=config.get('forecasting.smoothing_alpha', 0.3)
            ),
            'linear_trend': LinearTrendForecaster(),
            'seasonal': SeasonalForecaster(
                season_length=config.get('forecasting.season_length', 7)
            )
        }

    def _check_weights(self):
        missing = set(DEFAULT_WEIGHTS) - set(self.weights)
        if missing:
            raise ValueError(f"Ensemble weights missing for: {sorted(missing)}")

        total = sum(self.weights[name] for name in DEFAULT_WEIGHTS)
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Ensemble weights must sum to 1.0 (got {total:.4f})")

    def predict(self, series: Sequence[float], periods_ahead: int = 1) -> float:
        """
        Weighted combination of all member forecasts

        Args:
            series: Historical values, oldest first
            periods_ahead: Forecast horizon

        Returns:
            Combined (unrounded) forecast
        """
        member_forecasts = self.predict_members(series, periods_ahead)

        return float(sum(
            self.weights[name] * value for name, value in member_forecasts.items()
        ))

    def predict_members(self, series: Sequence[float], periods_ahead: int = 1) -> Dict[str, float]:
        """Individual forecast of every member model"""
        return {
            name: model.fit(series).predict(periods_ahead)
            for name, model in self.members.items()
        }

    def backtest(self, series: Sequence[float], holdout_periods: int = 7) -> Dict[str, Dict]:
        """
        Compare members and ensemble on the tail of a series

        The last `holdout_periods` observations are held out; every model is
        fitted on the rest and forecasts 1..holdout_periods steps ahead.

        Args:
            series: Historical values, oldest first
            holdout_periods: Number of trailing observations to hold out

        Returns:
            Dictionary with metrics per member, the ensemble metrics, the best
            model name and the weights in use
        """
        data = np.asarray(series, dtype=float)

        if holdout_periods < 1 or len(data) <= holdout_periods:
            raise ValueError(
                f"Insufficient data for backtest: {len(data)} observations, "
                f"{holdout_periods} holdout periods"
            )

        train = data[:-holdout_periods]
        holdout = data[-holdout_periods:]

        logger.info(f"Backtesting ensemble: {len(train)} train / {len(holdout)} holdout periods")

        member_metrics = {
            name: model.fit(train).validate(holdout)
            for name, model in self.members.items()
        }

        predicted = np.array([self.predict(train, i + 1) for i in range(len(holdout))])
        ensemble_metrics = calculate_metrics(holdout, predicted)

        candidates = list(member_metrics.items()) + [('ensemble', ensemble_metrics)]
        ranked = [(name, m['mae']) for name, m in candidates if not np.isnan(m['mae'])]
        best_model = min(ranked, key=lambda x: x[1])[0] if ranked else None

        logger.info(f"  Ensemble: MAE={ensemble_metrics['mae']:,.2f}")
        logger.info(f"  Best model: {best_model}")

        return {
            'members': member_metrics,
            'ensemble': ensemble_metrics,
            'best_model': best_model,
            'weights': self.get_weights()
        }

    def get_weights(self) -> Dict[str, float]:
        """
        Get current ensemble weights

        Returns:
            Dictionary with model weights
        """
        return self.weights.copy()


def calculate_confidence(series: Sequence[float]) -> float:
    """
    Confidence from the coefficient of variation of the history

    1 - stddev / mean, clamped to [0.5, 1.0]. Series without a usable mean
    (empty after dropping NaN / infinite values, or mean 0) get the 0.5 floor.
    """
    data = finite_values(series)

    if len(data) == 0:
        return CONFIDENCE_FLOOR

    mean = data.mean()
    std = data.std()

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        raw = 1 - std / mean if mean != 0 else np.nan

    if not np.isfinite(raw):
        return CONFIDENCE_FLOOR

    return float(min(1.0, max(CONFIDENCE_FLOOR, raw)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def generate_demand_forecast(
    route_id: str,
    historical_data: Sequence[float],
    target_date: Union[date, datetime],
    factors: Optional[Iterable[str]] = None,
    ensemble: Optional[DemandEnsemble] = None
) -> DemandForecast:
    """
    Generate demand forecast for a route

    Args:
        route_id: Route identifier
        historical_data: Historical demand, oldest first
        target_date: Date the forecast applies to
        factors: Informational labels attached to the forecast
        ensemble: Ensemble to use (default weights when omitted)

    Returns:
        DemandForecast with a non-negative integer demand and a confidence in [0.5, 1.0]
    """
    ensemble = ensemble if ensemble else DemandEnsemble()

    combined = ensemble.predict(historical_data, periods_ahead=1)
    if not np.isfinite(combined):
        combined = 0.0

    forecast = DemandForecast(
        route_id=route_id,
        date=target_date,
        predicted_demand=max(0, _round_half_up(combined)),
        confidence=calculate_confidence(historical_data),
        factors=list(factors or [])
    )

    logger.debug(f"Forecast {route_id}: demand={forecast.predicted_demand} "
                 f"confidence={forecast.confidence:.2f}")

    return forecast


def batch_forecast(
    histories: Iterable[RouteDemandHistory],
    target_date: Union[date, datetime],
    ensemble: Optional[DemandEnsemble] = None
) -> List[DemandForecast]:
    """
    Batch forecast for multiple routes

    Each route is forecast independently from its own history.
    """
    ensemble = ensemble if ensemble else DemandEnsemble()

    forecasts = [
        generate_demand_forecast(
            history.route_id,
            history.historical_data,
            target_date,
            history.factors,
            ensemble=ensemble
        )
        for history in histories
    ]

    logger.info(f"Generated {len(forecasts)} route forecasts for {target_date}")

    return forecasts
