"""Tests for the demand forecasting methods and ensemble"""

import math
from datetime import date

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from rakeplan.data.schemas import RouteDemandHistory
from rakeplan.models import (
    DemandEnsemble,
    LinearTrendForecaster,
    MovingAverageForecaster,
    batch_forecast,
    exponential_smoothing,
    generate_demand_forecast,
    linear_trend,
    seasonal_forecast,
    simple_moving_average
)
from rakeplan.models.base import calculate_metrics
from rakeplan.models.ensemble import calculate_confidence
from rakeplan.utils.config import ConfigLoader


WEEKLY_PATTERN = [10, 20, 30, 40, 50, 60, 70]


class TestSimpleMovingAverage:
    def test_averages_trailing_window(self):
        assert simple_moving_average([10, 20, 30, 40], 2) == 35

    def test_short_series_returns_last_value(self):
        assert simple_moving_average([5, 6], 3) == 6

    def test_empty_series_returns_zero(self):
        assert simple_moving_average([], 7) == 0

    def test_window_below_one_uses_last_value(self):
        assert simple_moving_average([1, 2, 3], 0) == 3

    @given(
        series=st.lists(st.integers(min_value=0, max_value=10_000), min_size=1, max_size=40),
        window=st.integers(min_value=1, max_value=40)
    )
    @settings(max_examples=200, deadline=None)
    def test_bounded_by_series_range(self, series, window):
        if window > len(series):
            window = len(series)
        result = simple_moving_average(series, window)
        assert min(series) <= result <= max(series)


class TestExponentialSmoothing:
    def test_two_points_half_alpha(self):
        assert exponential_smoothing([10, 20], 0.5) == 15

    def test_empty_series(self):
        assert exponential_smoothing([]) == 0

    @given(value=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False))
    def test_single_value_is_returned(self, value):
        assert exponential_smoothing([value]) == value

    def test_default_alpha(self):
        # 0.3 * 20 + 0.7 * 10
        assert exponential_smoothing([10, 20]) == pytest.approx(13.0)


class TestLinearTrend:
    def test_arithmetic_series_extrapolates_next_term(self):
        assert linear_trend([2, 5, 8, 11]) == pytest.approx(14)

    def test_periods_ahead(self):
        assert linear_trend([1, 2, 3], periods_ahead=3) == pytest.approx(6)

    def test_flat_series_has_no_slope(self):
        assert linear_trend([5, 5, 5, 5]) == pytest.approx(5)

    def test_short_series(self):
        assert linear_trend([4]) == 4
        assert linear_trend([]) == 0

    def test_non_finite_points_dropped(self):
        assert linear_trend([1, float('nan'), 2, float('inf'), 3]) == pytest.approx(4)
        assert simple_moving_average([5, float('nan')], 1) == 5
        assert exponential_smoothing([float('nan'), 10, 20], 0.5) == 15

    @given(
        start=st.integers(min_value=-1000, max_value=1000),
        step=st.integers(min_value=-100, max_value=100),
        n=st.integers(min_value=2, max_value=30)
    )
    @settings(max_examples=50, deadline=None)
    def test_arithmetic_series_property(self, start, step, n):
        series = [start + step * i for i in range(n)]
        assert linear_trend(series) == pytest.approx(start + step * n, abs=1e-6)


class TestSeasonalForecast:
    def test_short_series_falls_back_to_smoothing(self):
        series = [10, 12, 11, 13, 12]
        assert seasonal_forecast(series, season_length=7) == pytest.approx(exponential_smoothing(series))

    def test_pure_weekly_pattern_repeats(self):
        series = WEEKLY_PATTERN * 3
        # Next observation is phase 0 of the pattern
        assert seasonal_forecast(series, season_length=7) == pytest.approx(10)
        assert seasonal_forecast(series, season_length=7, periods_ahead=3) == pytest.approx(30)

    def test_all_zero_series(self):
        assert seasonal_forecast([0] * 14, season_length=7) == 0

    def test_phase_without_demand_stays_finite(self):
        series = [0, 10, 10, 10, 10, 10, 10] * 2
        result = seasonal_forecast(series, season_length=7)
        assert math.isfinite(result)
        assert result == pytest.approx(0)


class TestForecasterClasses:
    def test_predict_requires_fit(self):
        with pytest.raises(ValueError):
            MovingAverageForecaster(window=3).predict()

    def test_validate_perfect_forecast(self):
        model = MovingAverageForecaster(window=2).fit([10, 20, 30, 40])
        metrics = model.validate([35, 35])
        assert metrics['mae'] == 0
        assert metrics['mape'] == 0
        assert model.get_metadata()['observations'] == 4

    def test_linear_trend_forecaster_horizon(self):
        model = LinearTrendForecaster().fit([1, 2, 3, 4])
        assert model.predict(2) == pytest.approx(6)

    def test_metrics_skip_zero_actuals_for_mape(self):
        metrics = calculate_metrics(np.array([0.0, 0.0]), np.array([1.0, 2.0]))
        assert np.isnan(metrics['mape'])
        assert metrics['mae'] == pytest.approx(1.5)


class TestDemandEnsemble:
    def test_default_weights(self):
        weights = DemandEnsemble().get_weights()
        assert weights == {
            'moving_average': 0.20,
            'exponential_smoothing': 0.30,
            'linear_trend': 0.25,
            'seasonal': 0.25
        }
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_weights_must_sum_to_one(self):
        config = ConfigLoader.from_dict({'forecasting': {'weights': {
            'moving_average': 0.5,
            'exponential_smoothing': 0.5,
            'linear_trend': 0.5,
            'seasonal': 0.5
        }}})
        with pytest.raises(ValueError, match="sum to 1.0"):
            DemandEnsemble(config)

    def test_combination_of_members(self):
        series = [85, 92, 78, 95, 88, 102, 96, 89, 94, 87, 99, 91, 86, 98, 93]
        ensemble = DemandEnsemble()
        members = ensemble.predict_members(series)
        expected = (0.20 * members['moving_average'] + 0.30 * members['exponential_smoothing']
                    + 0.25 * members['linear_trend'] + 0.25 * members['seasonal'])
        assert ensemble.predict(series) == pytest.approx(expected)

    def test_backtest_reports_every_model(self):
        series = [100 + (i % 7) * 5 for i in range(30)]
        result = DemandEnsemble().backtest(series, holdout_periods=7)
        assert set(result['members']) == {
            'moving_average', 'exponential_smoothing', 'linear_trend', 'seasonal'
        }
        assert 'mae' in result['ensemble']
        assert result['best_model'] in set(result['members']) | {'ensemble'}

    def test_backtest_needs_training_data(self):
        with pytest.raises(ValueError, match="Insufficient data"):
            DemandEnsemble().backtest([1, 2, 3], holdout_periods=3)


class TestGenerateDemandForecast:
    def test_flat_history(self):
        forecast = generate_demand_forecast('route_001', [100] * 30, date(2024, 1, 2), ['holiday'])
        assert forecast.route_id == 'route_001'
        assert forecast.date == date(2024, 1, 2)
        assert forecast.predicted_demand == 100
        assert forecast.confidence == 1.0
        assert forecast.factors == ['holiday']

    def test_empty_history_is_safe(self):
        forecast = generate_demand_forecast('route_001', [], date(2024, 1, 2))
        assert forecast.predicted_demand == 0
        assert forecast.confidence == 0.5
        assert forecast.factors == []

    def test_zero_mean_history_clamps_confidence(self):
        forecast = generate_demand_forecast('route_001', [0] * 10, date(2024, 1, 2))
        assert forecast.predicted_demand == 0
        assert forecast.confidence == 0.5

    def test_volatile_history_hits_confidence_floor(self):
        assert calculate_confidence([0, 200, 0, 200]) == 0.5

    def test_declining_history_never_negative(self):
        forecast = generate_demand_forecast('route_001', [50, 30, 10, 0, 0], date(2024, 1, 2))
        assert forecast.predicted_demand >= 0

    def test_missing_observations_are_skipped(self):
        forecast = generate_demand_forecast('route_001', [10, float('nan'), 12], date(2024, 1, 2))
        expected = generate_demand_forecast('route_001', [10, 12], date(2024, 1, 2))

        assert forecast.predicted_demand == expected.predicted_demand
        assert forecast.confidence == expected.confidence
        assert forecast.predicted_demand > 0

    def test_only_missing_observations(self):
        forecast = generate_demand_forecast('route_001', [float('nan'), float('inf')], date(2024, 1, 2))
        assert forecast.predicted_demand == 0
        assert forecast.confidence == 0.5

    @given(series=st.lists(
        st.one_of(
            st.floats(min_value=-1000, max_value=10_000, allow_nan=False, allow_infinity=False),
            st.just(float('nan'))
        ),
        max_size=30
    ))
    @settings(max_examples=50, deadline=None)
    def test_output_ranges(self, series):
        forecast = generate_demand_forecast('route_x', series, date(2024, 1, 2))
        assert 0.5 <= forecast.confidence <= 1.0
        assert isinstance(forecast.predicted_demand, int)
        assert forecast.predicted_demand >= 0


def test_batch_forecast_is_per_route():
    histories = [
        RouteDemandHistory('route_001', [100] * 14, ['weekday peak']),
        RouteDemandHistory('route_002', [40] * 14)
    ]
    forecasts = batch_forecast(histories, date(2024, 1, 2))

    assert [f.route_id for f in forecasts] == ['route_001', 'route_002']
    assert [f.predicted_demand for f in forecasts] == [100, 40]
    assert forecasts[0].factors == ['weekday peak']
