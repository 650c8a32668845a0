"""Tests for schedule performance metrics"""

from datetime import timedelta

import pytest

from rakeplan.scheduling import (
    SchedulingConstraints,
    calculate_on_time_performance,
    calculate_schedule_metrics
)

from .conftest import NOW, make_rake, make_schedule


def test_empty_schedule_list():
    metrics = calculate_schedule_metrics([], [make_rake()])

    assert metrics['utilization_rate'] == 0
    assert metrics['total_scheduled_rakes'] == 0
    assert metrics['on_time_performance'] == 1.0
    assert metrics['average_route_time'] == 0
    assert metrics['exceeds_utilization_target'] is False


def test_utilization_counts_distinct_rakes():
    rakes = [make_rake(f'rake_{i}') for i in range(4)]
    schedules = [
        make_schedule('s1', 'rake_0', NOW, NOW + timedelta(hours=4)),
        make_schedule('s2', 'rake_0', NOW + timedelta(hours=5), NOW + timedelta(hours=11)),
        make_schedule('s3', 'rake_1', NOW, NOW + timedelta(hours=5))
    ]

    metrics = calculate_schedule_metrics(schedules, rakes)

    assert metrics['total_scheduled_rakes'] == 2
    assert metrics['utilization_rate'] == pytest.approx(0.5)
    assert metrics['average_route_time'] == pytest.approx(5.0)


def test_no_rakes_means_zero_utilization():
    schedules = [make_schedule('s1', 'rake_0', NOW, NOW + timedelta(hours=4))]
    assert calculate_schedule_metrics(schedules, [])['utilization_rate'] == 0


def test_utilization_above_target_is_flagged():
    rakes = [make_rake('rake_0')]
    schedules = [make_schedule('s1', 'rake_0', NOW, NOW + timedelta(hours=4))]

    assert calculate_schedule_metrics(schedules, rakes)['exceeds_utilization_target'] is True

    relaxed = SchedulingConstraints(max_rake_utilization=1.0)
    assert calculate_schedule_metrics(schedules, rakes, relaxed)['exceeds_utilization_target'] is False


class TestOnTimePerformance:
    def _completed(self, schedule_id, delay_minutes):
        arrival = NOW + timedelta(hours=4)
        return make_schedule(
            schedule_id, 'rake_0', NOW, arrival, status='completed',
            actual_arrival=arrival + timedelta(minutes=delay_minutes)
        )

    def test_share_of_on_time_arrivals(self):
        schedules = [
            self._completed('s1', -10),
            self._completed('s2', 0),
            self._completed('s3', 30),
            self._completed('s4', 90)
        ]
        assert calculate_on_time_performance(schedules) == pytest.approx(0.5)

    def test_only_completed_trips_with_actuals_count(self):
        schedules = [
            self._completed('s1', 30),
            make_schedule('s2', 'rake_1', NOW, NOW + timedelta(hours=4), status='completed'),
            make_schedule('s3', 'rake_2', NOW, NOW + timedelta(hours=4), status='delayed')
        ]
        assert calculate_on_time_performance(schedules) == 0.0

    def test_nothing_evaluable(self):
        schedules = [make_schedule('s1', 'rake_0', NOW, NOW + timedelta(hours=4))]
        assert calculate_on_time_performance(schedules) == 1.0

    def test_tolerance(self):
        schedules = [self._completed('s1', 10)]
        constraints = SchedulingConstraints(on_time_tolerance_minutes=15)
        assert calculate_on_time_performance(schedules, constraints) == 1.0
        assert calculate_on_time_performance(schedules) == 0.0
