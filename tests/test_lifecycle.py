"""Tests for maintenance completion, status transitions and the fleet summary"""

from datetime import timedelta

import pytest

from rakeplan.data.schemas import RakeStatus, ScheduleStatus, TimeWindow
from rakeplan.scheduling import (
    SchedulingConstraints,
    SchedulingEngine,
    calculate_on_time_performance,
    calculate_rake_availability,
    complete_maintenance,
    fleet_status_summary,
    maintenance_alerts,
    update_rake_status,
    update_schedule_status
)

from .conftest import NOW, make_rake, make_schedule


class TestCompleteMaintenance:
    def test_resets_rake(self):
        rake = make_rake(status='maintenance', last_maintenance=NOW - timedelta(days=10))

        result = complete_maintenance(rake, now=NOW)

        assert result is rake
        assert rake.status == RakeStatus.AVAILABLE
        assert rake.last_maintenance == NOW
        assert rake.next_maintenance == NOW + timedelta(days=7)

    def test_rake_becomes_schedulable(self):
        rake = make_rake(status='maintenance', last_maintenance=NOW - timedelta(days=10))
        window = TimeWindow(NOW + timedelta(hours=2), NOW + timedelta(hours=6))
        assert not calculate_rake_availability(rake, [], window, now=NOW).available

        complete_maintenance(rake, now=NOW)

        assert calculate_rake_availability(rake, [], window, now=NOW).available

    def test_configured_cycle(self):
        rake = make_rake()
        complete_maintenance(rake, SchedulingConstraints(maintenance_cycle_hours=48), now=NOW)
        assert rake.next_maintenance == NOW + timedelta(hours=48)


class TestStatusTransitions:
    def test_rake_status_from_string(self):
        rake = update_rake_status(make_rake(), 'in-transit')
        assert rake.status == RakeStatus.IN_TRANSIT

    def test_unknown_rake_status(self):
        with pytest.raises(ValueError):
            update_rake_status(make_rake(), 'parked')

    def test_schedule_completion_records_arrival(self):
        schedule = make_schedule('s1', 'rake_001', NOW, NOW + timedelta(hours=4))

        update_schedule_status(schedule, ScheduleStatus.COMPLETED, actual_arrival_time=NOW + timedelta(hours=5))

        assert schedule.status == ScheduleStatus.COMPLETED
        assert schedule.actual_arrival_time == NOW + timedelta(hours=5)
        assert calculate_on_time_performance([schedule]) == 0.0

    def test_schedule_status_without_arrival(self):
        schedule = make_schedule('s1', 'rake_001', NOW, NOW + timedelta(hours=4))
        update_schedule_status(schedule, 'delayed')
        assert schedule.status == ScheduleStatus.DELAYED
        assert schedule.actual_arrival_time is None

    def test_unknown_schedule_status(self):
        schedule = make_schedule('s1', 'rake_001', NOW, NOW + timedelta(hours=4))
        with pytest.raises(ValueError):
            update_schedule_status(schedule, 'lost')


class TestFleetStatusSummary:
    def _fleet(self):
        rakes = [
            make_rake('rake_ok', next_maintenance=NOW + timedelta(days=3)),
            make_rake('rake_due', status='in-transit', next_maintenance=NOW + timedelta(hours=24)),
            make_rake('rake_shop', status='maintenance', next_maintenance=NOW + timedelta(hours=30)),
            make_rake('rake_late', next_maintenance=NOW - timedelta(hours=2))
        ]
        schedules = [
            make_schedule('s1', 'rake_ok', NOW, NOW + timedelta(hours=4)),
            make_schedule('s2', 'rake_due', NOW, NOW + timedelta(hours=4), status='in-progress'),
            make_schedule('s3', 'rake_ok', NOW - timedelta(days=1), NOW, status='completed')
        ]
        return rakes, schedules

    def test_counts_by_status(self):
        rakes, schedules = self._fleet()
        summary = fleet_status_summary(rakes, schedules, now=NOW)

        assert summary['total_rakes'] == 4
        assert summary['rake_status'] == {
            'available': 2, 'in-transit': 1, 'maintenance': 1, 'loading': 0, 'unloading': 0
        }
        assert summary['schedule_status'] == {
            'scheduled': 1, 'in-progress': 1, 'completed': 1, 'delayed': 0, 'cancelled': 0
        }

    def test_maintenance_due_within_horizon(self):
        rakes, schedules = self._fleet()
        summary = fleet_status_summary(rakes, schedules, now=NOW)
        assert summary['maintenance_due'] == ['rake_due', 'rake_late']

    def test_alerts(self):
        rakes, _ = self._fleet()
        alerts = maintenance_alerts(rakes, now=NOW)

        assert [(a['rake_id'], a['alert']) for a in alerts] == [
            ('rake_late', 'Maintenance Due'),
            ('rake_due', 'Maintenance Due'),
            ('rake_shop', 'In Maintenance')
        ]

    def test_configured_horizon(self):
        rakes, schedules = self._fleet()
        constraints = SchedulingConstraints(maintenance_alert_horizon_hours=72)
        summary = fleet_status_summary(rakes, schedules, constraints, now=NOW)
        assert summary['maintenance_due'] == ['rake_ok', 'rake_due', 'rake_shop', 'rake_late']

    def test_empty_fleet(self):
        summary = fleet_status_summary([], [], now=NOW)
        assert summary['total_rakes'] == 0
        assert summary['maintenance_due'] == []
        assert summary['alerts'] == []


def test_engine_uses_its_clock():
    engine = SchedulingEngine(clock=lambda: NOW)
    rake = engine.complete_maintenance(make_rake(status='maintenance'))

    assert rake.last_maintenance == NOW
    assert engine.fleet_status_summary([rake], [])['alerts'] == []
