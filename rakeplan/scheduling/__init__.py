"""Greedy rake scheduling engine"""

from .constraints import SchedulingConstraints, DEFAULT_CONSTRAINTS
from .engine import (
    RakeAvailability,
    RescheduleResult,
    SchedulingEngine,
    calculate_rake_availability,
    calculate_route_priority,
    is_rake_suitable_for_route,
    calculate_optimal_departure_time,
    optimize_schedule,
    reschedule_for_priority
)
from .lifecycle import (
    complete_maintenance,
    update_rake_status,
    update_schedule_status,
    maintenance_alerts,
    fleet_status_summary
)
from .metrics import calculate_schedule_metrics, calculate_on_time_performance

__all__ = [
    'SchedulingConstraints',
    'DEFAULT_CONSTRAINTS',
    'RakeAvailability',
    'RescheduleResult',
    'SchedulingEngine',
    'calculate_rake_availability',
    'calculate_route_priority',
    'is_rake_suitable_for_route',
    'calculate_optimal_departure_time',
    'optimize_schedule',
    'reschedule_for_priority',
    'complete_maintenance',
    'update_rake_status',
    'update_schedule_status',
    'maintenance_alerts',
    'fleet_status_summary',
    'calculate_schedule_metrics',
    'calculate_on_time_performance'
]
