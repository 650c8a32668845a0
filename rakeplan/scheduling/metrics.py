"""Aggregate performance metrics for a set of schedules"""

from datetime import timedelta
from typing import Dict, Sequence
from rakeplan.data.schemas import Rake, Schedule, ScheduleStatus
from rakeplan.scheduling.constraints import DEFAULT_CONSTRAINTS, SchedulingConstraints
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


def calculate_on_time_performance(
    schedules: Sequence[Schedule],
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS
) -> float:
    """
    Share of completed trips that arrived on time

    Only completed schedules with a recorded actual arrival are evaluated.
    A trip is on time when it arrived no later than the scheduled arrival
    plus `on_time_tolerance_minutes`. Returns 1.0 when nothing is evaluable.
    """
    tolerance = timedelta(minutes=constraints.on_time_tolerance_minutes)

    evaluated = [
        s for s in schedules
        if s.status == ScheduleStatus.COMPLETED and s.actual_arrival_time is not None
    ]
    if not evaluated:
        return 1.0

    on_time = sum(1 for s in evaluated if s.actual_arrival_time <= s.arrival_time + tolerance)
    return on_time / len(evaluated)


def calculate_schedule_metrics(
    schedules: Sequence[Schedule],
    rakes: Sequence[Rake],
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS
) -> Dict:
    """
    Generate performance metrics for the current schedule

    Args:
        schedules: Schedules to summarize
        rakes: Fleet roster (denominator of utilization)
        constraints: Scheduling constraints

    Returns:
        Dictionary with utilization_rate, on_time_performance,
        total_scheduled_rakes, average_route_time (hours) and
        exceeds_utilization_target
    """
    scheduled_rakes = len({s.rake_id for s in schedules})
    utilization_rate = scheduled_rakes / len(rakes) if rakes else 0.0

    if schedules:
        average_route_time = sum(s.duration_hours for s in schedules) / len(schedules)
    else:
        average_route_time = 0.0

    metrics = {
        'utilization_rate': utilization_rate,
        'on_time_performance': calculate_on_time_performance(schedules, constraints),
        'total_scheduled_rakes': scheduled_rakes,
        'average_route_time': average_route_time,
        'exceeds_utilization_target': utilization_rate > constraints.max_rake_utilization
    }

    if metrics['exceeds_utilization_target']:
        logger.warning(f"⚠️  Fleet utilization {utilization_rate:.1%} above target "
                       f"{constraints.max_rake_utilization:.0%}")

    return metrics
