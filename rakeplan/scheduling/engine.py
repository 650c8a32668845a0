"""Greedy rake-to-route scheduling engine

Every function takes the SchedulingConstraints it works under and an
optional `now` (defaults to the current time) so results are reproducible.
"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence
from rakeplan.data.schemas import (
    Cargo,
    DemandForecast,
    Rake,
    RakeStatus,
    RakeType,
    Route,
    RoutePriority,
    Schedule,
    ScheduleStatus,
    TimeWindow
)
from rakeplan.scheduling.constraints import DEFAULT_CONSTRAINTS, SchedulingConstraints
from rakeplan.scheduling.lifecycle import complete_maintenance, fleet_status_summary
from rakeplan.scheduling.metrics import calculate_schedule_metrics
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


REASON_MAINTENANCE_REQUIRED = 'Maintenance required'
REASON_IN_MAINTENANCE = 'Currently in maintenance'
REASON_ALREADY_SCHEDULED = 'Already scheduled'


@dataclass
class RakeAvailability:
    available: bool
    next_available: datetime
    reason: Optional[str] = None


@dataclass
class RescheduleResult:
    updated_schedules: List[Schedule]
    rescheduled_count: int


def _hours(delta: timedelta) -> float:
    return delta.total_seconds() / 3600


def calculate_rake_availability(
    rake: Rake,
    existing_schedules: Iterable[Schedule],
    window: TimeWindow,
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS,
    now: Optional[datetime] = None
) -> RakeAvailability:
    """
    Check whether a rake can run during a time window

    Checks run in a fixed order and the first failing one wins:
    1. Maintenance interval exceeded since last maintenance
    2. Rake currently in maintenance
    3. An existing schedule of this rake overlaps the window

    Args:
        rake: Rake to check
        existing_schedules: Schedules to check for conflicts (any rake)
        window: Requested [start, end) window
        constraints: Scheduling constraints
        now: Reference time for the maintenance check

    Returns:
        RakeAvailability with the earliest time the rake is expected free
    """
    now = now if now else datetime.now()

    hours_since_maintenance = _hours(now - rake.last_maintenance)
    if hours_since_maintenance >= constraints.min_maintenance_interval:
        return RakeAvailability(
            available=False,
            next_available=now + timedelta(hours=constraints.maintenance_duration_hours),
            reason=REASON_MAINTENANCE_REQUIRED
        )

    if rake.status == RakeStatus.MAINTENANCE:
        return RakeAvailability(
            available=False,
            next_available=rake.next_maintenance,
            reason=REASON_IN_MAINTENANCE
        )

    for schedule in existing_schedules:
        if schedule.rake_id != rake.id:
            continue
        if window.overlaps(schedule.departure_time, schedule.arrival_time):
            return RakeAvailability(
                available=False,
                next_available=schedule.arrival_time,
                reason=REASON_ALREADY_SCHEDULED
            )

    return RakeAvailability(available=True, next_available=window.start)


def calculate_route_priority(
    route: Route,
    forecast: DemandForecast,
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS
) -> float:
    """Urgency score: priority weight x predicted demand x confidence"""
    weight = constraints.priority_weight(route.priority)
    return weight * forecast.predicted_demand * forecast.confidence


def is_rake_suitable_for_route(
    rake: Rake,
    route: Route,
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS
) -> bool:
    """
    High-priority routes never take freight rakes; long routes need more capacity
    """
    if route.priority == RoutePriority.HIGH and rake.type == RakeType.FREIGHT:
        return False

    if route.distance > constraints.long_route_distance_km:
        min_capacity = constraints.long_route_min_capacity
    else:
        min_capacity = constraints.short_route_min_capacity

    return rake.capacity >= min_capacity


def calculate_optimal_departure_time(
    route: Route,
    earliest_time: datetime,
    existing_schedules: Sequence[Schedule],
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS
) -> datetime:
    """
    Least congested departure slot within the search horizon

    Slots are spaced `departure_slot_hours` apart starting at earliest_time.
    A slot's congestion is the number of schedules departing strictly within
    `conflict_window_hours` of it. Ties go to the earliest slot.
    """
    end_time = earliest_time + timedelta(hours=constraints.departure_search_horizon_hours)
    step = timedelta(hours=constraints.departure_slot_hours)
    conflict_seconds = constraints.conflict_window_hours * 3600

    best_slot = earliest_time
    best_conflicts = None

    slot = earliest_time
    while slot < end_time:
        conflicts = sum(
            1 for schedule in existing_schedules
            if abs((schedule.departure_time - slot).total_seconds()) < conflict_seconds
        )
        if best_conflicts is None or conflicts < best_conflicts:
            best_slot = slot
            best_conflicts = conflicts
        slot += step

    logger.debug(f"Departure for {route.id}: {best_slot:%Y-%m-%d %H:%M} "
                 f"({best_conflicts or 0} nearby departures)")

    return best_slot


def _new_schedule_id() -> str:
    return f"schedule_{uuid.uuid4().hex[:12]}"


def optimize_schedule(
    rakes: Sequence[Rake],
    routes: Sequence[Route],
    forecasts: Sequence[DemandForecast],
    existing_schedules: Sequence[Schedule],
    period: TimeWindow,
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS,
    now: Optional[datetime] = None
) -> List[Schedule]:
    """
    Assign rakes to routes with a single greedy pass

    Routes are served in descending priority order (ties keep input order).
    Each route with demand asks for ceil(demand / demand_units_per_rake)
    rakes; the rake pool is scanned in order and every suitable rake that is
    free for the route's departure window is assigned. Rakes stay in the
    pool, so one rake may serve several routes when their windows do not
    overlap.

    Args:
        rakes: Fleet roster, in preference order
        routes: Routes to serve
        forecasts: Demand forecasts; the first forecast per route is used
        existing_schedules: Already committed schedules
        period: Scheduling period; departures are searched from period.start
        constraints: Scheduling constraints
        now: Reference time for maintenance checks

    Returns:
        New schedules only (caller merges them with existing_schedules)
    """
    now = now if now else datetime.now()

    forecast_by_route: Dict[str, DemandForecast] = {}
    for forecast in forecasts:
        forecast_by_route.setdefault(forecast.route_id, forecast)

    ranked_routes = []
    for route in routes:
        forecast = forecast_by_route.get(route.id) or DemandForecast(
            route_id=route.id,
            date=period.start,
            predicted_demand=0,
            confidence=constraints.default_forecast_confidence
        )
        priority = calculate_route_priority(route, forecast, constraints)
        ranked_routes.append((route, forecast, priority))

    ranked_routes.sort(key=lambda item: item[2], reverse=True)

    new_schedules: List[Schedule] = []

    for route, forecast, priority in ranked_routes:
        if forecast.predicted_demand == 0:
            continue

        required_rakes = math.ceil(forecast.predicted_demand / constraints.demand_units_per_rake)
        assigned_rakes = 0

        departure_time = calculate_optimal_departure_time(
            route, period.start, existing_schedules, constraints
        )
        arrival_time = departure_time + timedelta(hours=route.estimated_travel_time)
        window = TimeWindow(departure_time, arrival_time)

        for rake in rakes:
            if assigned_rakes >= required_rakes:
                break

            if not is_rake_suitable_for_route(rake, route, constraints):
                continue

            availability = calculate_rake_availability(
                rake,
                list(existing_schedules) + new_schedules,
                window,
                constraints,
                now=now
            )

            if not availability.available:
                logger.debug(f"{rake.id} unavailable for {route.id}: {availability.reason}")
                continue

            new_schedules.append(Schedule(
                id=_new_schedule_id(),
                rake_id=rake.id,
                route_id=route.id,
                departure_time=departure_time,
                arrival_time=arrival_time,
                status=ScheduleStatus.SCHEDULED,
                cargo=Cargo(
                    type='general',
                    weight=min(rake.capacity, forecast.predicted_demand * 10),
                    value=forecast.predicted_demand * 1000
                )
            ))
            assigned_rakes += 1

        if assigned_rakes < required_rakes:
            logger.warning(f"Route {route.id}: assigned {assigned_rakes}/{required_rakes} rakes")
        else:
            logger.debug(f"Route {route.id}: assigned {assigned_rakes} rakes (priority {priority:.1f})")

    logger.info(f"Greedy assignment created {len(new_schedules)} schedules "
                f"for {len(routes)} routes and {len(rakes)} rakes")

    return new_schedules


def reschedule_for_priority(
    existing_schedules: List[Schedule],
    new_priority_route: Route,
    rakes: Sequence[Rake],
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS,
    now: Optional[datetime] = None,
    routes: Optional[Iterable[Route]] = None
) -> RescheduleResult:
    """
    Push back low-priority departures to make room for a priority route

    Candidates are schedules still in 'scheduled' status departing at least
    `reschedule_notice_hours` from now. Lowest route priority goes first
    (routes without a lookup count as medium). Up to `max_reschedules`
    candidates are shifted by `reschedule_shift_hours`; a shift that would
    overlap another schedule of the same rake is skipped. Schedules are
    updated in place.

    Args:
        existing_schedules: Schedules to consider
        new_priority_route: Route the capacity is being freed for
        rakes: Fleet roster
        constraints: Scheduling constraints
        now: Reference time for the notice period
        routes: Optional route lookup for candidate priorities

    Returns:
        RescheduleResult with the (same) schedule list and the shift count
    """
    now = now if now else datetime.now()
    route_priority = {route.id: route.priority for route in (routes or [])}

    updated_schedules = list(existing_schedules)
    rescheduled_count = 0

    notice_limit = now + timedelta(hours=constraints.reschedule_notice_hours)
    candidates = [
        schedule for schedule in updated_schedules
        if schedule.status == ScheduleStatus.SCHEDULED and schedule.departure_time >= notice_limit
    ]
    candidates.sort(key=lambda s: constraints.priority_weight(
        route_priority.get(s.route_id, RoutePriority.MEDIUM)
    ))

    shift = timedelta(hours=constraints.reschedule_shift_hours)

    for schedule in candidates:
        if rescheduled_count >= constraints.max_reschedules:
            break

        new_departure = schedule.departure_time + shift
        new_arrival = schedule.arrival_time + shift

        has_conflict = any(
            other.id != schedule.id
            and other.rake_id == schedule.rake_id
            and new_departure < other.arrival_time
            and new_arrival > other.departure_time
            for other in updated_schedules
        )

        if has_conflict:
            logger.debug(f"Cannot shift {schedule.id}: rake {schedule.rake_id} busy")
            continue

        schedule.departure_time = new_departure
        schedule.arrival_time = new_arrival
        rescheduled_count += 1

    logger.info(f"Rescheduled {rescheduled_count} of {len(candidates)} candidates "
                f"for priority route {new_priority_route.id} ({len(rakes)} rakes in fleet)")

    return RescheduleResult(updated_schedules=updated_schedules, rescheduled_count=rescheduled_count)


class SchedulingEngine:
    """
    Convenience wrapper binding one constraints instance and a clock

    Args:
        constraints: Scheduling constraints (defaults when omitted)
        clock: Callable returning the current time
    """

    def __init__(
        self,
        constraints: Optional[SchedulingConstraints] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.constraints = constraints if constraints else SchedulingConstraints()
        self.clock = clock

    def calculate_rake_availability(self, rake, existing_schedules, window) -> RakeAvailability:
        return calculate_rake_availability(
            rake, existing_schedules, window, self.constraints, now=self.clock()
        )

    def calculate_route_priority(self, route, forecast) -> float:
        return calculate_route_priority(route, forecast, self.constraints)

    def optimize_schedule(self, rakes, routes, forecasts, existing_schedules, period) -> List[Schedule]:
        return optimize_schedule(
            rakes, routes, forecasts, existing_schedules, period,
            self.constraints, now=self.clock()
        )

    def reschedule_for_priority(self, existing_schedules, new_priority_route, rakes,
                                routes=None) -> RescheduleResult:
        return reschedule_for_priority(
            existing_schedules, new_priority_route, rakes,
            self.constraints, now=self.clock(), routes=routes
        )

    def calculate_schedule_metrics(self, schedules, rakes) -> Dict:
        return calculate_schedule_metrics(schedules, rakes, self.constraints)

    def complete_maintenance(self, rake) -> Rake:
        return complete_maintenance(rake, self.constraints, now=self.clock())

    def fleet_status_summary(self, rakes, schedules) -> Dict:
        return fleet_status_summary(rakes, schedules, self.constraints, now=self.clock())

    def __repr__(self) -> str:
        return f"SchedulingEngine(constraints={self.constraints!r})"
