"""Scheduling constraints configuration"""

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Dict, Mapping, Optional
from rakeplan.data.schemas import RoutePriority
from rakeplan.utils.config import ConfigLoader


def _default_priority_weights() -> Dict[str, float]:
    return {'high': 3, 'medium': 2, 'low': 1}


@dataclass(frozen=True)
class SchedulingConstraints:
    """
    Tunable limits of the greedy scheduler

    Durations are in hours unless the name says otherwise. One instance is
    passed explicitly to every scheduling call; it is never mutated.
    """

    max_rake_utilization: float = 0.85
    min_maintenance_interval: float = 168      # 7 days
    max_continuous_operation: float = 72       # 3 days
    priority_weights: Mapping[str, float] = field(default_factory=_default_priority_weights, hash=False)

    # Assignment
    demand_units_per_rake: float = 100
    default_forecast_confidence: float = 0.5
    long_route_distance_km: float = 500
    long_route_min_capacity: float = 200
    short_route_min_capacity: float = 100

    # Departure slot search
    conflict_window_hours: float = 2
    departure_search_horizon_hours: int = 24
    departure_slot_hours: int = 1

    # Maintenance
    maintenance_duration_hours: float = 24
    maintenance_cycle_hours: float = 168       # next maintenance after completion
    maintenance_alert_horizon_hours: float = 24

    # Rescheduling
    reschedule_notice_hours: float = 2
    reschedule_shift_hours: float = 4
    max_reschedules: int = 3

    # Metrics
    on_time_tolerance_minutes: float = 0

    def __post_init__(self):
        if self.departure_slot_hours <= 0:
            raise ValueError(f"departure_slot_hours must be positive (got {self.departure_slot_hours})")
        if self.demand_units_per_rake <= 0:
            raise ValueError(f"demand_units_per_rake must be positive (got {self.demand_units_per_rake})")

        missing = {p.value for p in RoutePriority} - set(self.priority_weights)
        if missing:
            raise ValueError(f"priority_weights missing for: {sorted(missing)}")

        object.__setattr__(self, 'priority_weights', MappingProxyType(dict(self.priority_weights)))

    def priority_weight(self, priority) -> float:
        """Weight of a route priority (accepts the enum or its string value)"""
        return self.priority_weights[RoutePriority(priority).value]

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> 'SchedulingConstraints':
        """
        Build constraints from the `scheduling` section of the configuration

        Keys that are absent keep their defaults; unknown keys are ignored.

        Raises:
            ValueError: If a value makes the scheduler unusable (non-positive
                slot length or demand per rake)
        """
        if config is None:
            return cls()

        section = config.get('scheduling', {}) or {}
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in section.items() if key in known}

        if 'priority_weights' in values:
            values['priority_weights'] = {
                **_default_priority_weights(), **values['priority_weights']
            }

        return cls(**values)


DEFAULT_CONSTRAINTS = SchedulingConstraints()
