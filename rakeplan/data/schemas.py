"""Fleet data model: rakes, routes, schedules and demand forecasts"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Sequence, Union


class RakeType(str, Enum):
    FREIGHT = 'freight'
    PASSENGER = 'passenger'
    EXPRESS = 'express'


class RakeStatus(str, Enum):
    AVAILABLE = 'available'
    IN_TRANSIT = 'in-transit'
    MAINTENANCE = 'maintenance'
    LOADING = 'loading'
    UNLOADING = 'unloading'


class RoutePriority(str, Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class ScheduleStatus(str, Enum):
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    DELAYED = 'delayed'
    CANCELLED = 'cancelled'


@dataclass
class Rake:
    """
    A train consist treated as one schedulable unit of capacity

    Attributes:
        id: Rake identifier
        type: freight, passenger or express
        capacity: Capacity in tons
        current_location: Station code
        status: Current operational status
        last_maintenance: Timestamp of the last completed maintenance
        next_maintenance: Timestamp of the next planned maintenance
    """

    id: str
    type: RakeType
    capacity: float
    current_location: str
    status: RakeStatus
    last_maintenance: datetime
    next_maintenance: datetime

    def __post_init__(self):
        self.type = RakeType(self.type)
        self.status = RakeStatus(self.status)


@dataclass(frozen=True)
class Route:
    """Read-only route definition (distance in km, travel time in hours)"""

    id: str
    name: str
    origin: str
    destination: str
    distance: float
    estimated_travel_time: float
    priority: RoutePriority

    def __post_init__(self):
        object.__setattr__(self, 'priority', RoutePriority(self.priority))


@dataclass
class Cargo:
    type: str
    weight: float
    value: float


@dataclass
class Schedule:
    """
    Assignment of a rake to a route for one departure

    actual_arrival_time is only known once a trip has completed and is the
    basis of on-time performance.
    """

    id: str
    rake_id: str
    route_id: str
    departure_time: datetime
    arrival_time: datetime
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    cargo: Optional[Cargo] = None
    actual_arrival_time: Optional[datetime] = None

    def __post_init__(self):
        self.status = ScheduleStatus(self.status)
        if isinstance(self.cargo, dict):
            self.cargo = Cargo(**self.cargo)

    @property
    def duration_hours(self) -> float:
        return (self.arrival_time - self.departure_time).total_seconds() / 3600


@dataclass
class DemandForecast:
    """Predicted demand for one route on one date"""

    route_id: str
    date: Union[date, datetime]
    predicted_demand: int
    confidence: float
    factors: List[str] = field(default_factory=list)


@dataclass
class RouteDemandHistory:
    """Historical demand series of a route, oldest observation first"""

    route_id: str
    historical_data: Sequence[float]
    factors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open overlap test: touching intervals do not overlap"""
        return start < self.end and end > self.start

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600
