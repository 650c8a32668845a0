"""Fleet data model, loading and validation"""

from .schemas import (
    Cargo,
    DemandForecast,
    Rake,
    RakeStatus,
    RakeType,
    Route,
    RouteDemandHistory,
    RoutePriority,
    Schedule,
    ScheduleStatus,
    TimeWindow
)
from .loaders import FleetData, FleetDataLoader
from .validators import FleetValidator

__all__ = [
    'Cargo',
    'DemandForecast',
    'Rake',
    'RakeStatus',
    'RakeType',
    'Route',
    'RouteDemandHistory',
    'RoutePriority',
    'Schedule',
    'ScheduleStatus',
    'TimeWindow',
    'FleetData',
    'FleetDataLoader',
    'FleetValidator'
]
