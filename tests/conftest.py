"""Shared fixtures and factories for rakeplan tests"""

import logging
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from rakeplan.data.schemas import DemandForecast, Rake, Route, Schedule


PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "config" / "config.yaml"
SAMPLE_FLEET = PROJECT_ROOT / "data" / "sample" / "fleet.yaml"
SAMPLE_DEMAND = PROJECT_ROOT / "data" / "sample" / "demand_history.csv"

NOW = datetime(2024, 1, 1, 8, 0)


def make_rake(rake_id="rake_001", type="express", capacity=300, status="available",
              last_maintenance=None, next_maintenance=None, location="NDLS"):
    return Rake(
        id=rake_id,
        type=type,
        capacity=capacity,
        current_location=location,
        status=status,
        last_maintenance=last_maintenance or NOW - timedelta(days=1),
        next_maintenance=next_maintenance or NOW + timedelta(days=6)
    )


def make_route(route_id="route_001", priority="high", distance=400, travel_hours=4, name=None):
    return Route(
        id=route_id,
        name=name or f"Route {route_id}",
        origin="NDLS",
        destination="BCT",
        distance=distance,
        estimated_travel_time=travel_hours,
        priority=priority
    )


def make_schedule(schedule_id, rake_id, departure, arrival, route_id="route_001",
                  status="scheduled", cargo=None, actual_arrival=None):
    return Schedule(
        id=schedule_id,
        rake_id=rake_id,
        route_id=route_id,
        departure_time=departure,
        arrival_time=arrival,
        status=status,
        cargo=cargo,
        actual_arrival_time=actual_arrival
    )


def make_forecast(route_id="route_001", demand=150, confidence=0.9):
    return DemandForecast(
        route_id=route_id,
        date=NOW.date(),
        predicted_demand=demand,
        confidence=confidence
    )


@pytest.fixture(autouse=True)
def reset_rakeplan_logger():
    """CLI tests attach handlers to captured streams; drop them afterwards"""
    yield
    logging.getLogger('rakeplan').handlers = []


@pytest.fixture
def period_start():
    return datetime(2024, 1, 1, 10, 0)
