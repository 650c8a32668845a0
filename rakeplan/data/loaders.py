"""Fleet roster and demand history loading"""

import pandas as pd
import yaml
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
from rakeplan.data.schemas import Rake, Route, Schedule, RouteDemandHistory
from rakeplan.utils.config import ConfigLoader
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


DEMAND_COLUMNS = ['route_id', 'date', 'demand']


@dataclass
class FleetData:
    """Everything the engine needs about the fleet at one point in time"""

    rakes: List[Rake] = field(default_factory=list)
    routes: List[Route] = field(default_factory=list)
    schedules: List[Schedule] = field(default_factory=list)
    demand_factors: Dict[str, List[str]] = field(default_factory=dict)

    def route(self, route_id: str) -> Optional[Route]:
        return next((r for r in self.routes if r.id == route_id), None)


def _parse_timestamp(value, field_name: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into a naive datetime

    Values carrying a UTC offset are converted to local time and the offset
    is dropped; the engine compares against naive local `datetime.now()`.
    """
    if value is None:
        return None
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid timestamp for '{field_name}': {value!r}") from e

    if pd.isna(ts):
        raise ValueError(f"Invalid timestamp for '{field_name}': {value!r}")

    parsed = ts.to_pydatetime()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)

    return parsed


class FleetDataLoader:
    """
    Load fleet rosters (YAML) and demand history (CSV)

    Roster file layout:
        rakes:      [{id, type, capacity, current_location, status,
                      last_maintenance, next_maintenance}, ...]
        routes:     [{id, name, origin, destination, distance,
                      estimated_travel_time, priority, demand_factors?}, ...]
        schedules:  [{id, rake_id, route_id, departure_time, arrival_time,
                      status, cargo?, actual_arrival_time?}, ...]

    Demand history is a long-format CSV with columns route_id, date, demand.
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """
        Initialize loader

        Args:
            config: Configuration loader instance
        """
        self.config = config if config else ConfigLoader.from_dict({})

    def _resolve(self, path: Optional[str], key: str) -> Path:
        if path is not None:
            return Path(path)
        return self.config.get_path(key)

    def load_fleet(self, path: Optional[str] = None) -> FleetData:
        """
        Load rakes, routes and schedules from a YAML roster

        Args:
            path: Roster file (defaults to data.fleet_file from config)

        Returns:
            FleetData with parsed entities
        """
        roster_path = self._resolve(path, 'data.fleet_file')

        if not roster_path.exists():
            raise FileNotFoundError(f"Fleet roster not found: {roster_path}")

        logger.info(f"Loading fleet roster from {roster_path}")

        with open(roster_path, 'r') as f:
            raw = yaml.safe_load(f) or {}

        fleet = FleetData()

        for i, item in enumerate(raw.get('rakes', []) or []):
            try:
                fleet.rakes.append(Rake(
                    id=str(item['id']),
                    type=item['type'],
                    capacity=float(item['capacity']),
                    current_location=str(item.get('current_location', '')),
                    status=item.get('status', 'available'),
                    last_maintenance=_parse_timestamp(item['last_maintenance'], 'last_maintenance'),
                    next_maintenance=_parse_timestamp(item['next_maintenance'], 'next_maintenance')
                ))
            except KeyError as e:
                raise ValueError(f"Rake #{i + 1} is missing field {e}") from e

        for i, item in enumerate(raw.get('routes', []) or []):
            try:
                route = Route(
                    id=str(item['id']),
                    name=str(item.get('name', item['id'])),
                    origin=str(item['origin']),
                    destination=str(item['destination']),
                    distance=float(item['distance']),
                    estimated_travel_time=float(item['estimated_travel_time']),
                    priority=item.get('priority', 'medium')
                )
            except KeyError as e:
                raise ValueError(f"Route #{i + 1} is missing field {e}") from e
            fleet.routes.append(route)
            fleet.demand_factors[route.id] = list(item.get('demand_factors', []) or [])

        for i, item in enumerate(raw.get('schedules', []) or []):
            try:
                fleet.schedules.append(Schedule(
                    id=str(item['id']),
                    rake_id=str(item['rake_id']),
                    route_id=str(item['route_id']),
                    departure_time=_parse_timestamp(item['departure_time'], 'departure_time'),
                    arrival_time=_parse_timestamp(item['arrival_time'], 'arrival_time'),
                    status=item.get('status', 'scheduled'),
                    cargo=item.get('cargo'),
                    actual_arrival_time=_parse_timestamp(
                        item.get('actual_arrival_time'), 'actual_arrival_time'
                    )
                ))
            except KeyError as e:
                raise ValueError(f"Schedule #{i + 1} is missing field {e}") from e

        logger.info(f"✅ Loaded {len(fleet.rakes)} rakes, {len(fleet.routes)} routes, "
                    f"{len(fleet.schedules)} schedules")

        return fleet

    def load_demand_history(self, path: Optional[str] = None) -> pd.DataFrame:
        """
        Load long-format demand history

        Args:
            path: CSV file (defaults to data.demand_history_file from config)

        Returns:
            DataFrame with route_id, date, demand sorted by route and date
        """
        history_path = self._resolve(path, 'data.demand_history_file')

        if not history_path.exists():
            raise FileNotFoundError(f"Demand history not found: {history_path}")

        logger.info(f"Loading demand history from {history_path}")

        df = pd.read_csv(history_path)

        missing = [col for col in DEMAND_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"Demand history is missing columns: {missing}")

        df['route_id'] = df['route_id'].astype(str)
        df['date'] = pd.to_datetime(df['date'], errors='coerce')
        df['demand'] = pd.to_numeric(df['demand'], errors='coerce')

        invalid = df['date'].isna() | df['demand'].isna()
        if invalid.any():
            logger.warning(f"⚠️  Dropping {int(invalid.sum())} demand rows with invalid date or value")
            df = df[~invalid]

        df = df.sort_values(['route_id', 'date']).reset_index(drop=True)

        logger.info(f"✅ Loaded {len(df)} demand observations for {df['route_id'].nunique()} routes")

        return df

    @staticmethod
    def to_route_histories(
        df_demand: pd.DataFrame,
        demand_factors: Optional[Dict[str, List[str]]] = None
    ) -> List[RouteDemandHistory]:
        """
        Split a long-format demand frame into one series per route

        Args:
            df_demand: Output of load_demand_history
            demand_factors: Optional labels per route id

        Returns:
            RouteDemandHistory list in route id order
        """
        demand_factors = demand_factors or {}

        return [
            RouteDemandHistory(
                route_id=route_id,
                historical_data=group.sort_values('date')['demand'].tolist(),
                factors=list(demand_factors.get(route_id, []))
            )
            for route_id, group in df_demand.groupby('route_id', sort=True)
        ]
