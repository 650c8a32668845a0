"""CSV report export for fleet data, schedules and forecasts

Column headers match the fleet dashboard's download files.
"""

import pandas as pd
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from rakeplan.data.loaders import FleetData
from rakeplan.data.schemas import DemandForecast, Rake, Route, Schedule
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


DATE_FORMAT = '%Y-%m-%d'
DATETIME_FORMAT = '%Y-%m-%d %H:%M'


def rakes_to_frame(rakes: Sequence[Rake]) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            'Rake_ID': r.id,
            'Type': r.type.value,
            'Capacity_Tons': r.capacity,
            'Current_Location': r.current_location,
            'Status': r.status.value,
            'Last_Maintenance': r.last_maintenance.strftime(DATE_FORMAT),
            'Next_Maintenance': r.next_maintenance.strftime(DATE_FORMAT)
        } for r in rakes],
        columns=['Rake_ID', 'Type', 'Capacity_Tons', 'Current_Location', 'Status',
                 'Last_Maintenance', 'Next_Maintenance']
    )


def routes_to_frame(routes: Sequence[Route]) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            'Route_ID': r.id,
            'Route_Name': r.name,
            'Origin': r.origin,
            'Destination': r.destination,
            'Distance_KM': r.distance,
            'Travel_Time_Hours': r.estimated_travel_time,
            'Priority': r.priority.value
        } for r in routes],
        columns=['Route_ID', 'Route_Name', 'Origin', 'Destination', 'Distance_KM',
                 'Travel_Time_Hours', 'Priority']
    )


def schedules_to_frame(schedules: Sequence[Schedule]) -> pd.DataFrame:
    """Schedules with cargo flattened (N/A / 0 when a schedule carries none)"""
    return pd.DataFrame(
        [{
            'Schedule_ID': s.id,
            'Rake_ID': s.rake_id,
            'Route_ID': s.route_id,
            'Departure_Time': s.departure_time.strftime(DATETIME_FORMAT),
            'Arrival_Time': s.arrival_time.strftime(DATETIME_FORMAT),
            'Status': s.status.value,
            'Cargo_Type': s.cargo.type if s.cargo else 'N/A',
            'Cargo_Weight_Tons': s.cargo.weight if s.cargo else 0,
            'Cargo_Value_USD': s.cargo.value if s.cargo else 0
        } for s in schedules],
        columns=['Schedule_ID', 'Rake_ID', 'Route_ID', 'Departure_Time', 'Arrival_Time',
                 'Status', 'Cargo_Type', 'Cargo_Weight_Tons', 'Cargo_Value_USD']
    )


def forecasts_to_frame(
    forecasts: Sequence[DemandForecast],
    routes: Sequence[Route] = ()
) -> pd.DataFrame:
    """Forecasts with route names and confidence as a whole percentage"""
    names = {r.id: r.name for r in routes}

    return pd.DataFrame(
        [{
            'Route_ID': f.route_id,
            'Route_Name': names.get(f.route_id, 'Unknown'),
            'Date': pd.Timestamp(f.date).strftime(DATE_FORMAT),
            'Predicted_Demand': f.predicted_demand,
            'Confidence_Percent': int(round(f.confidence * 100)),
            'Factors': ', '.join(f.factors)
        } for f in forecasts],
        columns=['Route_ID', 'Route_Name', 'Date', 'Predicted_Demand',
                 'Confidence_Percent', 'Factors']
    )


def demand_history_to_frame(df_demand: pd.DataFrame) -> pd.DataFrame:
    """
    Pivot long-format history to one column per route, one row per day

    Days are numbered from 1 in date order; missing observations become 0.
    """
    if df_demand.empty:
        return pd.DataFrame(columns=['Day'])

    df = df_demand.copy()
    df['Day'] = df.groupby('route_id').cumcount() + 1

    wide = df.pivot(index='Day', columns='route_id', values='demand').fillna(0)
    wide.columns = [f"Route_{col}" for col in wide.columns]

    return wide.reset_index()


class ReportExporter:
    """
    Write fleet and planning data to CSV files

    Args:
        output_path: Directory receiving the files (created if missing)
    """

    def __init__(self, output_path: str):
        self.output_path = Path(output_path)
        self.output_path.mkdir(parents=True, exist_ok=True)

    def _write(self, df: pd.DataFrame, filename: str) -> Path:
        path = self.output_path / filename
        df.to_csv(path, index=False)
        logger.info(f"Saved {len(df)} rows to {path}")
        return path

    def export_rakes(self, rakes: Sequence[Rake]) -> Path:
        return self._write(rakes_to_frame(rakes), 'railway_rakes.csv')

    def export_routes(self, routes: Sequence[Route]) -> Path:
        return self._write(routes_to_frame(routes), 'railway_routes.csv')

    def export_schedules(self, schedules: Sequence[Schedule]) -> Path:
        return self._write(schedules_to_frame(schedules), 'railway_schedules.csv')

    def export_forecasts(self, forecasts: Sequence[DemandForecast], routes: Sequence[Route] = ()) -> Path:
        return self._write(forecasts_to_frame(forecasts, routes), 'demand_forecasts.csv')

    def export_demand_history(self, df_demand: pd.DataFrame) -> Path:
        return self._write(demand_history_to_frame(df_demand), 'historical_demand_data.csv')

    def export_all(
        self,
        fleet: FleetData,
        forecasts: Sequence[DemandForecast] = (),
        df_demand: Optional[pd.DataFrame] = None,
        timestamp: Optional[datetime] = None
    ) -> Dict[str, Path]:
        """
        Export every dataset, plus one combined file with a section per dataset

        Returns:
            Mapping of dataset name to written file
        """
        timestamp = timestamp if timestamp else datetime.now()

        written = {
            'rakes': self.export_rakes(fleet.rakes),
            'routes': self.export_routes(fleet.routes),
            'schedules': self.export_schedules(fleet.schedules),
            'forecasts': self.export_forecasts(forecasts, fleet.routes)
        }
        if df_demand is not None:
            written['demand_history'] = self.export_demand_history(df_demand)

        sections: List[str] = [
            '# Railway Rake Forecasting and Scheduling System - Complete Dataset',
            f"# Generated on: {timestamp:%Y-%m-%d %H:%M:%S}",
            ''
        ]
        for title, df in [
            ('RAKES', rakes_to_frame(fleet.rakes)),
            ('ROUTES', routes_to_frame(fleet.routes)),
            ('SCHEDULES', schedules_to_frame(fleet.schedules))
        ]:
            sections.append(f"## {title}")
            sections.append(df.to_csv(index=False).rstrip('\n'))
            sections.append('')

        combined_path = self.output_path / f"railway_complete_dataset_{timestamp:%Y-%m-%d_%H-%M}.csv"
        combined_path.write_text('\n'.join(sections) + '\n')
        logger.info(f"Saved combined dataset to {combined_path}")
        written['complete'] = combined_path

        return written
