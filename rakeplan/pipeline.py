"""Core planning pipeline orchestration

This module implements the PlanningPipeline class that runs the planning
workflow from fleet data loading through demand forecasting and greedy
rake assignment to metrics and CSV export.
"""

import pandas as pd
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from rakeplan.data import FleetData, FleetDataLoader, FleetValidator, TimeWindow
from rakeplan.data.schemas import DemandForecast, Schedule
from rakeplan.models import DemandEnsemble, batch_forecast
from rakeplan.reports import ReportExporter
from rakeplan.scheduling import (
    SchedulingConstraints,
    RescheduleResult,
    calculate_schedule_metrics,
    fleet_status_summary,
    optimize_schedule,
    reschedule_for_priority
)
from rakeplan.utils.config import ConfigLoader
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


class PlanningPipeline:
    """
    Main planning pipeline orchestrator

    Coordinates the planning workflow:
    1. Fleet roster and demand history loading
    2. Data validation
    3. Demand forecasting per route
    4. Greedy rake assignment
    5. Metrics and CSV export
    """

    def __init__(self, config_path: Optional[str] = None, config: Optional[ConfigLoader] = None):
        """
        Initialize Planning Pipeline

        Args:
            config_path: Path to config YAML file (optional)
            config: Ready configuration (takes precedence over config_path)
        """
        self.config = config if config else ConfigLoader(config_path)

        self.loader = FleetDataLoader(self.config)
        self.validator = FleetValidator(self.config)
        self.ensemble = DemandEnsemble(self.config)
        self.constraints = SchedulingConstraints.from_config(self.config)

        # Data cache
        self.fleet: Optional[FleetData] = None
        self.df_demand: Optional[pd.DataFrame] = None
        self.forecasts: List[DemandForecast] = []
        self.new_schedules: List[Schedule] = []
        self.validation_report: Dict = {}

    def load_data(
        self,
        fleet_file: Optional[str] = None,
        demand_file: Optional[str] = None,
        validate: bool = True
    ) -> FleetData:
        """
        Load fleet roster and demand history

        Args:
            fleet_file: Roster YAML (defaults to data.fleet_file)
            demand_file: Demand CSV (defaults to data.demand_history_file)
            validate: Run the fleet validator after loading

        Returns:
            Loaded FleetData
        """
        logger.info("=" * 60)
        logger.info("LOADING FLEET DATA")
        logger.info("=" * 60)

        self.fleet = self.loader.load_fleet(fleet_file)
        self.df_demand = self.loader.load_demand_history(demand_file)

        if validate:
            self.validation_report = self.validator.validate_all(self.fleet)
            if self.validation_report['status'] == 'fail':
                logger.error("❌ Fleet data failed validation; results may be unreliable")

        return self.fleet

    def _require_data(self):
        if self.fleet is None or self.df_demand is None:
            raise ValueError("No data loaded. Call load_data() first")

    def generate_forecasts(self, target_date: Optional[date] = None) -> List[DemandForecast]:
        """
        Forecast demand for every route with history

        Args:
            target_date: Forecast date (defaults to tomorrow)

        Returns:
            One DemandForecast per route
        """
        self._require_data()

        if target_date is None:
            target_date = date.today() + timedelta(days=1)

        logger.info(f"Generating demand forecasts for {target_date}")

        histories = self.loader.to_route_histories(self.df_demand, self.fleet.demand_factors)
        self.forecasts = batch_forecast(histories, target_date, ensemble=self.ensemble)

        return self.forecasts

    def evaluate_forecasts(self, holdout_periods: Optional[int] = None) -> Dict[str, Dict]:
        """
        Backtest the ensemble on the tail of each route's history

        Routes with too little history for the holdout are skipped.

        Returns:
            Backtest results keyed by route id
        """
        self._require_data()

        if holdout_periods is None:
            holdout_periods = self.config.get('forecasting.holdout_periods', 7)

        results = {}
        for history in self.loader.to_route_histories(self.df_demand):
            if len(history.historical_data) <= holdout_periods:
                logger.warning(f"⚠️  Skipping {history.route_id}: "
                               f"{len(history.historical_data)} observations")
                continue
            results[history.route_id] = self.ensemble.backtest(
                history.historical_data, holdout_periods
            )

        return results

    def optimize(
        self,
        period_start: Optional[datetime] = None,
        period_hours: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> List[Schedule]:
        """
        Run the greedy assignment for a scheduling period

        Args:
            period_start: Start of the period (defaults to the next full hour)
            period_hours: Length of the period (defaults to scheduling.period_hours)
            now: Reference time for maintenance checks

        Returns:
            Newly created schedules
        """
        self._require_data()

        if not self.forecasts:
            self.generate_forecasts()

        now = now if now else datetime.now()
        if period_start is None:
            period_start = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        if period_hours is None:
            period_hours = self.config.get('scheduling.period_hours', 24)

        period = TimeWindow(period_start, period_start + timedelta(hours=period_hours))

        logger.info(f"Optimizing schedule for {period.start:%Y-%m-%d %H:%M} "
                    f"- {period.end:%Y-%m-%d %H:%M}")

        self.new_schedules = optimize_schedule(
            self.fleet.rakes,
            self.fleet.routes,
            self.forecasts,
            self.fleet.schedules,
            period,
            self.constraints,
            now=now
        )

        return self.new_schedules

    def reschedule_for_route(self, route_id: str, now: Optional[datetime] = None) -> RescheduleResult:
        """
        Shift low-priority departures to make room for a route

        Raises:
            ValueError: If the route is not part of the roster
        """
        self._require_data()

        route = self.fleet.route(route_id)
        if route is None:
            raise ValueError(f"Unknown route: {route_id}")

        return reschedule_for_priority(
            self.all_schedules(),
            route,
            self.fleet.rakes,
            self.constraints,
            now=now,
            routes=self.fleet.routes
        )

    def all_schedules(self) -> List[Schedule]:
        """Existing schedules followed by the ones created by optimize()"""
        existing = self.fleet.schedules if self.fleet else []
        return list(existing) + list(self.new_schedules)

    def calculate_metrics(self) -> Dict:
        """Schedule metrics over existing and newly created schedules"""
        self._require_data()
        return calculate_schedule_metrics(self.all_schedules(), self.fleet.rakes, self.constraints)

    def fleet_summary(self, now: Optional[datetime] = None) -> Dict:
        """Rake / schedule counts by status and maintenance alerts"""
        self._require_data()
        return fleet_status_summary(self.fleet.rakes, self.all_schedules(), self.constraints, now=now)

    def export(self, output_dir: Optional[str] = None) -> Dict[str, Path]:
        """
        Export fleet, schedules (including new ones), forecasts and history

        Args:
            output_dir: Target directory (defaults to output.reports_dir)

        Returns:
            Mapping of dataset name to written file
        """
        self._require_data()

        if output_dir is None:
            output_dir = self.config.get_path('output.reports_dir', 'reports')

        fleet = FleetData(
            rakes=self.fleet.rakes,
            routes=self.fleet.routes,
            schedules=self.all_schedules(),
            demand_factors=self.fleet.demand_factors
        )

        exporter = ReportExporter(output_dir)
        return exporter.export_all(fleet, self.forecasts, self.df_demand)

    def run(
        self,
        target_date: Optional[date] = None,
        period_start: Optional[datetime] = None,
        export: bool = True
    ) -> Dict:
        """
        Run the complete pipeline on the configured data

        Returns:
            Dictionary with forecasts, new schedules, metrics and exported files
        """
        self.load_data()
        forecasts = self.generate_forecasts(target_date)
        new_schedules = self.optimize(period_start)
        metrics = self.calculate_metrics()

        logger.info(f"  Utilization:      {metrics['utilization_rate']:.1%}")
        logger.info(f"  On-time:          {metrics['on_time_performance']:.1%}")
        logger.info(f"  Avg route time:   {metrics['average_route_time']:.1f}h")

        files = self.export() if export else {}

        return {
            'forecasts': forecasts,
            'new_schedules': new_schedules,
            'metrics': metrics,
            'files': files
        }
