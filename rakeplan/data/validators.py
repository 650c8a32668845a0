"""Data validation for fleet rosters"""

from typing import Dict, List, Optional
from rakeplan.data.loaders import FleetData
from rakeplan.data.schemas import ScheduleStatus
from rakeplan.utils.config import ConfigLoader
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


class FleetValidator:
    """
    Validate fleet data against the data model rules

    Performs checks on:
    - Rakes (positive capacity, maintenance dates in order)
    - Routes (positive distance and travel time)
    - Schedules (arrival after departure, known references, cargo within
      rake capacity, continuous operation limit)

    Validation never raises; each check returns a report and logs issues.
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """
        Initialize validator

        Args:
            config: Configuration (reads scheduling.max_continuous_operation)
        """
        self.config = config if config else ConfigLoader.from_dict({})
        self.max_continuous_operation = self.config.get('scheduling.max_continuous_operation', 72)
        self.validation_results = {}

    @staticmethod
    def _report(issues: List[str], warnings: List[str], checked: int) -> Dict:
        if issues:
            status = 'fail'
        elif warnings:
            status = 'warning'
        else:
            status = 'pass'

        return {
            'status': status,
            'checked': checked,
            'issues': issues,
            'warnings': warnings
        }

    def validate_rakes(self, fleet: FleetData) -> Dict:
        """
        Check rake capacity, maintenance ordering and duplicate ids

        Returns:
            Validation report dict
        """
        logger.info("Validating rakes...")

        issues = []
        seen = set()
        for rake in fleet.rakes:
            if rake.id in seen:
                issues.append(f"{rake.id}: duplicate rake id")
            seen.add(rake.id)

            if rake.capacity <= 0:
                issues.append(f"{rake.id}: capacity must be positive ({rake.capacity})")
            if rake.next_maintenance < rake.last_maintenance:
                issues.append(f"{rake.id}: next maintenance before last maintenance")

        report = self._report(issues, [], len(fleet.rakes))
        self._log(report, 'rakes')
        self.validation_results['rakes'] = report
        return report

    def validate_routes(self, fleet: FleetData) -> Dict:
        """Check route distance and travel time"""
        logger.info("Validating routes...")

        issues = []
        for route in fleet.routes:
            if route.distance <= 0:
                issues.append(f"{route.id}: distance must be positive ({route.distance})")
            if route.estimated_travel_time <= 0:
                issues.append(f"{route.id}: travel time must be positive ({route.estimated_travel_time})")

        report = self._report(issues, [], len(fleet.routes))
        self._log(report, 'routes')
        self.validation_results['routes'] = report
        return report

    def validate_schedules(self, fleet: FleetData) -> Dict:
        """
        Check schedule timing, references, cargo weight and trip length

        Returns:
            Validation report dict
        """
        logger.info("Validating schedules...")

        rakes = {rake.id: rake for rake in fleet.rakes}
        route_ids = {route.id for route in fleet.routes}

        issues = []
        warnings = []
        for schedule in fleet.schedules:
            if schedule.arrival_time <= schedule.departure_time:
                issues.append(f"{schedule.id}: arrival must be after departure")

            rake = rakes.get(schedule.rake_id)
            if rake is None:
                issues.append(f"{schedule.id}: unknown rake '{schedule.rake_id}'")
            elif schedule.cargo is not None and schedule.cargo.weight > rake.capacity:
                issues.append(
                    f"{schedule.id}: cargo {schedule.cargo.weight:g}t exceeds "
                    f"{rake.id} capacity {rake.capacity:g}t"
                )

            if schedule.route_id not in route_ids:
                issues.append(f"{schedule.id}: unknown route '{schedule.route_id}'")

            if schedule.duration_hours > self.max_continuous_operation:
                warnings.append(
                    f"{schedule.id}: {schedule.duration_hours:.1f}h trip exceeds "
                    f"{self.max_continuous_operation}h continuous operation"
                )

            if schedule.status == ScheduleStatus.COMPLETED and schedule.actual_arrival_time is None:
                warnings.append(f"{schedule.id}: completed without actual arrival time")

        report = self._report(issues, warnings, len(fleet.schedules))
        self._log(report, 'schedules')
        self.validation_results['schedules'] = report
        return report

    def validate_all(self, fleet: FleetData) -> Dict:
        """
        Run every check

        Returns:
            Dictionary with one report per entity type plus an overall status
        """
        reports = {
            'rakes': self.validate_rakes(fleet),
            'routes': self.validate_routes(fleet),
            'schedules': self.validate_schedules(fleet)
        }

        statuses = {report['status'] for report in reports.values()}
        if 'fail' in statuses:
            overall = 'fail'
        elif 'warning' in statuses:
            overall = 'warning'
        else:
            overall = 'pass'

        reports['status'] = overall
        return reports

    def _log(self, report: Dict, entity: str):
        for issue in report['issues']:
            logger.error(f"❌ {issue}")
        for warning in report['warnings']:
            logger.warning(f"⚠️  {warning}")
        if report['status'] == 'pass':
            logger.info(f"✅ All {report['checked']} {entity} valid")
