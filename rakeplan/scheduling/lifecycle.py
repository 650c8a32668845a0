"""Rake and schedule lifecycle updates and the fleet status summary"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Union
from rakeplan.data.schemas import Rake, RakeStatus, Schedule, ScheduleStatus
from rakeplan.scheduling.constraints import DEFAULT_CONSTRAINTS, SchedulingConstraints
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


def complete_maintenance(
    rake: Rake,
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS,
    now: Optional[datetime] = None
) -> Rake:
    """
    Mark a rake's maintenance as done

    The rake becomes available, last maintenance is set to now and the next
    one is planned `maintenance_cycle_hours` later. Updates the rake in place.

    Returns:
        The updated rake
    """
    now = now if now else datetime.now()

    rake.status = RakeStatus.AVAILABLE
    rake.last_maintenance = now
    rake.next_maintenance = now + timedelta(hours=constraints.maintenance_cycle_hours)

    logger.info(f"✅ {rake.id} maintenance completed, next due {rake.next_maintenance:%Y-%m-%d %H:%M}")

    return rake


def update_rake_status(rake: Rake, status: Union[RakeStatus, str]) -> Rake:
    """
    Set a rake's operational status (any transition is allowed)

    Raises:
        ValueError: If status is not a known rake status
    """
    previous = rake.status
    rake.status = RakeStatus(status)
    logger.info(f"{rake.id}: {previous.value} -> {rake.status.value}")
    return rake


def update_schedule_status(
    schedule: Schedule,
    status: Union[ScheduleStatus, str],
    actual_arrival_time: Optional[datetime] = None
) -> Schedule:
    """
    Set a schedule's status (any transition is allowed)

    An actual arrival time can be recorded alongside, typically when the
    trip completes; on-time performance only counts completed trips with one.

    Raises:
        ValueError: If status is not a known schedule status
    """
    previous = schedule.status
    schedule.status = ScheduleStatus(status)
    if actual_arrival_time is not None:
        schedule.actual_arrival_time = actual_arrival_time

    logger.info(f"{schedule.id}: {previous.value} -> {schedule.status.value}")
    return schedule


def maintenance_alerts(
    rakes: Sequence[Rake],
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS,
    now: Optional[datetime] = None
) -> List[Dict]:
    """
    Rakes in maintenance or due within `maintenance_alert_horizon_hours`

    Returns:
        One dict per rake: rake_id, alert ('In Maintenance' or
        'Maintenance Due') and next_maintenance, soonest maintenance first
    """
    now = now if now else datetime.now()
    horizon = now + timedelta(hours=constraints.maintenance_alert_horizon_hours)

    alerts = []
    for rake in rakes:
        if rake.status == RakeStatus.MAINTENANCE:
            alert = 'In Maintenance'
        elif rake.next_maintenance <= horizon:
            alert = 'Maintenance Due'
        else:
            continue
        alerts.append({
            'rake_id': rake.id,
            'alert': alert,
            'next_maintenance': rake.next_maintenance
        })

    return sorted(alerts, key=lambda a: a['next_maintenance'])


def fleet_status_summary(
    rakes: Sequence[Rake],
    schedules: Sequence[Schedule],
    constraints: SchedulingConstraints = DEFAULT_CONSTRAINTS,
    now: Optional[datetime] = None
) -> Dict:
    """
    Fleet overview: counts by status and maintenance alerts

    Returns:
        Dictionary with total_rakes, rake_status (count per RakeStatus value),
        schedule_status (count per ScheduleStatus value), maintenance_due
        (rakes whose next maintenance falls within the alert horizon) and
        alerts (see maintenance_alerts)
    """
    now = now if now else datetime.now()

    rake_status = {status.value: 0 for status in RakeStatus}
    for rake in rakes:
        rake_status[rake.status.value] += 1

    schedule_status = {status.value: 0 for status in ScheduleStatus}
    for schedule in schedules:
        schedule_status[schedule.status.value] += 1

    horizon = now + timedelta(hours=constraints.maintenance_alert_horizon_hours)
    maintenance_due = [rake.id for rake in rakes if rake.next_maintenance <= horizon]

    alerts = maintenance_alerts(rakes, constraints, now)
    if alerts:
        logger.warning(f"⚠️  {len(alerts)} rakes need maintenance attention")

    return {
        'total_rakes': len(rakes),
        'rake_status': rake_status,
        'schedule_status': schedule_status,
        'maintenance_due': maintenance_due,
        'alerts': alerts
    }
