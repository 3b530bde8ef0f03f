"""
Due Status Engine
Derives compliant / upcoming / overdue from due dates and, for vehicles and
trucks, odometer readings.

Missing inputs always resolve to compliant: an asset with nothing tracked yet
is never reported as a compliance problem.
"""

from datetime import date
from typing import Any, Optional

from asset_compliance.buisness.compliance.dates import to_calendar_date


class DueState:
    """Compliance states ordered by severity"""

    COMPLIANT = 'compliant'
    UPCOMING = 'upcoming'
    OVERDUE = 'overdue'

    ALL = (COMPLIANT, UPCOMING, OVERDUE)

    SEVERITY = {
        COMPLIANT: 0,
        UPCOMING: 1,
        OVERDUE: 2,
    }

    @classmethod
    def most_severe(cls, *states: str) -> str:
        return max(states, key=lambda state: cls.SEVERITY[state])


# Next-service signal for vehicles/trucks
SERVICE_DUE_ODOMETER = 'odometer'
SERVICE_DUE_DATE = 'date'
SERVICE_DUE_BOTH = 'both'
SERVICE_DUE_NONE = 'none'


class DueStatusEngine:
    """
    Status derivation for equipment and plant.

    Two strategies share one output domain:
    - single criterion: due date only (equipment and most plant)
    - dual criterion: the more severe of due date and odometer (Vehicle, Truck)
    """

    UPCOMING_WINDOW_DAYS = 30
    DEFAULT_SERVICE_INTERVAL_KM = 10000
    UPCOMING_ODOMETER_FRACTION = 0.10

    DUAL_CRITERION_GROUPS = {'vehicle', 'truck'}

    def __init__(self, upcoming_window_days: Optional[int] = None,
                 default_service_interval_km: Optional[float] = None):
        self.upcoming_window_days = (
            upcoming_window_days if upcoming_window_days is not None else self.UPCOMING_WINDOW_DAYS
        )
        self.default_service_interval_km = (
            default_service_interval_km or self.DEFAULT_SERVICE_INTERVAL_KM
        )

    @classmethod
    def from_config(cls, config) -> 'DueStatusEngine':
        """Build an engine from a Flask config mapping"""
        return cls(
            upcoming_window_days=config.get('UPCOMING_WINDOW_DAYS'),
            default_service_interval_km=config.get('DEFAULT_SERVICE_INTERVAL_KM'),
        )

    @classmethod
    def uses_dual_criterion(cls, group_name: Optional[str]) -> bool:
        return bool(group_name) and group_name.strip().lower() in cls.DUAL_CRITERION_GROUPS

    def date_status(self, due_date: Any, today: Optional[date] = None) -> str:
        """
        Single-criterion status from a due date.

        diff = due - today in whole days: diff < 0 is overdue, 0..window is
        upcoming, anything later is compliant. No due date is compliant.
        """
        due = to_calendar_date(due_date)
        if due is None:
            return DueState.COMPLIANT

        today = today or date.today()
        diff_days = (due - today).days

        if diff_days < 0:
            return DueState.OVERDUE
        if diff_days <= self.upcoming_window_days:
            return DueState.UPCOMING
        return DueState.COMPLIANT

    def odometer_status(self, odometer: Optional[float], service_due_odometer: Optional[float],
                        service_interval_km: Optional[float] = None) -> str:
        """
        Odometer sub-status for vehicles/trucks.

        remaining <= 0 is overdue, remaining within 10% of the service interval
        is upcoming. Without a service-due odometer this criterion is compliant.
        """
        if not service_due_odometer:
            return DueState.COMPLIANT

        remaining = service_due_odometer - (odometer or 0)
        interval_km = service_interval_km or self.default_service_interval_km

        if remaining <= 0:
            return DueState.OVERDUE
        if remaining <= interval_km * self.UPCOMING_ODOMETER_FRACTION:
            return DueState.UPCOMING
        return DueState.COMPLIANT

    def equipment_status(self, next_inspection: Any, today: Optional[date] = None) -> str:
        return self.date_status(next_inspection, today)

    def plant_status(self, group_name: Optional[str], service_due_date: Any,
                     odometer: Optional[float] = None,
                     service_due_odometer: Optional[float] = None,
                     service_interval_km: Optional[float] = None,
                     today: Optional[date] = None) -> str:
        """
        Status for a plant item.

        Vehicles and trucks take the more severe of the date and odometer
        sub-statuses; every other group uses the date rule only, even when
        odometer fields are present.
        """
        date_state = self.date_status(service_due_date, today)
        if not self.uses_dual_criterion(group_name):
            return date_state

        odometer_state = self.odometer_status(odometer, service_due_odometer, service_interval_km)
        return DueState.most_severe(date_state, odometer_state)

    def status_for(self, record, today: Optional[date] = None) -> str:
        """Derive the status of an Equipment or Plant record"""
        if hasattr(record, 'next_inspection'):
            return self.equipment_status(record.next_inspection, today)
        return self.plant_status(
            record.group_name,
            record.service_due_date,
            odometer=record.odometer,
            service_due_odometer=record.service_due_odometer,
            service_interval_km=record.service_interval_km,
            today=today,
        )

    def next_service_type(self, plant, today: Optional[date] = None) -> str:
        """
        Which criterion is currently due for a vehicle/truck.

        Returns:
            'odometer', 'date', 'both' or 'none' ('none' for every other group)
        """
        if not self.uses_dual_criterion(plant.group_name):
            return SERVICE_DUE_NONE

        today = today or date.today()
        due_date = to_calendar_date(plant.service_due_date)

        odometer_due = bool(plant.service_due_odometer) and (plant.odometer or 0) >= plant.service_due_odometer
        date_due = due_date is not None and today >= due_date

        if odometer_due and date_due:
            return SERVICE_DUE_BOTH
        if odometer_due:
            return SERVICE_DUE_ODOMETER
        if date_due:
            return SERVICE_DUE_DATE
        return SERVICE_DUE_NONE
