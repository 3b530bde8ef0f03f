"""
Domain records
The shapes the compliance core and the presentation layer work with.

Rows arrive from the repository in their raw persisted shape; from_row maps
them to records and is the only place where category names are normalized.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, ClassVar, Dict, Optional, Tuple

from asset_compliance.buisness.compliance.dates import to_calendar_date

DEFAULT_SERVICE_INTERVAL_KM = 10000
DEFAULT_SERVICE_INTERVAL_DAYS = 365
DEFAULT_PLANT_STATUS = 'in_service'


def normalize_group_name(row: Dict[str, Any]) -> Optional[str]:
    """
    Resolve the category name of a raw row.

    Rows from different sources name the category differently: a flattened
    group_name, a joined equipment_groups/plant_groups object, or the legacy
    type/automation_category columns.
    """
    if row.get('group_name'):
        return row['group_name']
    for joined in ('equipment_groups', 'plant_groups', 'group'):
        value = row.get(joined)
        if isinstance(value, dict) and value.get('name'):
            return value['name']
    return row.get('type') or row.get('automation_category')


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None


class RecordMixin:
    """Row mapping and dictionary conversion shared by every record"""

    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ()
    DATETIME_FIELDS: ClassVar[Tuple[str, ...]] = ('created_at', 'updated_at')

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls)]

    @classmethod
    def from_row(cls, row: Dict[str, Any]):
        """Build a record from a raw row, ignoring columns the record does not carry"""
        values = {}
        for name in cls.field_names():
            if name not in row:
                continue
            value = row[name]
            if name in cls.DATE_FIELDS:
                value = to_calendar_date(value)
            elif name in cls.DATETIME_FIELDS:
                value = _to_datetime(value)
            values[name] = value

        if 'group_name' in cls.field_names():
            values['group_name'] = normalize_group_name(row)

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a JSON-safe dictionary (dates as ISO-8601 strings)"""
        result = {}
        for name in self.field_names():
            value = getattr(self, name)
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            result[name] = value
        return result


@dataclass
class GroupRecord(RecordMixin):
    """Equipment group, equipment schedule or plant group"""
    id: str
    name: str

    DATETIME_FIELDS: ClassVar[Tuple[str, ...]] = ()


@dataclass
class Equipment(RecordMixin):
    id: str
    name: str
    auto_id: str
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    schedule_id: Optional[str] = None
    schedule_name: Optional[str] = None
    description: Optional[str] = None
    last_inspection: Optional[date] = None
    next_inspection: Optional[date] = None
    status: str = 'compliant'
    location: Optional[str] = None
    organization_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ('last_inspection', 'next_inspection')


@dataclass
class InspectionRecord(RecordMixin):
    id: str
    equipment_id: str
    inspection_date: date
    inspector_name: Optional[str] = None
    notes: Optional[str] = None
    status: str = 'pass'
    next_inspection_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ('inspection_date', 'next_inspection_date')

    PASS: ClassVar[str] = 'pass'
    FAIL: ClassVar[str] = 'fail'
    NEEDS_REPAIR: ClassVar[str] = 'needs_repair'
    CONDITIONAL: ClassVar[str] = 'conditional'
    VERDICTS: ClassVar[Tuple[str, ...]] = (PASS, FAIL, NEEDS_REPAIR, CONDITIONAL)


@dataclass
class Plant(RecordMixin):
    id: str
    name: str
    auto_id: str
    group_id: Optional[str] = None
    group_name: Optional[str] = None

    registration_number: Optional[str] = None
    service_due_date: Optional[date] = None
    location: Optional[str] = None
    responsible_person: Optional[str] = None
    status: str = 'compliant'

    # Vehicle / Truck
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    odometer: Optional[float] = None
    service_due_odometer: Optional[float] = None
    last_service_odometer: Optional[float] = None
    service_interval_km: Optional[float] = DEFAULT_SERVICE_INTERVAL_KM
    service_interval_days: Optional[int] = DEFAULT_SERVICE_INTERVAL_DAYS

    # HIAB crane
    hiab_fitted: bool = False
    hiab_make: Optional[str] = None
    hiab_model: Optional[str] = None
    hiab_service_due_date: Optional[date] = None

    # Vessel
    uvi: Optional[str] = None
    outboard_type: Optional[str] = None
    outboard_quantity: Optional[int] = None
    vessel_survey_due_date: Optional[date] = None
    vessel_survey_type: Optional[str] = None
    certificate_of_operation_due_date: Optional[date] = None

    # Petrol plant
    description: Optional[str] = None
    serial_number: Optional[str] = None
    plant_status: str = DEFAULT_PLANT_STATUS

    organization_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    DATE_FIELDS: ClassVar[Tuple[str, ...]] = (
        'service_due_date',
        'hiab_service_due_date',
        'vessel_survey_due_date',
        'certificate_of_operation_due_date',
    )

    @classmethod
    def from_row(cls, row):
        plant = super().from_row(row)
        # Columns are nullable upstream; unset values take the defaults
        plant.service_interval_km = plant.service_interval_km or DEFAULT_SERVICE_INTERVAL_KM
        plant.service_interval_days = plant.service_interval_days or DEFAULT_SERVICE_INTERVAL_DAYS
        plant.plant_status = plant.plant_status or DEFAULT_PLANT_STATUS
        plant.hiab_fitted = bool(plant.hiab_fitted)
        return plant


@dataclass
class ServiceRecord(RecordMixin):
    id: str
    plant_id: str
    service_date: date
    service_type: str
    serviced_by: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    next_service_date: Optional[date] = None
    odometer: Optional[float] = None
    inspection_data: Optional[Dict[str, Any]] = field(default=None)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ('service_date', 'next_service_date')
