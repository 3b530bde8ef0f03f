from asset_compliance.data.timestamped_base import TimestampedBase
from asset_compliance import db


class EquipmentSchedule(TimestampedBase):
    """Named inspection interval (Monthly, Quarterly, 6-Monthly, Annual, Biennial)"""
    __tablename__ = 'equipment_schedules'

    name = db.Column(db.String(50), unique=True, nullable=False)

    def __repr__(self):
        return f'<EquipmentSchedule {self.name}>'
