from asset_compliance.data.timestamped_base import TimestampedBase
from asset_compliance import db


class Equipment(TimestampedBase):
    __tablename__ = 'equipment'
    __table_args__ = (
        db.UniqueConstraint('group_id', 'auto_id', name='uq_equipment_group_auto_id'),
    )

    name = db.Column(db.String(200), nullable=False)
    group_id = db.Column(db.String(36), db.ForeignKey('equipment_groups.id'), nullable=False)
    auto_id = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text, nullable=True)
    schedule_id = db.Column(db.String(36), db.ForeignKey('equipment_schedules.id'), nullable=True)
    last_inspection = db.Column(db.Date, nullable=True)
    next_inspection = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='compliant')
    location = db.Column(db.String(200), nullable=True)
    organization_id = db.Column(db.String(64), nullable=True, index=True)

    # Relationships
    group = db.relationship('EquipmentGroup', lazy='joined')
    schedule = db.relationship('EquipmentSchedule', lazy='joined')
    inspections = db.relationship('InspectionHistory', backref='equipment', lazy='dynamic')

    def to_row(self):
        row = super().to_row()
        row['group_name'] = self.group.name if self.group else None
        row['schedule_name'] = self.schedule.name if self.schedule else None
        return row

    def __repr__(self):
        return f'<Equipment {self.auto_id} ({self.name})>'
