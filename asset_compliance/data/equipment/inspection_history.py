from asset_compliance.data.timestamped_base import TimestampedBase
from asset_compliance import db


class InspectionHistory(TimestampedBase):
    __tablename__ = 'inspection_history'

    equipment_id = db.Column(db.String(36), db.ForeignKey('equipment.id'), nullable=False, index=True)
    inspection_date = db.Column(db.Date, nullable=False)
    inspector_name = db.Column(db.String(200), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='pass')  # pass | fail | needs_repair | conditional
    next_inspection_date = db.Column(db.Date, nullable=True)

    def __repr__(self):
        return f'<InspectionHistory {self.equipment_id} {self.inspection_date}>'
