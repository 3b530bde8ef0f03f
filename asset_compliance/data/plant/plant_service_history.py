from asset_compliance.data.timestamped_base import TimestampedBase
from asset_compliance import db


class PlantServiceHistory(TimestampedBase):
    __tablename__ = 'plant_service_history'

    plant_id = db.Column(db.String(36), db.ForeignKey('plant.id'), nullable=False, index=True)
    service_date = db.Column(db.Date, nullable=False)
    service_type = db.Column(db.String(100), nullable=False)
    serviced_by = db.Column(db.String(200), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=True)
    next_service_date = db.Column(db.Date, nullable=True)
    odometer = db.Column(db.Float, nullable=True)
    inspection_data = db.Column(db.JSON, nullable=True)

    def __repr__(self):
        return f'<PlantServiceHistory {self.plant_id} {self.service_date}>'
