from asset_compliance.data.timestamped_base import TimestampedBase
from asset_compliance import db


class Plant(TimestampedBase):
    __tablename__ = 'plant'
    __table_args__ = (
        db.UniqueConstraint('group_id', 'auto_id', name='uq_plant_group_auto_id'),
    )

    name = db.Column(db.String(200), nullable=False)
    group_id = db.Column(db.String(36), db.ForeignKey('plant_groups.id'), nullable=False)
    auto_id = db.Column(db.String(50), nullable=False)

    # Common
    registration_number = db.Column(db.String(50), nullable=True)
    service_due_date = db.Column(db.Date, nullable=True)
    location = db.Column(db.String(200), nullable=True)
    responsible_person = db.Column(db.String(200), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='compliant')

    # Vehicle / Truck
    vehicle_make = db.Column(db.String(100), nullable=True)
    vehicle_model = db.Column(db.String(100), nullable=True)
    odometer = db.Column(db.Float, nullable=True)
    service_due_odometer = db.Column(db.Float, nullable=True)
    last_service_odometer = db.Column(db.Float, nullable=True)
    service_interval_km = db.Column(db.Float, nullable=True)
    service_interval_days = db.Column(db.Integer, nullable=True)

    # HIAB crane
    hiab_fitted = db.Column(db.Boolean, nullable=False, default=False)
    hiab_make = db.Column(db.String(100), nullable=True)
    hiab_model = db.Column(db.String(100), nullable=True)
    hiab_service_due_date = db.Column(db.Date, nullable=True)

    # Vessel
    uvi = db.Column(db.String(50), nullable=True)
    outboard_type = db.Column(db.String(100), nullable=True)
    outboard_quantity = db.Column(db.Integer, nullable=True)
    vessel_survey_due_date = db.Column(db.Date, nullable=True)
    vessel_survey_type = db.Column(db.String(100), nullable=True)
    certificate_of_operation_due_date = db.Column(db.Date, nullable=True)

    # Petrol plant
    description = db.Column(db.Text, nullable=True)
    serial_number = db.Column(db.String(100), nullable=True)
    plant_status = db.Column(db.String(30), nullable=False, default='in_service')

    organization_id = db.Column(db.String(64), nullable=True, index=True)

    # Relationships
    group = db.relationship('PlantGroup', lazy='joined')
    services = db.relationship('PlantServiceHistory', backref='plant', lazy='dynamic')

    def to_row(self):
        row = super().to_row()
        row['group_name'] = self.group.name if self.group else None
        return row

    def __repr__(self):
        return f'<Plant {self.auto_id} ({self.name})>'
