from asset_compliance.data.timestamped_base import TimestampedBase
from asset_compliance import db


class PlantGroup(TimestampedBase):
    __tablename__ = 'plant_groups'

    name = db.Column(db.String(100), unique=True, nullable=False)

    def __repr__(self):
        return f'<PlantGroup {self.name}>'
