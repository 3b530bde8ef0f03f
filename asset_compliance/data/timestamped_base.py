import uuid
from datetime import datetime
from sqlalchemy import inspect
from sqlalchemy.orm import declared_attr
from asset_compliance import db


def new_record_id():
    return str(uuid.uuid4())


class TimestampedBase(db.Model):
    """Abstract base class for tracked entities with creation/update timestamps"""

    __abstract__ = True

    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower() + 's'

    id = db.Column(db.String(36), primary_key=True, default=new_record_id)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def column_names(cls):
        """Set of persisted column names for this model"""
        return {column.key for column in inspect(cls).columns}

    @classmethod
    def from_row(cls, row):
        """
        Create a model instance from a raw row dictionary.
        Keys that are not columns of the model are ignored.
        """
        columns = cls.column_names()
        filtered = {}
        for key, value in row.items():
            if key not in columns:
                continue
            if key in ('created_at', 'updated_at') and value is None:
                continue
            filtered[key] = value
        return cls(**filtered)

    def to_row(self):
        """
        Convert the model instance to its raw persisted shape.

        Subclasses add joined lookup names (group_name, schedule_name) on top
        of the column values.
        """
        return {column: getattr(self, column) for column in self.column_names()}
