"""
Cache serialization
Converts lists of domain records to and from the JSON text held in the cache.
"""

import json
from datetime import date, datetime
from typing import Any, List, Type

from asset_compliance.buisness.core.errors import CacheDeserializationError


class RecordSerializer:
    """
    JSON codec for one record type.

    Dates are written as ISO-8601 strings (or null) and rebuilt on read.
    Unknown fields are dropped. Anything that is not a list of objects with
    parseable dates raises CacheDeserializationError.
    """

    def __init__(self, record_cls: Type):
        self.record_cls = record_cls

    def serialize(self, records: List[Any]) -> str:
        return json.dumps([record.to_dict() for record in records])

    def deserialize(self, raw: Any) -> List[Any]:
        payload = self._load(raw)
        if not isinstance(payload, list):
            raise CacheDeserializationError(
                f"Expected a list of {self.record_cls.__name__} records, got {type(payload).__name__}"
            )
        return [self._build(item) for item in payload]

    def _load(self, raw):
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode('utf-8')
            except UnicodeDecodeError as e:
                raise CacheDeserializationError(f"Cached payload is not UTF-8: {e}") from e
        if not isinstance(raw, str):
            # Some stores hand back already-decoded JSON
            return raw
        try:
            return json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise CacheDeserializationError(f"Cached payload is not valid JSON: {e}") from e

    def _build(self, item):
        if not isinstance(item, dict):
            raise CacheDeserializationError(
                f"Expected a {self.record_cls.__name__} object, got {type(item).__name__}"
            )

        values = {}
        for name in self.record_cls.field_names():
            if name not in item:
                continue
            value = item[name]
            if name in self.record_cls.DATE_FIELDS:
                value = self._parse_date(name, value)
            elif name in self.record_cls.DATETIME_FIELDS:
                value = self._parse_datetime(name, value)
            values[name] = value

        try:
            return self.record_cls(**values)
        except TypeError as e:
            raise CacheDeserializationError(f"Incomplete {self.record_cls.__name__} record: {e}") from e

    @staticmethod
    def _parse_date(name, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise CacheDeserializationError(f"Field '{name}' is not an ISO date: {value!r}")
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except ValueError as e:
            raise CacheDeserializationError(f"Field '{name}' is not an ISO date: {value!r}") from e

    @staticmethod
    def _parse_datetime(name, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise CacheDeserializationError(f"Field '{name}' is not an ISO timestamp: {value!r}")
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError as e:
            raise CacheDeserializationError(f"Field '{name}' is not an ISO timestamp: {value!r}") from e
