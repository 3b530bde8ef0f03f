"""
Pytest configuration and fixtures for the compliance core
Each test gets a fresh in-memory database with the critical lookup data and
an in-memory cache store.
"""
import os
from datetime import date

import pytest

# Keep test runs from writing logs/ files
os.environ.setdefault('LOG_TO_FILE', 'False')

from asset_compliance import create_app
from asset_compliance import db as _db
from asset_compliance.build import build_database
from asset_compliance.buisness.equipment import EquipmentManager
from asset_compliance.buisness.plant import PlantManager
from asset_compliance.buisness.core.errors import RepositoryError
from asset_compliance.data.cache_store import CacheStore, InMemoryCacheStore

# Fixed "today" for every status-deriving call in the tests
TODAY = date(2024, 3, 1)


class FailingCacheStore(CacheStore):
    """Cache store whose every call fails, like an unreachable redis server"""

    def get(self, key):
        raise ConnectionError("cache unavailable")

    def set(self, key, raw, ttl_seconds):
        raise ConnectionError("cache unavailable")

    def delete(self, key):
        raise ConnectionError("cache unavailable")


class RecordingCacheStore(InMemoryCacheStore):
    """In-memory cache store that records every call as (operation, key)"""

    def __init__(self):
        super().__init__()
        self.calls = []

    def get(self, key):
        self.calls.append(('get', key))
        return super().get(key)

    def set(self, key, raw, ttl_seconds):
        self.calls.append(('set', key))
        super().set(key, raw, ttl_seconds)

    def delete(self, key):
        self.calls.append(('delete', key))
        super().delete(key)

    def deleted(self):
        return [key for operation, key in self.calls if operation == 'delete']


def fail_on_call(monkeypatch, target, name, call_number=1):
    """Make target.name raise RepositoryError on the given call; earlier calls go through"""
    original = getattr(target, name)
    calls = []

    def failing(*args, **kwargs):
        calls.append(args)
        if len(calls) == call_number:
            raise RepositoryError(f"{name} failed")
        return original(*args, **kwargs)

    monkeypatch.setattr(target, name, failing)
    return calls


@pytest.fixture(scope='function')
def app():
    """Create Flask application with an in-memory database"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'CACHE_BACKEND': 'memory',
    })

    with app.app_context():
        build_database()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def cache_store():
    return RecordingCacheStore()


@pytest.fixture(scope='function')
def equipment_manager(app, cache_store):
    return EquipmentManager.from_app(app, cache_store=cache_store, today_provider=lambda: TODAY)


@pytest.fixture(scope='function')
def plant_manager(app, cache_store):
    return PlantManager.from_app(app, cache_store=cache_store, today_provider=lambda: TODAY)


def create_equipment(manager, **overrides):
    """Create an equipment item and return the record, failing the test on error"""
    data = {
        'name': 'Life jacket',
        'group_name': 'PFD',
        'schedule_name': 'Annual',
        'last_inspection': '2024-01-15',
    }
    org_id = overrides.pop('org_id', None)
    data.update(overrides)
    result = manager.create(data, org_id)
    assert result.ok, result.error
    return result.data


def create_plant(manager, **overrides):
    """Create a plant item and return the record, failing the test on error"""
    data = {
        'name': 'Hilux',
        'group_name': 'Vehicle',
        'service_due_date': '2025-01-01',
    }
    org_id = overrides.pop('org_id', None)
    data.update(overrides)
    result = manager.create(data, org_id)
    assert result.ok, result.error
    return result.data
