"""
Tests for the application factory and database build
"""

from asset_compliance import create_app
from asset_compliance.build import EQUIPMENT_GROUPS, PLANT_GROUPS, insert_critical_data, verify_critical_data
from asset_compliance.data.cache_store import InMemoryCacheStore, RedisCacheStore
from asset_compliance.data.equipment import EquipmentGroup


def _app(**config):
    settings = {'TESTING': True, 'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:'}
    settings.update(config)
    return create_app(settings)


def test_cache_backend_selection():
    assert _app(CACHE_BACKEND='none').extensions['cache_store'] is None
    assert isinstance(_app(CACHE_BACKEND='memory').extensions['cache_store'], InMemoryCacheStore)
    assert _app(CACHE_BACKEND='redis', REDIS_URL=None).extensions['cache_store'] is None
    assert _app(CACHE_BACKEND='bogus').extensions['cache_store'] is None


def test_redis_backend_builds_client_without_connecting():
    store = _app(CACHE_BACKEND='redis', REDIS_URL='redis://localhost:6379/15').extensions['cache_store']
    assert isinstance(store, RedisCacheStore)


def test_critical_data_is_seeded(app):
    assert verify_critical_data()
    names = {group.name for group in EquipmentGroup.query.all()}
    assert set(EQUIPMENT_GROUPS) == names
    # Seeding twice inserts nothing
    assert insert_critical_data() == 0


def test_compliance_thresholds_come_from_config(app):
    from asset_compliance.buisness.equipment import EquipmentManager

    app.config['UPCOMING_WINDOW_DAYS'] = 7
    manager = EquipmentManager.from_app(app)

    assert manager.engine.upcoming_window_days == 7
    assert manager.cache_store is app.extensions['cache_store']
    assert 'Vehicle' in PLANT_GROUPS
