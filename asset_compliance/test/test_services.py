"""
Tests for the analytics summary and cache warming
"""

from datetime import date

from asset_compliance.buisness.core.records import Equipment
from asset_compliance.services.analytics_service import ComplianceSummaryService
from asset_compliance.services.cache_warmer import warm_cache
from asset_compliance.test.conftest import FailingCacheStore, create_equipment, create_plant


def _equipment(status, group_name='PFD', schedule_name='Annual'):
    return Equipment(id=status, name='Item', auto_id='X001', group_name=group_name,
                     schedule_name=schedule_name, status=status)


def test_status_counts_include_every_state():
    counts = ComplianceSummaryService.status_counts([_equipment('overdue'), _equipment('overdue')])
    assert counts == {'compliant': 0, 'upcoming': 0, 'overdue': 2}


def test_bucket_counts_sorted_by_total():
    buckets = ComplianceSummaryService.bucket_counts(['Fire', 'PFD', 'Fire', None], names=['Racking'])
    assert buckets == [
        {'name': 'Fire', 'total': 2},
        {'name': 'PFD', 'total': 1},
        {'name': 'Racking', 'total': 0},
    ]


def test_summarize(equipment_manager, plant_manager):
    create_equipment(equipment_manager, schedule_name='Monthly', last_inspection='2024-01-01')
    create_equipment(equipment_manager, group_name='Fire', schedule_name='Annual')
    create_plant(plant_manager)
    create_plant(plant_manager, name='Generator', group_name='Petrol Plant', service_due_date=None)

    result = ComplianceSummaryService.summarize(equipment_manager, plant_manager)

    assert result.ok, result.error
    equipment = result.data['equipment']
    assert equipment['total'] == 2
    assert equipment['status'] == {'compliant': 1, 'upcoming': 0, 'overdue': 1}
    assert equipment['groups'][0]['total'] == 1
    assert {bucket['name'] for bucket in equipment['schedules']} >= {'Monthly', 'Annual', 'Biennial'}

    plant = result.data['plant']
    assert plant['total'] == 2
    assert plant['service'] == [
        {'name': 'Service Due', 'total': 1},
        {'name': 'No Service Date', 'total': 1},
    ]
    assert {'name': 'Trailer', 'total': 0} in plant['groups']


def test_summarize_is_scoped_to_organization(equipment_manager, plant_manager):
    create_equipment(equipment_manager, org_id='org-1')
    create_equipment(equipment_manager, org_id='org-2')

    result = ComplianceSummaryService.summarize(equipment_manager, plant_manager, 'org-1')

    assert result.data['equipment']['total'] == 1
    assert result.data['plant']['total'] == 0


def test_warm_cache_fills_collections(equipment_manager, plant_manager, cache_store):
    result = warm_cache(equipment_manager, plant_manager, ['org-1'])

    assert result.ok, result.error
    assert result.data == 7
    assert {
        'equipment:all',
        'equipment:groups',
        'equipment:schedules',
        'plant:all',
        'plant:groups',
        'equipment:org:org-1',
        'plant:org:org-1',
    } <= cache_store.keys()


def test_warm_cache_with_unreachable_store(app):
    from asset_compliance.buisness.equipment import EquipmentManager
    from asset_compliance.buisness.plant import PlantManager

    store = FailingCacheStore()
    result = warm_cache(EquipmentManager.from_app(app, cache_store=store),
                        PlantManager.from_app(app, cache_store=store))

    assert result.ok, result.error
    assert result.data == 5
