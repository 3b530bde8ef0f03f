"""
Tests for equipment operations: creation, updates, deletion and inspection history
"""

from datetime import date

from asset_compliance.buisness.core.action_result import FailureKind
from asset_compliance.buisness.equipment import EquipmentManager
from asset_compliance.data.equipment import InspectionHistory
from asset_compliance.test.conftest import TODAY, FailingCacheStore, create_equipment, fail_on_call


def test_create_derives_next_inspection_and_status(equipment_manager):
    item = create_equipment(equipment_manager, schedule_name='Quarterly', last_inspection='2024-01-15')

    assert item.next_inspection == date(2024, 4, 15)
    assert item.status == 'compliant'
    assert item.auto_id == 'PFD001'
    assert item.group_name == 'PFD'
    assert item.schedule_name == 'Quarterly'


def test_status_depends_on_today(app, cache_store):
    manager = EquipmentManager.from_app(app, cache_store=cache_store, today_provider=lambda: date(2024, 3, 20))
    item = create_equipment(manager, schedule_name='Quarterly', last_inspection='2024-01-15')
    assert item.status == 'upcoming'


def test_caller_status_is_ignored(equipment_manager):
    item = create_equipment(equipment_manager, schedule_name='Monthly', last_inspection='2023-12-01',
                            status='compliant')
    assert item.next_inspection == date(2024, 1, 1)
    assert item.status == 'overdue'


def test_next_inspection_without_last_inspection(equipment_manager):
    item = create_equipment(equipment_manager, last_inspection=None, next_inspection='10/03/2024')
    assert item.next_inspection == date(2024, 3, 10)
    assert item.status == 'upcoming'

    untracked = create_equipment(equipment_manager, last_inspection=None, schedule_name=None)
    assert untracked.next_inspection is None
    assert untracked.status == 'compliant'


def test_lookups_are_case_insensitive(equipment_manager):
    item = create_equipment(equipment_manager, group_name='heights safety', schedule_name='6-monthly')
    assert item.group_name == 'Heights Safety'
    assert item.schedule_name == '6-Monthly'
    assert item.auto_id == 'HeightsSafety001'
    assert item.next_inspection == date(2024, 7, 15)


def test_auto_ids_continue_within_group(equipment_manager):
    first = create_equipment(equipment_manager)
    second = create_equipment(equipment_manager)
    other = create_equipment(equipment_manager, group_name='Fire')

    assert (first.auto_id, second.auto_id, other.auto_id) == ('PFD001', 'PFD002', 'Fire001')


def test_explicit_auto_id_collision_is_resolved(equipment_manager):
    create_equipment(equipment_manager, auto_id='PFD007')
    item = create_equipment(equipment_manager, auto_id='PFD007')
    assert item.auto_id == 'PFD008'


def test_create_validation_failures(equipment_manager):
    result = equipment_manager.create({'group_name': 'PFD', 'schedule_name': 'Annual'})
    assert result.failure == FailureKind.VALIDATION_FAILURE
    assert result.error.startswith('Failed to create equipment')

    result = equipment_manager.create({'name': 'Hose reel', 'group_name': 'Plumbing'})
    assert result.failure == FailureKind.VALIDATION_FAILURE
    assert 'Plumbing' in result.error

    result = equipment_manager.create({'name': 'Hose reel', 'group_name': 'Fire', 'schedule_name': 'Weekly'})
    assert result.failure == FailureKind.VALIDATION_FAILURE

    result = equipment_manager.create({'name': 'Hose reel', 'group_name': 'Fire', 'last_inspection': '31/02/2024'})
    assert result.failure == FailureKind.VALIDATION_FAILURE
    assert 'last_inspection' in result.error


def test_list_is_cached_and_invalidated_on_create(equipment_manager, cache_store):
    create_equipment(equipment_manager, name='Harness', group_name='Heights Safety')

    first = equipment_manager.list()
    assert first.ok
    assert 'equipment:all' in cache_store.keys()

    create_equipment(equipment_manager, name='Extinguisher', group_name='Fire')
    assert 'equipment:all' not in cache_store.keys(), "Create should invalidate the global collection"

    second = equipment_manager.list()
    assert {item.name for item in second.data} == {'Harness', 'Extinguisher'}


def test_organization_scoping(equipment_manager, cache_store):
    create_equipment(equipment_manager, name='Harness', org_id='org-1')
    create_equipment(equipment_manager, name='Extinguisher', group_name='Fire', org_id='org-2')

    org_items = equipment_manager.list('org-1').data
    assert [item.name for item in org_items] == ['Harness']
    assert 'equipment:org:org-1' in cache_store.keys()
    assert len(equipment_manager.list().data) == 2

    create_equipment(equipment_manager, name='Life ring', org_id='org-1')
    assert 'equipment:org:org-1' not in cache_store.keys()
    assert {'equipment:all', 'equipment:org:org-1'} <= set(cache_store.deleted())


def test_force_fresh_list(equipment_manager, cache_store):
    create_equipment(equipment_manager)
    cache_store.set('equipment:all', '[]', 60)

    assert equipment_manager.list().data == []
    assert len(equipment_manager.list(force_fresh=True).data) == 1


def test_update_recalculates_schedule(equipment_manager, cache_store):
    item = create_equipment(equipment_manager, schedule_name='Annual', last_inspection='2024-01-15')
    equipment_manager.list()

    result = equipment_manager.update(item.id, {'schedule_name': 'Monthly', 'status': 'compliant'})

    assert result.ok, result.error
    assert result.data.schedule_name == 'Monthly'
    assert result.data.next_inspection == date(2024, 2, 15)
    assert result.data.status == 'overdue'
    assert 'equipment:all' not in cache_store.keys()


def test_update_last_inspection(equipment_manager):
    item = create_equipment(equipment_manager, schedule_name='Quarterly', last_inspection='2023-10-01')
    assert item.status == 'overdue'

    result = equipment_manager.update(item.id, {'last_inspection': '15/02/2024', 'location': 'Shed 2'})

    assert result.data.next_inspection == date(2024, 5, 15)
    assert result.data.status == 'compliant'
    assert result.data.location == 'Shed 2'


def test_update_auto_id_collision(equipment_manager):
    create_equipment(equipment_manager)
    second = create_equipment(equipment_manager)

    result = equipment_manager.update(second.id, {'auto_id': 'PFD001'})
    assert result.failure == FailureKind.VALIDATION_FAILURE

    result = equipment_manager.update(second.id, {'auto_id': 'PFD099'})
    assert result.ok
    assert result.data.auto_id == 'PFD099'


def test_update_and_delete_unknown_id(equipment_manager):
    assert equipment_manager.update('missing', {'name': 'x'}).failure == FailureKind.NOT_FOUND
    assert equipment_manager.delete('missing').failure == FailureKind.NOT_FOUND


def test_delete_removes_history(equipment_manager, cache_store):
    item = create_equipment(equipment_manager, org_id='org-1')
    assert equipment_manager.create_history_record(item.id, {'inspection_date': '2024-02-01'}).ok
    equipment_manager.list_history(item.id)

    result = equipment_manager.delete(item.id)

    assert result.ok, result.error
    assert InspectionHistory.query.count() == 0
    assert equipment_manager.list().data == []
    assert {
        'equipment:all',
        'equipment:org:org-1',
        f'inspection:history:{item.id}',
        'inspection:history:org:org-1',
    } <= set(cache_store.deleted())


def test_inspection_rolls_schedule_forward(equipment_manager):
    item = create_equipment(equipment_manager, schedule_name='Annual', last_inspection='2023-01-10')
    assert item.status == 'overdue'

    result = equipment_manager.create_history_record(item.id, {
        'inspection_date': '20/02/2024',
        'inspector_name': 'J. Smith',
        'status': 'fail',
    })

    assert result.ok, result.error
    assert result.data.status == 'fail'
    assert result.data.next_inspection_date == date(2025, 2, 20)

    updated = equipment_manager.list().data[0]
    assert updated.last_inspection == date(2024, 2, 20)
    assert updated.next_inspection == date(2025, 2, 20)
    assert updated.status == 'compliant', "Status comes from the due date, not the verdict"


def test_inspection_validation(equipment_manager):
    item = create_equipment(equipment_manager)

    assert equipment_manager.create_history_record(item.id, {}).failure == FailureKind.VALIDATION_FAILURE
    result = equipment_manager.create_history_record(item.id, {'inspection_date': '2024-02-01', 'status': 'great'})
    assert result.failure == FailureKind.VALIDATION_FAILURE
    result = equipment_manager.create_history_record('missing', {'inspection_date': '2024-02-01'})
    assert result.failure == FailureKind.NOT_FOUND


def test_history_is_listed_newest_first(equipment_manager, cache_store):
    item = create_equipment(equipment_manager)
    equipment_manager.create_history_record(item.id, {'inspection_date': '2024-01-01'})
    assert equipment_manager.list_history(item.id).data[0].inspection_date == date(2024, 1, 1)

    equipment_manager.create_history_record(item.id, {'inspection_date': '2024-02-01'})
    history = equipment_manager.list_history(item.id).data

    assert [record.inspection_date for record in history] == [date(2024, 2, 1), date(2024, 1, 1)]


def test_bulk_inspection(equipment_manager):
    first = create_equipment(equipment_manager, schedule_name='Monthly')
    second = create_equipment(equipment_manager, schedule_name='Annual')

    result = equipment_manager.create_bulk_history_records([first.id, second.id], {
        'inspection_date': '2024-02-28',
        'notes': 'Quarterly walkthrough',
    })

    assert result.ok, result.error
    assert len(result.data) == 2
    items = {item.id: item for item in equipment_manager.list().data}
    assert items[first.id].next_inspection == date(2024, 3, 28)
    assert items[first.id].status == 'upcoming'
    assert items[second.id].next_inspection == date(2025, 2, 28)
    assert items[second.id].status == 'compliant'


def test_bulk_inspection_with_unknown_id_writes_nothing(equipment_manager):
    item = create_equipment(equipment_manager)

    result = equipment_manager.create_bulk_history_records([item.id, 'missing'], {'inspection_date': '2024-02-28'})

    assert result.failure == FailureKind.NOT_FOUND
    assert InspectionHistory.query.count() == 0
    assert equipment_manager.create_bulk_history_records([], {'inspection_date': '2024-02-28'}).failure \
        == FailureKind.VALIDATION_FAILURE


def test_org_history(equipment_manager, cache_store):
    mine = create_equipment(equipment_manager, org_id='org-1')
    theirs = create_equipment(equipment_manager, org_id='org-2')
    equipment_manager.create_history_record(mine.id, {'inspection_date': '2024-02-01'})
    equipment_manager.create_history_record(theirs.id, {'inspection_date': '2024-02-02'})

    history = equipment_manager.list_org_history('org-1').data

    assert [record.equipment_id for record in history] == [mine.id]
    assert 'inspection:history:org:org-1' in cache_store.keys()
    assert equipment_manager.list_org_history('org-3').data == []

    equipment_manager.create_history_record(mine.id, {'inspection_date': '2024-02-20'})
    assert 'inspection:history:org:org-1' not in cache_store.keys()
    assert len(equipment_manager.list_org_history('org-1').data) == 2


def test_recompute_statuses(app, cache_store, equipment_manager):
    create_equipment(equipment_manager, schedule_name='Quarterly', last_inspection='2024-01-15')
    create_equipment(equipment_manager, schedule_name='Annual', last_inspection='2024-01-15')

    later = EquipmentManager.from_app(app, cache_store=cache_store, today_provider=lambda: date(2024, 5, 1))
    later.list()

    result = later.recompute_all_statuses()

    assert result.ok, result.error
    assert result.data == 1
    assert 'equipment:all' not in cache_store.keys()
    statuses = {item.schedule_name: item.status for item in later.list().data}
    assert statuses == {'Quarterly': 'overdue', 'Annual': 'compliant'}
    assert later.recompute_all_statuses().data == 0


def test_groups_and_schedules_are_listed(equipment_manager, cache_store):
    groups = equipment_manager.list_groups().data
    schedules = equipment_manager.list_schedules().data

    assert 'PFD' in {group.name for group in groups}
    assert {schedule.name for schedule in schedules} >= {'Monthly', 'Quarterly', '6-Monthly', 'Annual', 'Biennial'}
    assert {'equipment:groups', 'equipment:schedules'} <= cache_store.keys()


def test_unreachable_cache_does_not_break_operations(app):
    manager = EquipmentManager.from_app(app, cache_store=FailingCacheStore(), today_provider=lambda: TODAY)

    item = create_equipment(manager)
    result = manager.list()

    assert result.ok, result.error
    assert [record.id for record in result.data] == [item.id]


def test_list_over_non_utf8_cache_entry(equipment_manager, cache_store):
    item = create_equipment(equipment_manager)
    cache_store.set('equipment:all', b'\x80abc', 60)

    result = equipment_manager.list()

    assert result.ok, result.error
    assert [record.id for record in result.data] == [item.id]


def _snapshot(manager):
    """Cached list next to a fresh read, so both can be compared with the pre-failure state"""
    return manager.list().data, manager.list(force_fresh=True).data


def test_failed_inspection_rolls_back_history_insert(equipment_manager, monkeypatch):
    item = create_equipment(equipment_manager, org_id='org-1')
    before = equipment_manager.list().data
    equipment_manager.list_history(item.id)
    equipment_manager.list_org_history('org-1')
    fail_on_call(monkeypatch, equipment_manager.equipment.repository, 'update')

    result = equipment_manager.create_history_record(item.id, {'inspection_date': '2024-02-20'})

    assert result.failure == FailureKind.TRANSIENT_FAILURE
    assert InspectionHistory.query.count() == 0
    assert _snapshot(equipment_manager) == (before, before)
    assert equipment_manager.list_history(item.id).data == []
    assert equipment_manager.list_org_history('org-1', force_fresh=True).data == []


def test_failed_bulk_inspection_rolls_back_every_item(equipment_manager, monkeypatch):
    first = create_equipment(equipment_manager, schedule_name='Monthly')
    second = create_equipment(equipment_manager, schedule_name='Annual')
    before = equipment_manager.list().data
    calls = fail_on_call(monkeypatch, equipment_manager.equipment.repository, 'update', call_number=2)

    result = equipment_manager.create_bulk_history_records([first.id, second.id], {'inspection_date': '2024-02-28'})

    assert result.failure == FailureKind.TRANSIENT_FAILURE
    assert len(calls) == 2
    assert InspectionHistory.query.count() == 0
    assert _snapshot(equipment_manager) == (before, before)


def test_failed_status_recompute_rolls_back_earlier_updates(app, cache_store, equipment_manager, monkeypatch):
    create_equipment(equipment_manager, schedule_name='Quarterly', last_inspection='2024-01-15')
    create_equipment(equipment_manager, name='Flare', schedule_name='Quarterly', last_inspection='2024-01-15')

    later = EquipmentManager.from_app(app, cache_store=cache_store, today_provider=lambda: date(2024, 5, 1))
    before = later.list().data
    fail_on_call(monkeypatch, later.equipment.repository, 'update', call_number=2)

    result = later.recompute_all_statuses()

    assert result.failure == FailureKind.TRANSIENT_FAILURE
    assert _snapshot(later) == (before, before)
    assert 'overdue' not in {item.status for item in before}


def test_failed_delete_keeps_history(equipment_manager, monkeypatch):
    item = create_equipment(equipment_manager, org_id='org-1')
    equipment_manager.create_history_record(item.id, {'inspection_date': '2024-02-01'})
    equipment_manager.create_history_record(item.id, {'inspection_date': '2024-02-15'})
    before = equipment_manager.list().data
    history = equipment_manager.list_history(item.id).data
    fail_on_call(monkeypatch, equipment_manager.equipment.repository, 'delete')

    result = equipment_manager.delete(item.id)

    assert result.failure == FailureKind.TRANSIENT_FAILURE
    assert InspectionHistory.query.count() == 2
    assert _snapshot(equipment_manager) == (before, before)
    assert equipment_manager.list_history(item.id).data == history
    assert equipment_manager.list_history(item.id, force_fresh=True).data == history


def test_all_history_spans_organizations(equipment_manager, cache_store):
    mine = create_equipment(equipment_manager, org_id='org-1')
    theirs = create_equipment(equipment_manager, org_id='org-2')
    equipment_manager.create_history_record(mine.id, {'inspection_date': '2024-02-01'})
    equipment_manager.create_history_record(theirs.id, {'inspection_date': '2024-02-02'})

    history = equipment_manager.list_all_history().data

    assert [record.equipment_id for record in history] == [theirs.id, mine.id]
    assert 'inspection:history:all' in cache_store.keys()

    equipment_manager.delete(theirs.id)
    assert 'inspection:history:all' not in cache_store.keys()
    assert [record.equipment_id for record in equipment_manager.list_all_history().data] == [mine.id]
