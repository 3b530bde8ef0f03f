"""
Tests for the combined equipment inspection / plant service history feed
"""

from datetime import date

from asset_compliance.buisness.core.action_result import FailureKind
from asset_compliance.buisness.core.records import ServiceRecord
from asset_compliance.services.history_feed import HistoryFeedService
from asset_compliance.test.conftest import create_equipment, create_plant


def _record_history(equipment_manager, plant_manager, org_id=None):
    jacket = create_equipment(equipment_manager, org_id=org_id)
    hilux = create_plant(plant_manager, org_id=org_id)
    equipment_manager.create_history_record(jacket.id, {
        'inspection_date': '2024-02-01', 'inspector_name': 'J. Smith',
    })
    plant_manager.create_history_record(hilux.id, {
        'service_date': '2024-02-15', 'service_type': 'Service', 'status': 'needs_repair',
    })
    equipment_manager.create_history_record(jacket.id, {'inspection_date': '2024-02-20', 'status': 'fail'})
    return jacket, hilux


def test_feed_merges_newest_first(equipment_manager, plant_manager):
    jacket, hilux = _record_history(equipment_manager, plant_manager)

    result = HistoryFeedService.feed(equipment_manager, plant_manager)

    assert result.ok, result.error
    entries = result.data
    assert [(entry.kind, entry.date) for entry in entries] == [
        ('equipment', date(2024, 2, 20)),
        ('plant', date(2024, 2, 15)),
        ('equipment', date(2024, 2, 1)),
    ]
    assert entries[0].status == 'fail'
    assert entries[0].performed_by == 'Unknown'
    assert entries[2].performed_by == 'J. Smith'

    service = entries[1]
    assert (service.item_id, service.item_name, service.item_auto_id) == (hilux.id, 'Hilux', hilux.auto_id)
    assert service.group_name == 'Vehicle'
    assert service.service_type == 'Service'
    assert service.status == 'needs_repair'
    assert entries[2].group_name == jacket.group_name


def test_feed_is_scoped_to_organization(equipment_manager, plant_manager):
    _record_history(equipment_manager, plant_manager, org_id='org-1')
    theirs = create_plant(plant_manager, name='Ranger', org_id='org-2')
    plant_manager.create_history_record(theirs.id, {'service_date': '2024-02-25', 'service_type': 'Service'})

    mine = HistoryFeedService.feed(equipment_manager, plant_manager, org_id='org-1').data
    everything = HistoryFeedService.feed(equipment_manager, plant_manager).data

    assert len(mine) == 3
    assert theirs.id not in {entry.item_id for entry in mine}
    assert len(everything) == 4
    assert everything[0].item_id == theirs.id


def test_feed_filters_by_kind_and_item(equipment_manager, plant_manager):
    jacket, hilux = _record_history(equipment_manager, plant_manager)

    plant_only = HistoryFeedService.feed(equipment_manager, plant_manager, kind='plant').data
    one_item = HistoryFeedService.feed(equipment_manager, plant_manager, item_id=jacket.id).data

    assert [entry.item_id for entry in plant_only] == [hilux.id]
    assert [entry.date for entry in one_item] == [date(2024, 2, 20), date(2024, 2, 1)]
    result = HistoryFeedService.feed(equipment_manager, plant_manager, kind='vessel')
    assert result.failure == FailureKind.VALIDATION_FAILURE


def test_feed_reflects_new_records(equipment_manager, plant_manager):
    jacket, _ = _record_history(equipment_manager, plant_manager, org_id='org-1')
    assert len(HistoryFeedService.feed(equipment_manager, plant_manager, org_id='org-1').data) == 3

    equipment_manager.create_history_record(jacket.id, {'inspection_date': '2024-02-28'})

    entries = HistoryFeedService.feed(equipment_manager, plant_manager, org_id='org-1').data
    assert len(entries) == 4
    assert entries[0].date == date(2024, 2, 28)


def test_legacy_complete_status_reads_as_pass():
    record = ServiceRecord(id='s1', plant_id='p1', service_date=date(2024, 1, 1),
                           service_type='Service', status='complete')

    entry = HistoryFeedService.plant_entry(record)

    assert entry.status == 'pass'
    assert (entry.item_name, entry.item_auto_id, entry.group_name) == ('Unknown Plant', 'N/A', 'Unknown')
    assert entry.performed_by == 'Unknown'


def test_period_counts(equipment_manager, plant_manager):
    _record_history(equipment_manager, plant_manager)
    entries = HistoryFeedService.feed(equipment_manager, plant_manager).data

    # Thursday 22 February 2024: the week started on Sunday the 18th
    counts = HistoryFeedService.period_counts(entries, date(2024, 2, 22))

    assert counts['this_month'] == {'equipment': 2, 'plant': 1, 'total': 3}
    assert counts['this_week'] == {'equipment': 1, 'plant': 0, 'total': 1}
