"""
Equipment Manager
Entry point for every equipment and inspection-history operation.

Reads go through the cache-coherent repositories; every mutation writes the
system of record first and then invalidates the keys that could be stale.
Mutations spanning several rows run in one transaction and invalidate only
after it commits.
"""

from typing import Any, Dict, List, Optional

from asset_compliance.buisness.cache.cache_keys import CacheKeys
from asset_compliance.buisness.compliance.auto_id_allocator import AutoIdAllocator
from asset_compliance.buisness.compliance.intervals import next_due
from asset_compliance.buisness.core.action_result import ActionResult
from asset_compliance.buisness.core.asset_manager import BaseAssetManager
from asset_compliance.buisness.core.errors import RecordNotFoundError, ValidationError
from asset_compliance.buisness.core.records import Equipment, GroupRecord, InspectionRecord, normalize_group_name
from asset_compliance.data.equipment import (
    Equipment as EquipmentModel,
    EquipmentGroup as EquipmentGroupModel,
    EquipmentSchedule as EquipmentScheduleModel,
    InspectionHistory as InspectionHistoryModel,
)
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.business.equipment")


class EquipmentManager(BaseAssetManager):
    """
    Equipment operations for the presentation layer.

    Every public method returns an ActionResult. Pass today_provider to pin
    "today" for status derivation.
    """

    entity_name = 'equipment'

    # Fields a caller may set directly on create/update
    EDITABLE_FIELDS = ('name', 'description', 'location')

    def _build_repositories(self):
        self.equipment = self._cached(EquipmentModel, Equipment)
        self.groups = self._cached(EquipmentGroupModel, GroupRecord)
        self.schedules = self._cached(EquipmentScheduleModel, GroupRecord)
        self.history = self._cached(InspectionHistoryModel, InspectionRecord)

    # ----- reads -----

    def list(self, org_id: Optional[str] = None, force_fresh: bool = False) -> ActionResult:
        """
        List equipment, newest first.

        Args:
            org_id: Restrict to one organization (separate cache key)
            force_fresh: Skip the cache read for this call
        """
        filters = {'organization_id': org_id} if org_id else None
        return self._execute(
            'fetch equipment',
            lambda: self.equipment.fetch(CacheKeys.equipment(org_id), filters, '-created_at', force_fresh),
        )

    def list_groups(self, force_fresh: bool = False) -> ActionResult:
        return self._execute(
            'fetch equipment groups',
            lambda: self.groups.fetch(CacheKeys.EQUIPMENT_GROUPS, order_by='name', force_fresh=force_fresh),
        )

    def list_schedules(self, force_fresh: bool = False) -> ActionResult:
        return self._execute(
            'fetch equipment schedules',
            lambda: self.schedules.fetch(CacheKeys.EQUIPMENT_SCHEDULES, order_by='name', force_fresh=force_fresh),
        )

    def list_history(self, equipment_id: str, force_fresh: bool = False) -> ActionResult:
        """Inspection history of one item, most recent inspection first"""
        return self._execute(
            'fetch inspection history',
            lambda: self.history.fetch(
                CacheKeys.inspection_history(equipment_id),
                {'equipment_id': equipment_id},
                '-inspection_date',
                force_fresh,
            ),
        )

    def list_all_history(self, force_fresh: bool = False) -> ActionResult:
        return self._execute(
            'fetch inspection history',
            lambda: self.history.fetch(
                CacheKeys.INSPECTION_HISTORY_ALL, order_by='-inspection_date', force_fresh=force_fresh
            ),
        )

    def list_org_history(self, org_id: str, force_fresh: bool = False) -> ActionResult:
        """Inspection history of every item within an organization"""
        def fetch_org_history():
            equipment_ids = [item.id for item in self.equipment.query({'organization_id': org_id})]
            if not equipment_ids:
                return []
            return self.history.query({'equipment_id__in': equipment_ids}, '-inspection_date')

        return self._execute(
            'fetch organization inspection history',
            lambda: self.history.get(CacheKeys.inspection_history_for_org(org_id), fetch_org_history, force_fresh),
        )

    # ----- lookups -----

    def resolve_group(self, name: Optional[str]) -> GroupRecord:
        return self._resolve_lookup(self.groups, name, 'Group')

    def resolve_schedule(self, name: Optional[str]) -> GroupRecord:
        return self._resolve_lookup(self.schedules, name, 'Schedule')

    def existing_auto_ids(self, group_id: str) -> set:
        return {item.auto_id for item in self.equipment.query({'group_id': group_id}) if item.auto_id}

    # ----- mutations -----

    def create(self, data: Dict[str, Any], org_id: Optional[str] = None) -> ActionResult:
        """
        Create one equipment item.

        Args:
            data: name, group_name (or group_id), schedule_name (or schedule_id),
                optional auto_id, last_inspection, next_inspection, description, location
            org_id: Owning organization

        Returns:
            ActionResult carrying the created Equipment
        """
        return self._execute('create equipment', lambda: self._create(data, org_id))

    def _create(self, data, org_id):
        name = self.require_field(data, 'name')
        group = self._group_from(data)
        schedule = self._schedule_from(data)

        last_inspection = self.date_field(data, 'last_inspection')
        if last_inspection and schedule:
            next_inspection = next_due(last_inspection, schedule.name)
        else:
            next_inspection = self.date_field(data, 'next_inspection')

        existing = self.existing_auto_ids(group.id)
        if data.get('auto_id'):
            auto_id = AutoIdAllocator.resolve_explicit(str(data['auto_id']).strip(), existing, set())
        else:
            auto_id = AutoIdAllocator.allocate(group.name, existing, set())

        row = {
            'name': name,
            'group_id': group.id,
            'auto_id': auto_id,
            'description': data.get('description'),
            'schedule_id': schedule.id if schedule else None,
            'last_inspection': last_inspection,
            'next_inspection': next_inspection,
            'status': self.engine.equipment_status(next_inspection, self.today()),
            'location': data.get('location'),
            'organization_id': org_id,
        }

        created = self.equipment.insert(row, invalidate=CacheKeys.equipment_collections(org_id))
        logger.info(f"Created equipment {created.auto_id} ({created.status})")
        return created

    def update(self, equipment_id: str, partial: Dict[str, Any]) -> ActionResult:
        """
        Apply a partial update.

        next_inspection is recalculated when last_inspection or the schedule
        changes, and status is always re-derived. A caller-supplied status is
        ignored.
        """
        return self._execute('update equipment', lambda: self._update(equipment_id, partial))

    def _update(self, equipment_id, partial):
        current = self._get_record(self.equipment, equipment_id)
        changes = {key: partial[key] for key in self.EDITABLE_FIELDS if key in partial}
        if 'name' in changes:
            self.require_field(changes, 'name')

        group_id = current.group_id
        if 'group_id' in partial or 'group_name' in partial:
            group = self._group_from(partial)
            group_id = changes['group_id'] = group.id

        schedule_name = current.schedule_name
        schedule_changed = 'schedule_id' in partial or 'schedule_name' in partial
        if schedule_changed:
            schedule = self._schedule_from(partial)
            changes['schedule_id'] = schedule.id if schedule else None
            schedule_name = schedule.name if schedule else None

        auto_id = current.auto_id
        if partial.get('auto_id'):
            auto_id = changes['auto_id'] = str(partial['auto_id']).strip()
        if auto_id != current.auto_id or group_id != current.group_id:
            taken = self.existing_auto_ids(group_id) - ({current.auto_id} if group_id == current.group_id else set())
            if auto_id in taken:
                raise ValidationError(f"Auto ID {auto_id} is already in use in this group")

        last_inspection = current.last_inspection
        if 'last_inspection' in partial:
            last_inspection = changes['last_inspection'] = self.date_field(partial, 'last_inspection')

        next_inspection = current.next_inspection
        if ('last_inspection' in partial or schedule_changed) and last_inspection and schedule_name:
            next_inspection = next_due(last_inspection, schedule_name)
        elif 'next_inspection' in partial:
            next_inspection = self.date_field(partial, 'next_inspection')
        changes['next_inspection'] = next_inspection
        changes['status'] = self.engine.equipment_status(next_inspection, self.today())

        return self.equipment.update(
            equipment_id, changes, invalidate=CacheKeys.equipment_collections(current.organization_id)
        )

    def delete(self, equipment_id: str) -> ActionResult:
        """Delete an item together with its inspection history"""
        return self._execute('delete equipment', lambda: self._delete(equipment_id))

    def _delete(self, equipment_id):
        current = self._get_record(self.equipment, equipment_id)

        with self._atomic():
            for record in self.history.query({'equipment_id': equipment_id}):
                self.history.delete(record.id)
            self.equipment.delete(equipment_id)

        keys = CacheKeys.equipment_collections(current.organization_id)
        keys.extend([CacheKeys.inspection_history(equipment_id), CacheKeys.INSPECTION_HISTORY_ALL])
        if current.organization_id:
            keys.append(CacheKeys.inspection_history_for_org(current.organization_id))
        self.equipment.invalidate(keys)
        logger.info(f"Deleted equipment {current.auto_id}")

    def create_bulk(self, items: List[Dict[str, Any]], org_id: Optional[str] = None) -> ActionResult:
        """Create many items in one batched write (see EquipmentBulkImport)"""
        from asset_compliance.buisness.imports.bulk_import_pipeline import EquipmentBulkImport
        return self._execute('create bulk equipment', lambda: EquipmentBulkImport(self).run(items, org_id))

    def recompute_all_statuses(self) -> ActionResult:
        """
        Re-derive every item's status and persist the ones that changed.

        Returns:
            ActionResult carrying the number of rows updated
        """
        return self._execute('update equipment statuses', self._recompute_all_statuses)

    def _recompute_all_statuses(self):
        today = self.today()
        changed = 0
        touched_orgs = set()

        with self._atomic():
            for item in self.equipment.query():
                status = self.engine.equipment_status(item.next_inspection, today)
                if status == item.status:
                    continue
                self.equipment.update(item.id, {'status': status})
                touched_orgs.add(item.organization_id)
                changed += 1

        keys = [CacheKeys.EQUIPMENT_ALL]
        keys.extend(CacheKeys.equipment(org_id) for org_id in touched_orgs if org_id)
        self.equipment.invalidate(keys)

        logger.info(f"Recomputed equipment statuses: {changed} changed")
        return changed

    # ----- inspection history -----

    def create_history_record(self, equipment_id: str, data: Dict[str, Any]) -> ActionResult:
        """
        Record an inspection and roll the item's schedule forward.

        last_inspection becomes the inspection date, next_inspection is the
        next due date for the item's schedule, and status is re-derived. The
        verdict (pass/fail/...) is kept on the history record only.
        """
        return self._execute('create inspection', lambda: self._create_history_record(equipment_id, data))

    def _create_history_record(self, equipment_id, data):
        equipment = self._get_record(self.equipment, equipment_id)
        inspection_date, verdict = self._inspection_fields(data)
        next_inspection = next_due(inspection_date, equipment.schedule_name)

        with self._atomic():
            record = self.history.insert(
                self._history_row(equipment_id, inspection_date, next_inspection, verdict, data)
            )
            self.equipment.update(equipment_id, {
                'last_inspection': inspection_date,
                'next_inspection': next_inspection,
                'status': self.engine.equipment_status(next_inspection, self.today()),
            })
        self.equipment.invalidate(self._history_keys([equipment_id], equipment.organization_id))

        logger.info(f"Recorded {verdict} inspection for {equipment.auto_id}")
        return record

    def create_bulk_history_records(self, equipment_ids: List[str], data: Dict[str, Any]) -> ActionResult:
        """Record one inspection for many items with a single history insert"""
        return self._execute(
            'create bulk inspection', lambda: self._create_bulk_history_records(equipment_ids, data)
        )

    def _create_bulk_history_records(self, equipment_ids, data):
        if not equipment_ids:
            raise ValidationError("No equipment selected")

        equipment_list = self.equipment.query({'id__in': list(equipment_ids)})
        missing = set(equipment_ids) - {item.id for item in equipment_list}
        if missing:
            raise RecordNotFoundError(f"Equipment not found: {', '.join(sorted(missing))}")

        inspection_date, verdict = self._inspection_fields(data)
        today = self.today()

        rows = []
        updates = []
        for equipment in equipment_list:
            next_inspection = next_due(inspection_date, equipment.schedule_name)
            rows.append(self._history_row(equipment.id, inspection_date, next_inspection, verdict, data))
            updates.append((equipment.id, {
                'last_inspection': inspection_date,
                'next_inspection': next_inspection,
                'status': self.engine.equipment_status(next_inspection, today),
            }))

        with self._atomic():
            records = self.history.insert(rows)
            for equipment_id, changes in updates:
                self.equipment.update(equipment_id, changes)

        org_ids = {item.organization_id for item in equipment_list}
        keys = []
        for org_id in org_ids:
            keys.extend(self._history_keys([item.id for item in equipment_list], org_id))
        self.equipment.invalidate(keys)

        logger.info(f"Recorded {verdict} inspection for {len(records)} equipment item(s)")
        return records

    def _inspection_fields(self, data):
        inspection_date = self.date_field(data, 'inspection_date')
        if inspection_date is None:
            raise ValidationError("Missing required field 'inspection_date'")
        verdict = data.get('status') or InspectionRecord.PASS
        if verdict not in InspectionRecord.VERDICTS:
            raise ValidationError(f"Unknown inspection status '{verdict}'")
        return inspection_date, verdict

    @staticmethod
    def _history_row(equipment_id, inspection_date, next_inspection, verdict, data):
        return {
            'equipment_id': equipment_id,
            'inspection_date': inspection_date,
            'inspector_name': data.get('inspector_name'),
            'notes': data.get('notes'),
            'status': verdict,
            'next_inspection_date': next_inspection,
        }

    @staticmethod
    def _history_keys(equipment_ids, org_id):
        keys = CacheKeys.equipment_collections(org_id)
        keys.extend(CacheKeys.inspection_history(equipment_id) for equipment_id in equipment_ids)
        keys.append(CacheKeys.INSPECTION_HISTORY_ALL)
        if org_id:
            keys.append(CacheKeys.inspection_history_for_org(org_id))
        return keys

    # ----- input resolution -----

    def _group_from(self, data):
        if data.get('group_id'):
            return self._lookup_by_id(self.groups, data['group_id'], 'Group')
        return self.resolve_group(normalize_group_name(data))

    def _schedule_from(self, data):
        if data.get('schedule_id'):
            return self._lookup_by_id(self.schedules, data['schedule_id'], 'Schedule')
        name = data.get('schedule_name') or data.get('schedule')
        if not name:
            return None
        return self.resolve_schedule(name)
