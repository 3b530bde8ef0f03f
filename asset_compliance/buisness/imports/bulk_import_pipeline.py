"""
Bulk Import Pipeline
Turns a list of partial records (typically spreadsheet rows) into fully formed
rows and persists them with one batched insert and one cache invalidation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set

from asset_compliance.buisness.cache.cache_keys import CacheKeys
from asset_compliance.buisness.compliance.auto_id_allocator import AutoIdAllocator
from asset_compliance.buisness.compliance.intervals import next_due
from asset_compliance.buisness.core.errors import ValidationError
from asset_compliance.buisness.core.records import DEFAULT_PLANT_STATUS, GroupRecord, normalize_group_name
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.business.imports")


class BulkImportPipeline(ABC):
    """
    Shared batch flow.

    For each item, in order: resolve the group, let the subclass build the
    row (date parsing, schedule resolution, next due, status), then allocate
    or de-duplicate its identifier against the persisted ids and the ids
    already handed out in this batch. Nothing is written until every item has
    been built, so a validation failure writes nothing. The batched insert is
    atomic; if it fails nothing is invalidated.
    """

    def __init__(self, manager):
        self.manager = manager
        self._groups: Dict[str, GroupRecord] = {}
        self._existing_ids: Dict[str, Set[str]] = {}
        self._in_use: Dict[str, Set[str]] = {}

    @property
    @abstractmethod
    def repository(self):
        """CacheCoherentRepository receiving the batch"""
        pass

    @abstractmethod
    def build_row(self, item: Dict[str, Any], group: GroupRecord) -> Dict[str, Any]:
        """
        Build the persisted row for one item, without its auto_id.

        Raises:
            ValidationError: If the item cannot be turned into a valid row
        """
        pass

    @abstractmethod
    def invalidation_keys(self, org_id: Optional[str]) -> List[str]:
        pass

    def run(self, items: List[Dict[str, Any]], org_id: Optional[str] = None) -> List[Any]:
        """
        Import a batch.

        Args:
            items: Partial records
            org_id: Owning organization for every created record

        Returns:
            The created records, in input order

        Raises:
            ValidationError: If any item is invalid (nothing is written)
            RepositoryError: If the batched insert fails (nothing is written)
        """
        if not items:
            return []

        rows = []
        for index, item in enumerate(items, start=1):
            try:
                group = self._group_for(item)
                row = self.build_row(item, group)
                row['auto_id'] = self._auto_id_for(item, group)
            except ValidationError as e:
                raise ValidationError(f"Row {index}: {e}") from e

            row['group_id'] = group.id
            row['organization_id'] = org_id
            rows.append(row)

        created = self.repository.insert(rows, invalidate=self.invalidation_keys(org_id))
        logger.info(f"Bulk imported {len(created)} {self.manager.entity_name} record(s)")
        return created

    def _group_for(self, item):
        name = normalize_group_name(item)
        if not name:
            raise ValidationError("Missing required field 'group_name'")
        key = str(name).strip().lower()
        if key not in self._groups:
            self._groups[key] = self.manager.resolve_group(name)
        return self._groups[key]

    def _auto_id_for(self, item, group):
        if group.id not in self._existing_ids:
            self._existing_ids[group.id] = self.manager.existing_auto_ids(group.id)
            self._in_use[group.id] = set()
        existing = self._existing_ids[group.id]
        in_use = self._in_use[group.id]

        explicit = str(item.get('auto_id') or '').strip()
        if explicit:
            auto_id = AutoIdAllocator.resolve_explicit(explicit, existing, in_use)
        else:
            auto_id = AutoIdAllocator.allocate(group.name, existing, in_use)

        in_use.add(auto_id)
        return auto_id


class EquipmentBulkImport(BulkImportPipeline):
    """
    Equipment import.

    A missing last inspection date means "inspected today"; the next
    inspection is derived from it and the item's schedule.
    """

    def __init__(self, manager):
        super().__init__(manager)
        self._schedules: Dict[str, GroupRecord] = {}

    @property
    def repository(self):
        return self.manager.equipment

    def build_row(self, item, group):
        name = self.manager.require_field(item, 'name')
        schedule = self._schedule_for(item)

        last_inspection = self.manager.date_field(item, 'last_inspection') or self.manager.today()
        next_inspection = next_due(last_inspection, schedule.name)

        return {
            'name': name,
            'description': item.get('description'),
            'schedule_id': schedule.id,
            'last_inspection': last_inspection,
            'next_inspection': next_inspection,
            'status': self.manager.engine.equipment_status(next_inspection, self.manager.today()),
            'location': item.get('location'),
        }

    def invalidation_keys(self, org_id):
        return CacheKeys.equipment_collections(org_id)

    def _schedule_for(self, item):
        name = item.get('schedule_name') or item.get('schedule')
        if not name:
            raise ValidationError("Missing required field 'schedule_name'")
        key = str(name).strip().lower()
        if key not in self._schedules:
            self._schedules[key] = self.manager.resolve_schedule(name)
        return self._schedules[key]


class PlantBulkImport(BulkImportPipeline):
    """Plant import; status uses the dual criterion for vehicles and trucks"""

    @property
    def repository(self):
        return self.manager.plant

    def build_row(self, item, group):
        self.manager.require_field(item, 'name')
        row = self.manager.attribute_values(item)
        row['hiab_fitted'] = row.get('hiab_fitted', False)
        row['plant_status'] = row.get('plant_status') or DEFAULT_PLANT_STATUS
        row['status'] = self.manager.derive_status(group.name, row)
        return row

    def invalidation_keys(self, org_id):
        return CacheKeys.plant_collections(org_id)
