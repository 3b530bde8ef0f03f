"""
Plant Manager
Entry point for every plant (vehicles, trucks, trailers, vessels, petrol plant)
and service-history operation.

Mutations spanning several rows run in one transaction and invalidate only
after it commits.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from asset_compliance.buisness.cache.cache_keys import CacheKeys
from asset_compliance.buisness.compliance.auto_id_allocator import AutoIdAllocator
from asset_compliance.buisness.core.action_result import ActionResult
from asset_compliance.buisness.core.asset_manager import BaseAssetManager
from asset_compliance.buisness.core.errors import ValidationError
from asset_compliance.buisness.core.records import (
    DEFAULT_PLANT_STATUS,
    GroupRecord,
    Plant,
    ServiceRecord,
    normalize_group_name,
)
from asset_compliance.data.plant import (
    Plant as PlantModel,
    PlantGroup as PlantGroupModel,
    PlantServiceHistory as PlantServiceHistoryModel,
)
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.business.plant")


class PlantManager(BaseAssetManager):
    """
    Plant operations for the presentation layer.

    Vehicles and trucks are tracked by service date and odometer; every other
    group by service date only.
    """

    entity_name = 'plant'

    TEXT_FIELDS = (
        'name', 'registration_number', 'location', 'responsible_person',
        'vehicle_make', 'vehicle_model', 'hiab_make', 'hiab_model',
        'uvi', 'outboard_type', 'vessel_survey_type',
        'description', 'serial_number', 'plant_status',
    )
    DATE_FIELDS = Plant.DATE_FIELDS
    FLOAT_FIELDS = ('odometer', 'service_due_odometer', 'last_service_odometer', 'service_interval_km')
    INT_FIELDS = ('service_interval_days', 'outboard_quantity')

    # Inputs that feed status derivation
    STATUS_FIELDS = ('service_due_date', 'odometer', 'service_due_odometer', 'service_interval_km')

    SERVICE_VERDICTS = ('pass', 'fail', 'needs_repair')

    def _build_repositories(self):
        self.plant = self._cached(PlantModel, Plant)
        self.groups = self._cached(PlantGroupModel, GroupRecord)
        self.history = self._cached(PlantServiceHistoryModel, ServiceRecord)

    # ----- reads -----

    def list(self, org_id: Optional[str] = None, force_fresh: bool = False) -> ActionResult:
        """
        List plant, newest first.

        Args:
            org_id: Restrict to one organization (separate cache key)
            force_fresh: Skip the cache read for this call
        """
        filters = {'organization_id': org_id} if org_id else None
        return self._execute(
            'fetch plant',
            lambda: self.plant.fetch(CacheKeys.plant(org_id), filters, '-created_at', force_fresh),
        )

    def list_groups(self, force_fresh: bool = False) -> ActionResult:
        return self._execute(
            'fetch plant groups',
            lambda: self.groups.fetch(CacheKeys.PLANT_GROUPS, order_by='name', force_fresh=force_fresh),
        )

    def list_history(self, plant_id: str, force_fresh: bool = False) -> ActionResult:
        return self._execute(
            'fetch plant service history',
            lambda: self.history.fetch(
                CacheKeys.plant_service_history(plant_id), {'plant_id': plant_id}, '-service_date', force_fresh
            ),
        )

    def list_all_history(self, force_fresh: bool = False) -> ActionResult:
        return self._execute(
            'fetch plant service history',
            lambda: self.history.fetch(
                CacheKeys.PLANT_SERVICE_HISTORY_ALL, order_by='-service_date', force_fresh=force_fresh
            ),
        )

    def list_org_history(self, org_id: str, force_fresh: bool = False) -> ActionResult:
        """Service history of every plant item within an organization"""
        def fetch_org_history():
            plant_ids = [item.id for item in self.plant.query({'organization_id': org_id})]
            if not plant_ids:
                return []
            return self.history.query({'plant_id__in': plant_ids}, '-service_date')

        return self._execute(
            'fetch organization plant service history',
            lambda: self.history.get(CacheKeys.plant_service_history_for_org(org_id), fetch_org_history, force_fresh),
        )

    def next_service_type(self, plant: Plant, today: Optional[date] = None) -> str:
        """'odometer', 'date', 'both' or 'none' for a plant item"""
        return self.engine.next_service_type(plant, today or self.today())

    # ----- lookups -----

    def resolve_group(self, name: Optional[str]) -> GroupRecord:
        return self._resolve_lookup(self.groups, name, 'Group')

    def existing_auto_ids(self, group_id: str) -> set:
        return {item.auto_id for item in self.plant.query({'group_id': group_id}) if item.auto_id}

    def derive_status(self, group_name: Optional[str], values: Dict[str, Any]) -> str:
        return self.engine.plant_status(
            group_name,
            values.get('service_due_date'),
            odometer=values.get('odometer'),
            service_due_odometer=values.get('service_due_odometer'),
            service_interval_km=values.get('service_interval_km'),
            today=self.today(),
        )

    def attribute_values(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Coerce the plant attributes present in data.

        Dates accept ISO or day-first strings, numbers accept numeric strings.

        Raises:
            ValidationError: If a value cannot be coerced
        """
        values = {}
        for key in self.TEXT_FIELDS:
            if key in data:
                values[key] = data[key]
        for key in self.DATE_FIELDS:
            if key in data:
                values[key] = self.date_field(data, key)
        for key in self.FLOAT_FIELDS:
            if key in data:
                values[key] = self.number_field(data, key)
        for key in self.INT_FIELDS:
            if key in data:
                values[key] = self.number_field(data, key, int)
        if 'hiab_fitted' in data:
            values['hiab_fitted'] = bool(data['hiab_fitted'])
        return values

    # ----- mutations -----

    def create(self, data: Dict[str, Any], org_id: Optional[str] = None) -> ActionResult:
        """
        Create one plant item.

        Args:
            data: name, group_name (or group_id), optional auto_id and any plant attribute
            org_id: Owning organization
        """
        return self._execute('create plant', lambda: self._create(data, org_id))

    def _create(self, data, org_id):
        self.require_field(data, 'name')
        group = self._group_from(data)
        row = self.attribute_values(data)

        existing = self.existing_auto_ids(group.id)
        if data.get('auto_id'):
            auto_id = AutoIdAllocator.resolve_explicit(str(data['auto_id']).strip(), existing, set())
        else:
            auto_id = AutoIdAllocator.allocate(group.name, existing, set())

        row.update({
            'group_id': group.id,
            'auto_id': auto_id,
            'hiab_fitted': row.get('hiab_fitted', False),
            'plant_status': row.get('plant_status') or DEFAULT_PLANT_STATUS,
            'status': self.derive_status(group.name, row),
            'organization_id': org_id,
        })

        created = self.plant.insert(row, invalidate=CacheKeys.plant_collections(org_id))
        logger.info(f"Created plant {created.auto_id} ({created.status})")
        return created

    def update(self, plant_id: str, partial: Dict[str, Any]) -> ActionResult:
        """Apply a partial update; status is always re-derived from the merged values"""
        return self._execute('update plant', lambda: self._update(plant_id, partial))

    def _update(self, plant_id, partial):
        current = self._get_record(self.plant, plant_id)
        changes = self.attribute_values(partial)
        if 'name' in changes:
            self.require_field(changes, 'name')

        group_id, group_name = current.group_id, current.group_name
        if 'group_id' in partial or 'group_name' in partial:
            group = self._group_from(partial)
            group_id, group_name = group.id, group.name
            changes['group_id'] = group_id

        auto_id = current.auto_id
        if partial.get('auto_id'):
            auto_id = changes['auto_id'] = str(partial['auto_id']).strip()
        if auto_id != current.auto_id or group_id != current.group_id:
            taken = self.existing_auto_ids(group_id) - ({current.auto_id} if group_id == current.group_id else set())
            if auto_id in taken:
                raise ValidationError(f"Auto ID {auto_id} is already in use in this group")

        merged = {key: getattr(current, key) for key in self.STATUS_FIELDS}
        merged.update({key: changes[key] for key in self.STATUS_FIELDS if key in changes})
        changes['status'] = self.derive_status(group_name, merged)

        return self.plant.update(plant_id, changes, invalidate=CacheKeys.plant_collections(current.organization_id))

    def delete(self, plant_id: str) -> ActionResult:
        """Delete a plant item together with its service history"""
        return self._execute('delete plant', lambda: self._delete(plant_id))

    def _delete(self, plant_id):
        current = self._get_record(self.plant, plant_id)

        with self._atomic():
            for record in self.history.query({'plant_id': plant_id}):
                self.history.delete(record.id)
            self.plant.delete(plant_id)

        self.plant.invalidate(self._history_keys(plant_id, current.organization_id))
        logger.info(f"Deleted plant {current.auto_id}")

    def create_bulk(self, items: List[Dict[str, Any]], org_id: Optional[str] = None) -> ActionResult:
        """Create many items in one batched write (see PlantBulkImport)"""
        from asset_compliance.buisness.imports.bulk_import_pipeline import PlantBulkImport
        return self._execute('create bulk plant', lambda: PlantBulkImport(self).run(items, org_id))

    def recompute_all_statuses(self) -> ActionResult:
        """
        Re-derive every item's status and persist the ones that changed.

        Returns:
            ActionResult carrying the number of rows updated
        """
        return self._execute('update plant statuses', self._recompute_all_statuses)

    def _recompute_all_statuses(self):
        today = self.today()
        changed = 0
        touched_orgs = set()

        with self._atomic():
            for item in self.plant.query():
                status = self.engine.status_for(item, today)
                if status == item.status:
                    continue
                self.plant.update(item.id, {'status': status})
                touched_orgs.add(item.organization_id)
                changed += 1

        keys = [CacheKeys.PLANT_ALL]
        keys.extend(CacheKeys.plant(org_id) for org_id in touched_orgs if org_id)
        self.plant.invalidate(keys)

        logger.info(f"Recomputed plant statuses: {changed} changed")
        return changed

    # ----- service history -----

    def create_history_record(self, plant_id: str, data: Dict[str, Any]) -> ActionResult:
        """
        Record a service or inspection for a plant item.

        A pass moves the service due date to service date + service interval
        days, and with an odometer reading also moves the service-due odometer
        to reading + service interval km. Any reading raises the current
        odometer. Status is re-derived afterwards.
        """
        return self._execute('create plant inspection', lambda: self._create_history_record(plant_id, data))

    def _create_history_record(self, plant_id, data):
        plant = self._get_record(self.plant, plant_id)

        service_date = self.date_field(data, 'service_date')
        if service_date is None:
            raise ValidationError("Missing required field 'service_date'")
        service_type = self.require_field(data, 'service_type')
        verdict = data.get('status') or 'pass'
        if verdict not in self.SERVICE_VERDICTS:
            raise ValidationError(f"Unknown service status '{verdict}'")
        reading = self.number_field(data, 'odometer')

        changes = {}
        if verdict == 'pass':
            changes['service_due_date'] = service_date + timedelta(days=plant.service_interval_days)
            if reading is not None:
                changes['last_service_odometer'] = reading
                changes['service_due_odometer'] = reading + plant.service_interval_km
        if reading is not None and reading > (plant.odometer or 0):
            changes['odometer'] = reading

        merged = {key: getattr(plant, key) for key in self.STATUS_FIELDS}
        merged.update(changes)
        changes['status'] = self.derive_status(plant.group_name, merged)

        with self._atomic():
            record = self.history.insert({
                'plant_id': plant_id,
                'service_date': service_date,
                'service_type': service_type,
                'serviced_by': data.get('serviced_by'),
                'notes': data.get('notes'),
                'status': verdict,
                'next_service_date': merged['service_due_date'],
                'odometer': reading,
                'inspection_data': data.get('inspection_data'),
            })
            self.plant.update(plant_id, changes)

        self.plant.invalidate(self._history_keys(plant_id, plant.organization_id))

        logger.info(f"Recorded {verdict} {service_type} for {plant.auto_id}")
        return record

    @staticmethod
    def _history_keys(plant_id, org_id):
        keys = CacheKeys.plant_collections(org_id)
        keys.extend([CacheKeys.plant_service_history(plant_id), CacheKeys.PLANT_SERVICE_HISTORY_ALL])
        if org_id:
            keys.append(CacheKeys.plant_service_history_for_org(org_id))
        return keys

    # ----- input resolution -----

    def _group_from(self, data):
        if data.get('group_id'):
            return self._lookup_by_id(self.groups, data['group_id'], 'Group')
        return self.resolve_group(normalize_group_name(data))
