"""
History Feed Service
One newest-first list of equipment inspections and plant service records, as
shown on the inspections page and the analytics dashboard.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from asset_compliance.buisness.core.action_result import ActionResult
from asset_compliance.buisness.equipment.equipment_manager import EquipmentManager
from asset_compliance.buisness.plant.plant_manager import PlantManager
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.services.history_feed")

EQUIPMENT = 'equipment'
PLANT = 'plant'
KINDS = (EQUIPMENT, PLANT)


@dataclass
class HistoryEntry:
    id: str
    kind: str
    item_id: str
    item_name: str
    item_auto_id: str
    group_name: str
    date: date
    performed_by: str
    status: Optional[str] = None
    notes: Optional[str] = None
    next_date: Optional[date] = None
    service_type: Optional[str] = None
    created_at: Optional[datetime] = None


class HistoryFeedService:
    """
    Merges both history tables into HistoryEntry rows.

    Item name, auto id and group come from the item lists, so an entry whose
    item is outside the scope (or gone) falls back to placeholder values.
    """

    @staticmethod
    def equipment_entry(record, item=None) -> HistoryEntry:
        return HistoryEntry(
            id=record.id,
            kind=EQUIPMENT,
            item_id=record.equipment_id,
            item_name=item.name if item else 'Unknown Equipment',
            item_auto_id=(item.auto_id if item else None) or 'N/A',
            group_name=(item.group_name if item else None) or 'Unknown',
            date=record.inspection_date,
            performed_by=record.inspector_name or 'Unknown',
            status=record.status,
            notes=record.notes,
            next_date=record.next_inspection_date,
            created_at=record.created_at,
        )

    @staticmethod
    def plant_entry(record, item=None) -> HistoryEntry:
        # Older service records were stored as 'complete'
        status = 'pass' if record.status == 'complete' else record.status
        return HistoryEntry(
            id=record.id,
            kind=PLANT,
            item_id=record.plant_id,
            item_name=item.name if item else 'Unknown Plant',
            item_auto_id=(item.auto_id if item else None) or 'N/A',
            group_name=(item.group_name if item else None) or 'Unknown',
            date=record.service_date,
            performed_by=record.serviced_by or 'Unknown',
            status=status,
            notes=record.notes,
            next_date=record.next_service_date,
            service_type=record.service_type,
            created_at=record.created_at,
        )

    @classmethod
    def feed(cls, equipment_manager: EquipmentManager, plant_manager: PlantManager,
             org_id: Optional[str] = None, kind: Optional[str] = None,
             item_id: Optional[str] = None) -> ActionResult:
        """
        Build the combined history, most recent first.

        Args:
            equipment_manager: Source of inspections and equipment items
            plant_manager: Source of service records and plant items
            org_id: Restrict to one organization; None covers every organization
            kind: 'equipment' or 'plant' to keep one side only
            item_id: Keep the entries of one item only

        Returns:
            ActionResult carrying a list of HistoryEntry, or the first failure
            encountered while loading records
        """
        if kind is not None and kind not in KINDS:
            return ActionResult.validation_failure(f"Unknown history kind '{kind}'")

        if org_id:
            loads = {
                'inspections': equipment_manager.list_org_history(org_id),
                'services': plant_manager.list_org_history(org_id),
            }
        else:
            loads = {
                'inspections': equipment_manager.list_all_history(),
                'services': plant_manager.list_all_history(),
            }
        loads['equipment'] = equipment_manager.list(org_id)
        loads['plant'] = plant_manager.list(org_id)

        for result in loads.values():
            if not result.ok:
                logger.error(f"Error loading history feed: {result.error}")
                return result

        equipment = {item.id: item for item in loads['equipment'].data}
        plant = {item.id: item for item in loads['plant'].data}

        entries: List[HistoryEntry] = []
        if kind in (None, EQUIPMENT):
            entries.extend(cls.equipment_entry(record, equipment.get(record.equipment_id))
                           for record in loads['inspections'].data)
        if kind in (None, PLANT):
            entries.extend(cls.plant_entry(record, plant.get(record.plant_id))
                           for record in loads['services'].data)
        if item_id is not None:
            entries = [entry for entry in entries if entry.item_id == item_id]

        entries.sort(key=lambda entry: entry.date, reverse=True)
        return ActionResult.success(entries)

    @staticmethod
    def period_counts(entries: List[HistoryEntry], today: date) -> Dict[str, Dict[str, int]]:
        """
        Entries dated this calendar month and this week (weeks start on Sunday).

        Returns:
            {'this_month': {...}, 'this_week': {...}}, each with equipment,
            plant and total counts
        """
        month_start = today.replace(day=1)
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)

        def count(start):
            selected = [entry for entry in entries if entry.date >= start]
            counts: Dict[str, Any] = {name: sum(1 for entry in selected if entry.kind == name) for name in KINDS}
            counts['total'] = len(selected)
            return counts

        return {'this_month': count(month_start), 'this_week': count(week_start)}
