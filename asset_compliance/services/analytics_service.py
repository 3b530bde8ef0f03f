"""
Compliance Summary Service
Aggregates equipment and plant records into the counts shown on the analytics
dashboard.
"""

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from asset_compliance.buisness.compliance.due_status import DueState
from asset_compliance.buisness.core.action_result import ActionResult
from asset_compliance.buisness.equipment.equipment_manager import EquipmentManager
from asset_compliance.buisness.plant.plant_manager import PlantManager


class ComplianceSummaryService:
    """
    Counts by status, group and schedule.

    The count helpers are pure and work on any record list; summarize() loads
    the records through the managers (and therefore through the cache).
    """

    @staticmethod
    def status_counts(records: Iterable[Any]) -> Dict[str, int]:
        """Number of records per compliance state, every state present"""
        counts = Counter(record.status for record in records)
        return {state: counts.get(state, 0) for state in DueState.ALL}

    @staticmethod
    def bucket_counts(values: Iterable[Optional[str]], names: Iterable[str] = ()) -> List[Dict[str, Any]]:
        """
        Totals per name, sorted by descending total.

        Args:
            values: One name per record (None is ignored)
            names: Names to report even when no record carries them

        Returns:
            List of {'name': ..., 'total': ...}
        """
        counts = Counter(value for value in values if value)
        for name in names:
            counts.setdefault(name, 0)
        buckets = [{'name': name, 'total': total} for name, total in counts.items()]
        return sorted(buckets, key=lambda bucket: (-bucket['total'], bucket['name']))

    @classmethod
    def equipment_summary(cls, equipment: List[Any], group_names: Iterable[str] = (),
                          schedule_names: Iterable[str] = ()) -> Dict[str, Any]:
        return {
            'total': len(equipment),
            'status': cls.status_counts(equipment),
            'groups': cls.bucket_counts((item.group_name for item in equipment), group_names),
            'schedules': cls.bucket_counts((item.schedule_name for item in equipment), schedule_names),
        }

    @classmethod
    def plant_summary(cls, plant: List[Any], group_names: Iterable[str] = ()) -> Dict[str, Any]:
        with_due_date = sum(1 for item in plant if item.service_due_date)
        service = [
            {'name': 'Service Due', 'total': with_due_date},
            {'name': 'No Service Date', 'total': len(plant) - with_due_date},
        ]
        return {
            'total': len(plant),
            'status': cls.status_counts(plant),
            'groups': cls.bucket_counts((item.group_name for item in plant), group_names),
            'service': sorted(service, key=lambda bucket: -bucket['total']),
        }

    @classmethod
    def summarize(cls, equipment_manager: EquipmentManager, plant_manager: PlantManager,
                  org_id: Optional[str] = None) -> ActionResult:
        """
        Build the full dashboard summary.

        Returns:
            ActionResult carrying {'equipment': {...}, 'plant': {...}}, or the
            first failure encountered while loading records
        """
        loads = {
            'equipment': equipment_manager.list(org_id),
            'equipment_groups': equipment_manager.list_groups(),
            'schedules': equipment_manager.list_schedules(),
            'plant': plant_manager.list(org_id),
            'plant_groups': plant_manager.list_groups(),
        }
        for result in loads.values():
            if not result.ok:
                return result

        return ActionResult.success({
            'equipment': cls.equipment_summary(
                loads['equipment'].data,
                [group.name for group in loads['equipment_groups'].data],
                [schedule.name for schedule in loads['schedules'].data],
            ),
            'plant': cls.plant_summary(
                loads['plant'].data,
                [group.name for group in loads['plant_groups'].data],
            ),
        })
