"""
Cache warming
Primes the read-through cache so the first dashboard load does not hit the database.
"""

from typing import Iterable, Optional

from asset_compliance.buisness.core.action_result import ActionResult
from asset_compliance.buisness.equipment.equipment_manager import EquipmentManager
from asset_compliance.buisness.plant.plant_manager import PlantManager
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.services.cache_warmer")


def warm_cache(equipment_manager: EquipmentManager, plant_manager: PlantManager,
               org_ids: Optional[Iterable[str]] = None) -> ActionResult:
    """
    Load every cached collection once.

    Args:
        equipment_manager: Manager whose collections are primed
        plant_manager: Manager whose collections are primed
        org_ids: Organizations whose scoped collections are primed as well

    Returns:
        ActionResult carrying the number of collections loaded, or the first failure
    """
    logger.info("Warming cache...")

    loaders = [
        equipment_manager.list,
        equipment_manager.list_groups,
        equipment_manager.list_schedules,
        plant_manager.list,
        plant_manager.list_groups,
    ]
    for org_id in org_ids or ():
        loaders.append(lambda org_id=org_id: equipment_manager.list(org_id))
        loaders.append(lambda org_id=org_id: plant_manager.list(org_id))

    for loader in loaders:
        result = loader()
        if not result.ok:
            logger.error(f"Error warming cache: {result.error}")
            return result

    logger.info(f"Cache warmed successfully ({len(loaders)} collections)")
    return ActionResult.success(len(loaders))
