"""
Cache key namespace
Every key is derived from (entity type, optional organization, optional entity id),
so two logical scopes never share a key.
"""

from typing import Optional


class CacheKeys:
    """Builders for every cache key the compliance core reads or invalidates"""

    EQUIPMENT_ALL = 'equipment:all'
    EQUIPMENT_GROUPS = 'equipment:groups'
    EQUIPMENT_SCHEDULES = 'equipment:schedules'
    INSPECTION_HISTORY_ALL = 'inspection:history:all'

    PLANT_ALL = 'plant:all'
    PLANT_GROUPS = 'plant:groups'
    PLANT_SERVICE_HISTORY_ALL = 'plant:service_history:all'

    @classmethod
    def equipment(cls, org_id: Optional[str] = None) -> str:
        return f'equipment:org:{org_id}' if org_id else cls.EQUIPMENT_ALL

    @staticmethod
    def inspection_history(equipment_id: str) -> str:
        return f'inspection:history:{equipment_id}'

    @staticmethod
    def inspection_history_for_org(org_id: str) -> str:
        return f'inspection:history:org:{org_id}'

    @classmethod
    def plant(cls, org_id: Optional[str] = None) -> str:
        return f'plant:org:{org_id}' if org_id else cls.PLANT_ALL

    @staticmethod
    def plant_service_history(plant_id: str) -> str:
        return f'plant:service_history:{plant_id}'

    @staticmethod
    def plant_service_history_for_org(org_id: str) -> str:
        return f'plant:service_history:org:{org_id}'

    @classmethod
    def equipment_collections(cls, org_id: Optional[str] = None):
        """Global collection key plus the organization key when scoped"""
        keys = [cls.EQUIPMENT_ALL]
        if org_id:
            keys.append(cls.equipment(org_id))
        return keys

    @classmethod
    def plant_collections(cls, org_id: Optional[str] = None):
        """Global collection key plus the organization key when scoped"""
        keys = [cls.PLANT_ALL]
        if org_id:
            keys.append(cls.plant(org_id))
        return keys
