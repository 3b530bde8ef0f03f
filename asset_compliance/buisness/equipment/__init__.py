"""
Equipment domain: equipment items and their inspection history
"""

from asset_compliance.buisness.equipment.equipment_manager import EquipmentManager

__all__ = ['EquipmentManager']
