"""
Equipment models package
"""

from .equipment_group import EquipmentGroup
from .equipment_schedule import EquipmentSchedule
from .equipment import Equipment
from .inspection_history import InspectionHistory

__all__ = [
    'EquipmentGroup',
    'EquipmentSchedule',
    'Equipment',
    'InspectionHistory',
]
