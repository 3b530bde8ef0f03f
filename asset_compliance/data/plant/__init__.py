"""
Plant (mobile plant, vehicles and vessels) models package
"""

from .plant_group import PlantGroup
from .plant import Plant
from .plant_service_history import PlantServiceHistory

__all__ = [
    'PlantGroup',
    'Plant',
    'PlantServiceHistory',
]
