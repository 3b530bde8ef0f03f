"""
Plant domain: vehicles, trucks, trailers, vessels and petrol plant with their service history
"""

from asset_compliance.buisness.plant.plant_manager import PlantManager

__all__ = ['PlantManager']
