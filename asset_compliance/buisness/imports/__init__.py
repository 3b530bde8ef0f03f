"""
Bulk creation from spreadsheet imports
"""

from asset_compliance.buisness.imports.bulk_import_pipeline import (
    BulkImportPipeline,
    EquipmentBulkImport,
    PlantBulkImport,
)

__all__ = [
    'BulkImportPipeline',
    'EquipmentBulkImport',
    'PlantBulkImport',
]
