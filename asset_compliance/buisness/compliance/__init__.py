"""
Compliance engines
Pure calculations shared by equipment and plant: interval arithmetic, due
status derivation, identifier allocation and date normalization.
"""

from asset_compliance.buisness.compliance.intervals import Interval, next_due
from asset_compliance.buisness.compliance.due_status import DueState, DueStatusEngine
from asset_compliance.buisness.compliance.auto_id_allocator import AutoIdAllocator

__all__ = [
    'Interval',
    'next_due',
    'DueState',
    'DueStatusEngine',
    'AutoIdAllocator',
]
