"""
Read-through / write-invalidate cache layer over the system of record
"""

from asset_compliance.buisness.cache.cache_keys import CacheKeys
from asset_compliance.buisness.cache.serialization import RecordSerializer
from asset_compliance.buisness.cache.cache_coherent_repository import CacheCoherentRepository

__all__ = [
    'CacheKeys',
    'RecordSerializer',
    'CacheCoherentRepository',
]
