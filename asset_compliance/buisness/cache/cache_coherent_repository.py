"""
Cache-Coherent Repository
Read-through / write-invalidate access to one record type.

The system of record is the only ground truth. The cache store is optional and
disposable: every failure talking to it is logged and treated as a miss (reads)
or ignored (writes and invalidations).
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Type, Union

from asset_compliance.buisness.cache.serialization import RecordSerializer
from asset_compliance.buisness.core.errors import CacheDeserializationError
from asset_compliance.data.cache_store import CacheStore
from asset_compliance.data.repository import Repository
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.business.cache")

DEFAULT_TTL_SECONDS = 7200


class CacheCoherentRepository:
    """
    Wraps a Repository with a key-value cache.

    Reads:  cache -> deserialize -> (purge on corruption) -> repository -> cache.
    Writes: repository first, then delete every key that could now be stale.
    """

    def __init__(self, repository: Repository, record_cls: Type,
                 cache_store: Optional[CacheStore] = None,
                 ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.repository = repository
        self.record_cls = record_cls
        self.cache_store = cache_store
        self.ttl_seconds = ttl_seconds
        self.serializer = RecordSerializer(record_cls)

    # ----- read path -----

    def get(self, key: str, fetcher: Callable[[], List[Any]], force_fresh: bool = False) -> List[Any]:
        """
        Return the records cached under key, fetching from the system of record on a miss.

        Args:
            key: Cache key of the collection
            fetcher: Callable returning the records from the system of record
            force_fresh: Skip the cache read for this call; the fresh result is
                still written back

        Returns:
            List of records
        """
        if force_fresh:
            logger.debug(f"Force fresh fetch for {key} - bypassing cache")
        else:
            cached = self._safe_get(key)
            if cached is not None:
                try:
                    records = self.serializer.deserialize(cached)
                    logger.debug(f"Cache hit for {key}")
                    return records
                except CacheDeserializationError as e:
                    logger.warning(f"Failed to deserialize cached data for {key}, fetching from database: {e}")
                    self._safe_delete(key)
            else:
                logger.debug(f"Cache miss for {key}")

        records = fetcher()
        self._safe_set(key, records)
        return records

    def fetch(self, key: str, filters: Optional[Dict[str, Any]] = None,
              order_by: Optional[str] = None, force_fresh: bool = False) -> List[Any]:
        """Read-through query of the wrapped repository"""
        return self.get(key, lambda: self.query(filters, order_by), force_fresh)

    def query(self, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None) -> List[Any]:
        """Query the system of record directly, bypassing the cache"""
        rows = self.repository.query(filters, order_by)
        return [self.record_cls.from_row(row) for row in rows]

    # ----- write path -----

    def insert(self, rows: Union[Dict[str, Any], List[Dict[str, Any]]],
               invalidate: Iterable[str] = ()) -> Union[Any, List[Any]]:
        """Insert one row or a batch, then invalidate the given keys"""
        persisted = self.repository.insert(rows)
        self.invalidate(invalidate)
        if isinstance(persisted, list):
            return [self.record_cls.from_row(row) for row in persisted]
        return self.record_cls.from_row(persisted)

    def update(self, record_id: str, partial: Dict[str, Any], invalidate: Iterable[str] = ()) -> Any:
        """Apply a partial update, then invalidate the given keys"""
        persisted = self.repository.update(record_id, partial)
        self.invalidate(invalidate)
        return self.record_cls.from_row(persisted)

    def delete(self, record_id: str, invalidate: Iterable[str] = ()) -> None:
        """Delete a row, then invalidate the given keys"""
        self.repository.delete(record_id)
        self.invalidate(invalidate)

    def invalidate(self, keys: Iterable[str]) -> None:
        """Delete cache keys; failures are logged and never raised"""
        for key in dict.fromkeys(keys):
            self._safe_delete(key)
            logger.debug(f"Invalidated {key}")

    # ----- cache store access -----

    def _safe_get(self, key):
        if self.cache_store is None:
            return None
        try:
            return self.cache_store.get(key)
        except Exception as e:
            logger.error(f"Cache get error for {key}: {e}")
            return None

    def _safe_set(self, key, records):
        if self.cache_store is None:
            return
        try:
            self.cache_store.set(key, self.serializer.serialize(records), self.ttl_seconds)
            logger.debug(f"Cached {key}")
        except Exception as e:
            logger.error(f"Cache set error for {key}: {e}")

    def _safe_delete(self, key):
        if self.cache_store is None:
            return
        try:
            self.cache_store.delete(key)
        except Exception as e:
            logger.error(f"Cache delete error for {key}: {e}")
