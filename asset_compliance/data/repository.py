"""
Repository collaborator
Generic access to the system of record, one instance per entity type.

Rows are exchanged in the raw persisted shape (snake_case column names plus
joined lookup names such as group_name). Mapping rows to domain records is the
business layer's job.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Union
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from asset_compliance import db
from asset_compliance.buisness.core.errors import RecordNotFoundError, RepositoryError
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.data.repository")

Row = Dict[str, Any]

# Session.info flag set while an atomic() block is open
DEFERRED_COMMIT = "asset_compliance.deferred_commit"


@contextmanager
def atomic(session=None):
    """
    Run several repository writes as one transaction.

    Writes inside the block flush instead of committing. The block commits once
    on exit and rolls everything back if anything inside it raises. Nested
    blocks join the outermost one.

    Raises:
        RepositoryError: If the final commit fails
    """
    session = session if session is not None else db.session
    if session.info.get(DEFERRED_COMMIT):
        yield session
        return

    session.info[DEFERRED_COMMIT] = True
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Transaction rolled back: {e}")
        raise RepositoryError(f"Transaction failed: {e}") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.info.pop(DEFERRED_COMMIT, None)


class Repository(ABC):
    """Interface to one entity type in the system of record"""

    @abstractmethod
    def query(self, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None) -> List[Row]:
        """
        Return rows matching the filters.

        Args:
            filters: Mapping of column name to value. A key suffixed with
                "__ilike" matches case-insensitively, "__in" matches any value
                of a collection.
            order_by: Column name, prefixed with "-" for descending order

        Returns:
            List of rows
        """
        pass

    @abstractmethod
    def insert(self, records: Union[Row, List[Row]]) -> Union[Row, List[Row]]:
        """Insert one row or a batch of rows atomically and return what was persisted"""
        pass

    @abstractmethod
    def update(self, record_id: str, partial: Row) -> Row:
        """Apply a partial update and return the persisted row"""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Delete the row with the given id"""
        pass


class SqlAlchemyRepository(Repository):
    """
    Repository backed by a Flask-SQLAlchemy model.

    Every write commits on success and rolls back on failure, so a batch insert
    either lands completely or not at all. Inside an atomic() block writes only
    flush and the block owns the commit.
    """

    def __init__(self, model, session=None):
        self.model = model
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def query(self, filters=None, order_by=None):
        try:
            statement = self.session.query(self.model)
            for key, value in (filters or {}).items():
                statement = statement.filter(self._build_condition(key, value))

            if order_by:
                descending = order_by.startswith('-')
                column = getattr(self.model, order_by.lstrip('-'))
                statement = statement.order_by(column.desc() if descending else column.asc())

            return [instance.to_row() for instance in statement.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error querying {self.model.__name__}: {e}")
            raise RepositoryError(f"Failed to query {self.model.__name__}: {e}") from e

    def insert(self, records):
        single = isinstance(records, dict)
        batch = [records] if single else list(records)
        instances = [self.model.from_row(row) for row in batch]

        try:
            self.session.add_all(instances)
            self._commit()
            logger.info(f"Inserted {len(instances)} {self.model.__name__} row(s)")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error inserting {self.model.__name__}: {e}")
            raise RepositoryError(f"Failed to insert {self.model.__name__}: {e}") from e

        rows = [instance.to_row() for instance in instances]
        return rows[0] if single else rows

    def update(self, record_id, partial):
        instance = self._get_or_raise(record_id)
        columns = self.model.column_names()

        try:
            for key, value in partial.items():
                if key in columns and key not in ('id', 'created_at'):
                    setattr(instance, key, value)
            self._commit()
            logger.info(f"Updated {self.model.__name__} {record_id}")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error updating {self.model.__name__} {record_id}: {e}")
            raise RepositoryError(f"Failed to update {self.model.__name__}: {e}") from e

        return instance.to_row()

    def delete(self, record_id):
        instance = self._get_or_raise(record_id)

        try:
            self.session.delete(instance)
            self._commit()
            logger.info(f"Deleted {self.model.__name__} {record_id}")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error deleting {self.model.__name__} {record_id}: {e}")
            raise RepositoryError(f"Failed to delete {self.model.__name__}: {e}") from e

    def _commit(self):
        if self.session.info.get(DEFERRED_COMMIT):
            self.session.flush()
        else:
            self.session.commit()

    def _get_or_raise(self, record_id):
        try:
            instance = self.session.get(self.model, record_id)
        except SQLAlchemyError as e:
            logger.error(f"Error loading {self.model.__name__} {record_id}: {e}")
            raise RepositoryError(f"Failed to load {self.model.__name__}: {e}") from e

        if instance is None:
            raise RecordNotFoundError(f"{self.model.__name__} {record_id} not found")
        return instance

    def _build_condition(self, key, value):
        if key.endswith('__ilike'):
            column = getattr(self.model, key[:-len('__ilike')])
            return func.lower(column) == str(value).lower()
        if key.endswith('__in'):
            column = getattr(self.model, key[:-len('__in')])
            return column.in_(list(value))
        column = getattr(self.model, key)
        if value is None:
            return column.is_(None)
        return column == value
