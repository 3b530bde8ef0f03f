"""
Base Asset Manager
Shared wiring for the equipment and plant managers: collaborators, the status
engine, an injectable "today", and conversion of domain errors to ActionResult.
"""

from datetime import date
from typing import Any, Callable, Dict, Optional

from flask import current_app

from asset_compliance.buisness.cache.cache_coherent_repository import (
    CacheCoherentRepository,
    DEFAULT_TTL_SECONDS,
)
from asset_compliance.buisness.compliance.dates import parse_import_date
from asset_compliance.buisness.compliance.due_status import DueStatusEngine
from asset_compliance.buisness.core.action_result import ActionResult
from asset_compliance.buisness.core.errors import ComplianceDomainError, RecordNotFoundError, ValidationError
from asset_compliance.buisness.core.records import GroupRecord
from asset_compliance.data.repository import SqlAlchemyRepository, atomic
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.business.manager")


class BaseAssetManager:
    """
    Common behaviour of the per-family managers.

    Subclasses build their CacheCoherentRepository instances in
    _build_repositories() and expose the public operations, each of which
    returns an ActionResult and never raises a domain error.
    """

    # Human-readable entity name used in failure messages
    entity_name = 'asset'

    def __init__(self, cache_store=None, ttl_seconds: int = DEFAULT_TTL_SECONDS,
                 engine: Optional[DueStatusEngine] = None,
                 today_provider: Optional[Callable[[], date]] = None,
                 session=None):
        self.cache_store = cache_store
        self.ttl_seconds = ttl_seconds
        self.engine = engine or DueStatusEngine()
        self.today_provider = today_provider or date.today
        self.session = session
        self._build_repositories()

    @classmethod
    def from_app(cls, app=None, **kwargs):
        """
        Build a manager from the Flask application's cache store and config.

        Args:
            app: Flask application (defaults to current_app)
            **kwargs: Overrides passed to the constructor (e.g. today_provider)
        """
        app = app or current_app
        kwargs.setdefault('cache_store', app.extensions.get('cache_store'))
        kwargs.setdefault('ttl_seconds', app.config.get('CACHE_TTL_SECONDS', DEFAULT_TTL_SECONDS))
        kwargs.setdefault('engine', DueStatusEngine.from_config(app.config))
        return cls(**kwargs)

    def _build_repositories(self):
        raise NotImplementedError

    def _cached(self, model, record_cls) -> CacheCoherentRepository:
        return CacheCoherentRepository(
            SqlAlchemyRepository(model, self.session),
            record_cls,
            cache_store=self.cache_store,
            ttl_seconds=self.ttl_seconds,
        )

    def today(self) -> date:
        return self.today_provider()

    def _atomic(self):
        """One transaction for a mutation that spans several writes; invalidate after it exits"""
        return atomic(self.session)

    # ----- result handling -----

    def _execute(self, action: str, operation: Callable[[], Any]) -> ActionResult:
        """
        Run an operation and wrap its outcome.

        Args:
            action: Description used in the failure message, e.g. "create equipment"
            operation: Callable performing the work

        Returns:
            ActionResult with the operation's return value, or a tagged failure
        """
        try:
            return ActionResult.success(operation())
        except ComplianceDomainError as e:
            logger.error(f"Error trying to {action}: {e}")
            return ActionResult.from_exception(action, e)

    # ----- lookups -----

    @staticmethod
    def _resolve_lookup(repository: CacheCoherentRepository, name: Optional[str], label: str) -> GroupRecord:
        """
        Resolve a lookup row (group or schedule) by name.

        The exact name is tried first, then a case-insensitive match.

        Raises:
            ValidationError: If no row matches
        """
        if not name or not str(name).strip():
            raise ValidationError(f"{label} is required")

        name = str(name).strip()
        matches = repository.query({'name': name})
        if not matches:
            matches = repository.query({'name__ilike': name})
        if not matches:
            raise ValidationError(f'{label} "{name}" not found in database')
        return matches[0]

    @staticmethod
    def _lookup_by_id(repository: CacheCoherentRepository, record_id: str, label: str) -> GroupRecord:
        matches = repository.query({'id': record_id})
        if not matches:
            raise ValidationError(f"{label} {record_id} not found in database")
        return matches[0]

    def _get_record(self, repository: CacheCoherentRepository, record_id: str):
        """Load one record straight from the system of record"""
        matches = repository.query({'id': record_id})
        if not matches:
            raise RecordNotFoundError(f"{self.entity_name.capitalize()} {record_id} not found")
        return matches[0]

    # ----- input coercion -----

    @staticmethod
    def require_field(data: Dict[str, Any], key: str) -> Any:
        value = data.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"Missing required field '{key}'")
        return value

    @staticmethod
    def date_field(data: Dict[str, Any], key: str) -> Optional[date]:
        try:
            return parse_import_date(data.get(key))
        except ValidationError as e:
            raise ValidationError(f"{key}: {e}") from e

    @staticmethod
    def number_field(data: Dict[str, Any], key: str, cast=float):
        value = data.get(key)
        if value is None or value == '':
            return None
        try:
            return cast(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{key}: expected a number, got {value!r}") from e
