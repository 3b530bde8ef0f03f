"""
Core domain building blocks: records, errors and action results
"""

from asset_compliance.buisness.core.errors import (
    ComplianceDomainError,
    ValidationError,
    RecordNotFoundError,
    RepositoryError,
    CacheDeserializationError,
)
from asset_compliance.buisness.core.action_result import ActionResult, FailureKind

__all__ = [
    'ComplianceDomainError',
    'ValidationError',
    'RecordNotFoundError',
    'RepositoryError',
    'CacheDeserializationError',
    'ActionResult',
    'FailureKind',
]
