"""
Action Result
Outcome of a manager operation as seen by the presentation layer: either the
domain result or a single descriptive error, tagged with the kind of failure.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from asset_compliance.buisness.core.errors import (
    RecordNotFoundError,
    ValidationError,
)

T = TypeVar('T')


class FailureKind(Enum):
    """Why an operation failed, so callers can branch without parsing messages"""
    NOT_FOUND = 'not_found'
    VALIDATION_FAILURE = 'validation_failure'
    TRANSIENT_FAILURE = 'transient_failure'


@dataclass
class ActionResult(Generic[T]):
    data: Optional[T] = None
    error: Optional[str] = None
    failure: Optional[FailureKind] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, data: Any = None) -> 'ActionResult':
        return cls(data=data)

    @classmethod
    def not_found(cls, message: str) -> 'ActionResult':
        return cls(error=message, failure=FailureKind.NOT_FOUND)

    @classmethod
    def validation_failure(cls, message: str) -> 'ActionResult':
        return cls(error=message, failure=FailureKind.VALIDATION_FAILURE)

    @classmethod
    def transient_failure(cls, message: str) -> 'ActionResult':
        return cls(error=message, failure=FailureKind.TRANSIENT_FAILURE)

    @classmethod
    def from_exception(cls, action: str, error: Exception) -> 'ActionResult':
        """
        Map a domain exception to a tagged failure.

        Args:
            action: Short description used as the message prefix, e.g. "create equipment"
            error: The exception raised by the operation

        Returns:
            ActionResult carrying "Failed to <action>: <reason>"
        """
        message = f"Failed to {action}: {error}"
        if isinstance(error, RecordNotFoundError):
            return cls.not_found(message)
        if isinstance(error, ValidationError):
            return cls.validation_failure(message)
        return cls.transient_failure(message)
