"""
Domain exceptions for the compliance core

Raised inside the business and data layers; managers convert them into
ActionResult failures before anything reaches the presentation layer.
"""


class ComplianceDomainError(Exception):
    """Base exception for all compliance domain errors"""
    pass


class ValidationError(ComplianceDomainError):
    """Raised when input is missing a required field or names an unknown group/schedule"""
    pass


class RecordNotFoundError(ComplianceDomainError):
    """Raised when the system of record has no row for the requested id"""
    pass


class RepositoryError(ComplianceDomainError):
    """Raised when the system of record rejects or fails an operation"""
    pass


class CacheDeserializationError(ComplianceDomainError):
    """Raised when a cached payload cannot be turned back into records"""
    pass
