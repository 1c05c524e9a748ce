class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class PolicyConfigurationError(DomainError):
    """Raised when a refund policy table fails load-time validation."""


class PolicyNoMatchError(DomainError):
    """No tier matched during evaluation.

    Only reachable with a table that skipped validation; settlement must fail
    instead of defaulting to a 0% refund.
    """
