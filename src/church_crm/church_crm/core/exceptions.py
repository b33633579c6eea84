class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced program, person or tally does not exist."""


class InvalidStateError(DomainError):
    """Raised when an operation is attempted from a state that forbids it."""


class AlreadyMappedError(DomainError):
    """Raised when a tally already carries a person."""


class NoneAvailableError(DomainError):
    """Raised when no available tally is left to auto-issue."""


class PromotionNotEligibleError(DomainError):
    """Raised when a guest fails the promotion thresholds."""


class FeatureDisabledError(DomainError):
    """Raised at the HTTP edge when a switched-off feature was asked for.

    Services return an empty or unchanged result instead.
    """
