class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` is the stable error identifier surfaced to API callers.
    """

    kind = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    kind = "not_found"


class InvalidReferenceError(DomainError):
    """Raised when a bulk operation carries ids that do not resolve."""

    kind = "invalid_reference"


class ConflictError(DomainError):
    """Raised when a create-once record already exists."""

    kind = "conflict"


class InvalidCredentialError(DomainError):
    """Raised when a scan credential is malformed, unknown, mismatched or expired."""

    kind = "invalid_credential"


class ForbiddenError(DomainError):
    """Raised when the principal's role is not permitted for an action."""

    kind = "forbidden"


class UnexpectedError(DomainError):
    """Raised when the underlying store fails."""

    kind = "unexpected"
