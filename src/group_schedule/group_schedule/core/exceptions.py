class DomainError(Exception):
    """Base exception for business rule violations."""

    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    http_status = 400


class ForbiddenError(DomainError):
    """Raised when the caller's role or ownership does not allow the action."""

    http_status = 403


class NotFoundError(DomainError):
    """Raised when a template, group or occurrence does not resolve for the caller."""

    http_status = 404


class ClosedError(DomainError):
    """Raised when an RSVP arrives after the occurrence has ended."""

    http_status = 409


class DeadlinePassedError(DomainError):
    """Raised when an outcome is recorded after the attendance deadline."""

    http_status = 409
