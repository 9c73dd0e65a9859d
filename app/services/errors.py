"""Domain errors raised by the services and mapped to HTTP statuses by the API layer."""


class ServiceError(Exception):
    """Base for expected, caller-visible failures. message is safe to show to clients."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Input rejected before reaching the repository."""


class NotFoundError(ServiceError):
    """The requested id does not resolve to a record."""


class ConflictError(ServiceError):
    """A concurrent change won the race; the caller may retry."""
