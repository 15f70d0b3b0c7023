"""Service layer exception classes. Routers translate them to HTTP responses."""


class ServiceError(Exception):
    """General exception class for the service layer."""
    pass


class ValidationError(ServiceError):
    """Missing or malformed input."""
    pass


class AuthError(ServiceError):
    """Bad credentials, or a missing/invalid token."""
    pass


class ForbiddenError(ServiceError):
    """The caller's role may not perform the operation."""
    pass


class NotFoundError(ServiceError):
    """A referenced session, user or catalog entry does not exist."""
    pass


class DuplicateCheckInError(ServiceError):
    pass


class DuplicateIdentifierError(ServiceError):
    pass


class AlreadyEndedError(ServiceError):
    pass


class StorageError(ServiceError):
    """The datastore failed. The message is safe to show; details go to the log."""
    pass
