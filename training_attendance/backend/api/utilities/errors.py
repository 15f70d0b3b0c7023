from fastapi import HTTPException, status

from ...services.exceptions import (
    ServiceError, ValidationError, AuthError, ForbiddenError, NotFoundError,
    DuplicateCheckInError, DuplicateIdentifierError, AlreadyEndedError, StorageError
)

# Most specific classes first; ServiceError is the catch-all.
_STATUS_BY_ERROR = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateCheckInError, status.HTTP_409_CONFLICT),
    (DuplicateIdentifierError, status.HTTP_409_CONFLICT),
    (AlreadyEndedError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ServiceError, status.HTTP_400_BAD_REQUEST),
]


def to_http_exception(error: ServiceError) -> HTTPException:
    """Maps a service layer error onto the HTTP status the API promises for it."""
    for error_class, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_class):
            headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
            return HTTPException(status_code=status_code, detail=str(error), headers=headers)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected server error occurred.")
