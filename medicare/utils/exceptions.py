from typing import Any, Optional
from fastapi import status


class ServiceError(Exception):
    """Base class for failures raised by the service layer.

    Each subclass maps to one HTTP status code. The message is meant to be shown
    to the end user as-is, so keep it short and specific.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "ServiceError"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.message!r}>"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "NotFound"


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "Unauthorized"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    error_type = "Forbidden"


class InvalidStateError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "InvalidState"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    error_type = "Conflict"


class InvalidArgumentError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "InvalidArgument"


class ExternalServiceError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "ExternalServiceError"
