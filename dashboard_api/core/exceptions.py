"""
Service error taxonomy.

Services raise these directly; they are HTTPExceptions so FastAPI renders them
with the right status code without extra handlers.
"""

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class StorageUnavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage unavailable"
