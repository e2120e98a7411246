# backend/utils/errors.py
"""
Domain errors surfaced to API clients.

Every error is an ``HTTPException`` so it can be raised from helpers and
routes alike; ``main.py`` renders them into the response envelope together
with the ``code`` attribute.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    code = "Error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, headers: dict = None):
        super().__init__(status_code=self.status_code, detail=message, headers=headers)

    @property
    def message(self) -> str:
        return self.detail


class Unauthorized(AppError):
    code = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class PermissionDenied(AppError):
    code = "PermissionDenied"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidArgument(AppError):
    code = "InvalidArgument"
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(AppError):
    code = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class InsufficientStock(Conflict):
    code = "InsufficientStock"

    def __init__(self, drug_name: str, requested: int, available: int):
        self.drug_name = drug_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {drug_name}: requested {requested}, available {available}"
        )


class UpstreamError(AppError):
    code = "UpstreamError"
    status_code = status.HTTP_502_BAD_GATEWAY


class UpstreamNotConfigured(UpstreamError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# Map raw HTTP statuses (framework raised HTTPException) to error codes
STATUS_CODES = {
    400: InvalidArgument.code,
    401: Unauthorized.code,
    403: PermissionDenied.code,
    404: NotFound.code,
    409: Conflict.code,
}
