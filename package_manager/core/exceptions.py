"""Domain errors raised by the package manager services.

Each error carries the HTTP status it maps to at the request boundary.
Health probe and credential verification failures are not errors here:
they are reported as data by the services that perform them.
"""
from fastapi import status


class PackageManagerError(Exception):
    """Base class for errors reported to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PackageManagerError):
    """Missing or malformed required fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidOperationError(PackageManagerError):
    """The request is well-formed but not allowed for this entity."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(PackageManagerError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(PackageManagerError):
    status_code = status.HTTP_409_CONFLICT


class UpstreamUnreachableError(PackageManagerError):
    status_code = status.HTTP_502_BAD_GATEWAY
