"""Domain exception hierarchy for structured error responses."""

from __future__ import annotations


class AppException(Exception):
    """Base exception for all domain errors.

    Subclasses set ``code`` and ``status_code`` at the class level; callers
    provide ``message`` and an optional ``details`` list.
    """

    code: str = "APP_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code = 404


class ForbiddenException(AppException):
    code = "FORBIDDEN"
    status_code = 403


class UnauthorizedException(AppException):
    code = "UNAUTHORIZED"
    status_code = 401


class ServiceUnavailableException(AppException):
    code = "SERVICE_UNAVAILABLE"
    status_code = 503


class CallerContractError(AppException):
    """Programming error: a tenancy contract was violated by the caller.

    Raised for ambiguous slug/domain lookups and for tenant-scoped data access
    attempted without a resolved tenant or an explicit all-tenants scope.
    """

    code = "CALLER_CONTRACT_VIOLATION"
    status_code = 500


class TenantNotFoundException(NotFoundException):
    code = "TENANT_NOT_FOUND"


class TenantUnavailableException(ServiceUnavailableException):
    """The tenant directory could not be reached; the tenant may well exist."""

    code = "TENANT_UNAVAILABLE"


class RouteRedirect(AppException):
    """Rendered as a redirect instead of an error body."""

    code = "REDIRECT"
    status_code = 307

    def __init__(self, location: str) -> None:
        super().__init__(f"Redirect to {location}")
        self.location = location


class RoutePending(AppException):
    """Access cannot be decided yet; rendered as an empty response."""

    code = "PENDING"
    status_code = 204

    def __init__(self) -> None:
        super().__init__("Access decision pending")
