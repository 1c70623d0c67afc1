"""Route access gate: decide whether a principal may open a route."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

from src.modules.tenancy.constants import (
    DEVELOPER_LOGIN_PATH,
    SITE_ROOT,
    TENANT_DASHBOARD_TEMPLATE,
    TENANT_LOGIN_TEMPLATE,
)


class Role(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    WORKER = "worker"
    WORKSTATION = "workstation"
    INSTALLATION_TEAM = "installation_team"
    TEAMLEADER = "teamleader"
    PREPARATER = "preparater"
    DEVELOPER = "developer"


class Capability(str, enum.Enum):
    LOGISTICS = "logistics"


@dataclass(frozen=True)
class AccessPrincipal:
    """Role-relevant projection of the authenticated user."""

    role: Role
    capabilities: frozenset[Capability] = frozenset()
    tenant_id: str | None = None
    user_id: str | None = None

    def has_capability(self, capability: Capability) -> bool:
        return capability in self.capabilities


class _Unauthenticated:
    """Authentication finished and there is no user."""

    _instance: _Unauthenticated | None = None

    def __new__(cls) -> _Unauthenticated:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNAUTHENTICATED"


UNAUTHENTICATED = _Unauthenticated()


@dataclass(frozen=True)
class RouteRequirement:
    roles: frozenset[Role] = field(default_factory=frozenset)
    capability: Capability | None = None


@dataclass(frozen=True)
class RouteContext:
    """Path parameters of the route being opened."""

    tenant: str | None = None
    lang: str | None = None


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    target: str


@dataclass(frozen=True)
class Pending:
    """Principal still loading: render nothing, decide nothing."""


AccessDecision = Union[Allow, Redirect, Pending]

ALLOW = Allow()
PENDING = Pending()


def dashboard_target(route: RouteContext, default_lang: str) -> str:
    if route.tenant:
        return TENANT_DASHBOARD_TEMPLATE.format(
            tenant=route.tenant.lower(), lang=route.lang or default_lang
        )
    return SITE_ROOT


def login_target(route: RouteContext) -> str:
    if route.tenant:
        return TENANT_LOGIN_TEMPLATE.format(tenant=route.tenant.lower())
    return DEVELOPER_LOGIN_PATH


def is_allowed(principal: AccessPrincipal, requirement: RouteRequirement) -> bool:
    if principal.role in requirement.roles:
        return True
    return requirement.capability is not None and principal.has_capability(requirement.capability)


def check(
    principal: AccessPrincipal | _Unauthenticated | None,
    requirement: RouteRequirement,
    route: RouteContext | None = None,
    default_lang: str = "nl",
) -> AccessDecision:
    """Pure decision over ``(principal, requirement, route)``.

    ``None`` means the principal has not loaded yet and yields ``Pending``
    rather than a redirect.
    """
    route = route or RouteContext()
    if principal is None:
        return PENDING
    if principal is UNAUTHENTICATED:
        return Redirect(login_target(route))
    if is_allowed(principal, requirement):
        return ALLOW
    return Redirect(dashboard_target(route, default_lang))


def requirement(*roles: Role, capability: Capability | None = None) -> RouteRequirement:
    return RouteRequirement(roles=frozenset(roles), capability=capability)


def tenant_requirement(*roles: Role, capability: Capability | None = None) -> RouteRequirement:
    """Requirement for a route inside the tenant app.

    Developers viewing a tenant are always admitted; their data access is
    still confined to that tenant by ``with_tenant_scope``.
    """
    return requirement(*roles, Role.DEVELOPER, capability=capability)


_OFFICE = (Role.ADMIN, Role.MANAGER)
_FIELD = (Role.INSTALLATION_TEAM, Role.TEAMLEADER, Role.PREPARATER)

# Navigation requirements of the tenant application
ROUTE_REQUIREMENTS: dict[str, RouteRequirement] = {
    "dashboard": tenant_requirement(*Role),
    "projects": tenant_requirement(*Role),
    "rush-orders": tenant_requirement(*_OFFICE, Role.INSTALLATION_TEAM, Role.WORKER),
    "time-registrations": tenant_requirement(*_OFFICE),
    "planning": tenant_requirement(*_OFFICE, Role.INSTALLATION_TEAM, Role.TEAMLEADER),
    "orders": tenant_requirement(*_OFFICE, *_FIELD),
    "logistics": tenant_requirement(*_OFFICE, *_FIELD, capability=Capability.LOGISTICS),
    "logistics-out": tenant_requirement(*_OFFICE, *_FIELD, capability=Capability.LOGISTICS),
    "settings": tenant_requirement(Role.ADMIN),
    "holidays": tenant_requirement(*Role),
    "workstations": tenant_requirement(*_OFFICE, Role.WORKSTATION, Role.TEAMLEADER),
    "developer-portal": requirement(Role.DEVELOPER),
}
