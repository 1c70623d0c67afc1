"""FastAPI dependency functions for tenant resolution and route access."""

import logging

from fastapi import Depends, Request

from src.config import settings
from src.exceptions import (
    CallerContractError,
    RoutePending,
    RouteRedirect,
    TenantNotFoundException,
    TenantUnavailableException,
)
from src.modules.locale.service import LanguageRedirect, check_language
from src.modules.tenancy.access import (
    ROUTE_REQUIREMENTS,
    AccessPrincipal,
    Allow,
    Pending,
    Redirect,
    RouteContext,
    RouteRequirement,
    check,
)
from src.modules.tenancy.auth import get_optional_principal
from src.modules.tenancy.constants import TENANT_NOT_FOUND_MESSAGE, TENANT_UNAVAILABLE_MESSAGE
from src.modules.tenancy.host_mode import is_valid_slug
from src.modules.tenancy.query_guard import TenantScope
from src.modules.tenancy.resolver import TenantResolver
from src.modules.tenancy.schemas import (
    Failed,
    FailureKind,
    HostModeResult,
    ResolutionState,
    Resolved,
    TenantIdentity,
    TenantLookup,
)

logger = logging.getLogger(__name__)

# Another request in the same session may retarget the resolver mid-flight
_MAX_SETTLE_ATTEMPTS = 2


def get_host_mode(request: Request) -> HostModeResult:
    host_mode = getattr(request.state, "host_mode", None)
    if host_mode is None:
        raise CallerContractError("Host mode is not available on this route")
    return host_mode


def _session_id(request: Request) -> str:
    session_id = getattr(request.state, "tenant_session_id", None)
    if session_id is None:
        raise CallerContractError("Tenant session is not available on this route")
    return session_id


def get_tenant_resolver(request: Request) -> TenantResolver:
    """Open (or reuse) the resolver for the caller's tenant session."""
    return request.app.state.tenant_sessions.get_or_create(_session_id(request))


def get_existing_resolver(request: Request) -> TenantResolver | None:
    """The caller's resolver if the session already exists; never opens one."""
    return request.app.state.tenant_sessions.get(_session_id(request))


def raise_for_failure(state: ResolutionState) -> Resolved:
    """Return a ``Resolved`` state or raise the user-facing tenant error."""
    if isinstance(state, Resolved):
        return state
    if isinstance(state, Failed):
        if state.kind == FailureKind.NOT_FOUND:
            raise TenantNotFoundException(TENANT_NOT_FOUND_MESSAGE)
        raise TenantUnavailableException(TENANT_UNAVAILABLE_MESSAGE)
    raise CallerContractError(f"Tenant resolution has not settled (state: {state.status.value})")


async def settle(resolver: TenantResolver, lookup: TenantLookup) -> ResolutionState:
    """Point ``resolver`` at ``lookup`` and wait for the outcome for that target."""
    for _ in range(_MAX_SETTLE_ATTEMPTS):
        if lookup.slug is not None:
            resolver.set_slug(lookup.slug)
        else:
            resolver.set_domain(lookup.domain)
        state = await resolver.wait()
        if resolver.target == lookup:
            return state
        logger.info("Tenant session retargeted while resolving %s", lookup.describe())
    raise TenantUnavailableException(TENANT_UNAVAILABLE_MESSAGE)


async def require_resolved_state(
    tenant: str,
    resolver: TenantResolver = Depends(get_tenant_resolver),
) -> Resolved:
    """Resolve the ``{tenant}`` path segment for the current session."""
    slug = tenant.lower()
    if not is_valid_slug(slug):
        raise TenantNotFoundException(TENANT_NOT_FOUND_MESSAGE)
    state = await settle(resolver, TenantLookup(slug=slug))
    return raise_for_failure(state)


def require_tenant(state: Resolved = Depends(require_resolved_state)) -> TenantIdentity:
    return state.tenant


def require_tenant_scope(state: Resolved = Depends(require_resolved_state)) -> TenantScope:
    return TenantScope.from_state(state)


def enforce_access(
    request: Request, principal, requirement: RouteRequirement
) -> AccessPrincipal:
    """Apply the access gate to a request, raising the redirect it decides on."""
    context = RouteContext(
        tenant=request.path_params.get("tenant"),
        lang=request.path_params.get("lang"),
    )
    decision = check(principal, requirement, context, default_lang=settings.default_language)
    if isinstance(decision, Allow):
        return principal
    if isinstance(decision, Redirect):
        raise RouteRedirect(decision.target)
    if isinstance(decision, Pending):
        raise RoutePending()
    raise CallerContractError(f"Unhandled access decision {decision!r}")


def require_access(route: str | RouteRequirement):
    """Factory returning a dependency that gates a route by role.

    Accepts a named entry of ``ROUTE_REQUIREMENTS`` or a requirement. Denied
    principals are redirected to the tenant dashboard (or the site root);
    unauthenticated ones to the login page.
    """
    if isinstance(route, RouteRequirement):
        requirement = route
    else:
        try:
            requirement = ROUTE_REQUIREMENTS[route]
        except KeyError as exc:
            raise CallerContractError(f"Unknown route requirement: {route}") from exc

    async def _check(
        request: Request,
        principal=Depends(get_optional_principal),
    ) -> AccessPrincipal:
        return enforce_access(request, principal, requirement)

    return _check


def require_language(request: Request, lang: str, tenant: str | None = None) -> str:
    """Redirect unsupported ``{lang}`` segments to the fallback language."""
    decision = check_language(request.url.path, lang, tenant=tenant)
    if isinstance(decision, LanguageRedirect):
        raise RouteRedirect(decision.target)
    return decision.lang
