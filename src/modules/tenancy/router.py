"""Tenancy module API router: resolution context, refresh and access checks."""

import logging

from fastapi import APIRouter, Depends, Request

from src.config import settings
from src.exceptions import NotFoundException, RouteRedirect
from src.middleware.rate_limit import limiter
from src.modules.tenancy.access import ROUTE_REQUIREMENTS, AccessPrincipal, Role
from src.modules.tenancy.auth import get_current_principal, get_optional_principal
from src.modules.tenancy.constants import SITE_ROOT, TENANT_DASHBOARD_TEMPLATE
from src.modules.tenancy.dependencies import (
    enforce_access,
    get_existing_resolver,
    get_host_mode,
    get_tenant_resolver,
    raise_for_failure,
    require_language,
    require_tenant,
    settle,
)
from src.modules.tenancy.resolver import TenantResolver
from src.modules.tenancy.schemas import (
    UNRESOLVED,
    HostContextResponse,
    HostModeResult,
    ImpersonationResponse,
    ResolutionStateResponse,
    TenantIdentity,
    TenantLookup,
    TenantResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenancy", tags=["tenancy"])
access_router = APIRouter(prefix="/{tenant}/{lang}", tags=["access"])


@router.get("/context", response_model=HostContextResponse)
async def get_context(
    host_mode: HostModeResult = Depends(get_host_mode),
    resolver: TenantResolver | None = Depends(get_existing_resolver),
):
    """Report the host classification and the session's resolution state.

    Callers without a tenant session are reported as unresolved; reading the
    context never opens a session.
    """
    resolution = (
        ResolutionStateResponse.from_state(resolver.state, resolver.target)
        if resolver is not None
        else ResolutionStateResponse.from_state(UNRESOLVED)
    )
    return HostContextResponse(
        mode=host_mode.mode,
        tenant_hint=host_mode.tenant_hint,
        domain=host_mode.domain,
        resolution=resolution,
    )


@router.get("/tenants/{tenant}", response_model=TenantResponse)
async def get_tenant(tenant: TenantIdentity = Depends(require_tenant)):
    """Resolve a tenant slug for the current session."""
    return TenantResponse(**tenant.model_dump())


@router.post("/tenants/{tenant}/refresh", response_model=ResolutionStateResponse)
@limiter.limit("10/minute")
async def refresh_tenant(
    request: Request,
    tenant: str,
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    """Explicitly re-issue the lookup for ``tenant``.

    This is the only way a failed resolution is retried.
    """
    lookup = TenantLookup(slug=tenant.lower())
    if resolver.target == lookup:
        await resolver.refresh()
        state = resolver.state
    else:
        state = await settle(resolver, lookup)
    return ResolutionStateResponse.from_state(state, resolver.target)


@router.post("/impersonate/{tenant}", response_model=ImpersonationResponse)
async def impersonate_tenant(
    tenant: str,
    principal: AccessPrincipal = Depends(get_current_principal),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    """Developer-only: resolve ``tenant`` for the session and hand off to it.

    The session is pointed at the tenant so its context reports it, and the
    response carries the tenant dashboard to navigate to. Tenant data routes
    still resolve their own ``{tenant}`` path segment; impersonation does not
    change which tenant a data URL reads.
    """
    if principal.role != Role.DEVELOPER:
        raise RouteRedirect(SITE_ROOT)
    state = raise_for_failure(await settle(resolver, TenantLookup(slug=tenant.lower())))
    slug = state.tenant.slug
    logger.info("Developer %s is viewing tenant %s", principal.user_id, slug)
    return ImpersonationResponse(
        tenant=TenantResponse(**state.tenant.model_dump()),
        dashboard=TENANT_DASHBOARD_TEMPLATE.format(tenant=slug, lang=settings.default_language),
    )


@access_router.get("/access/{route_name}")
async def check_route_access(
    request: Request,
    route_name: str,
    lang: str = Depends(require_language),
    principal=Depends(get_optional_principal),
):
    """Decide whether the caller may open ``route_name`` inside the tenant app.

    Allowed callers get ``{"allowed": true}``; everyone else is redirected.
    """
    requirement = ROUTE_REQUIREMENTS.get(route_name)
    if requirement is None:
        raise NotFoundException(f"Unknown route: {route_name}")
    allowed = enforce_access(request, principal, requirement)
    return {"allowed": True, "route": route_name, "role": allowed.role.value, "lang": lang}
