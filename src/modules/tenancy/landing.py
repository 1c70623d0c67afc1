"""Top-level entry point: pick the developer or tenant experience by host."""

from fastapi import APIRouter, Depends, Request

from src.config import settings
from src.exceptions import RouteRedirect
from src.modules.tenancy.constants import TENANT_DASHBOARD_TEMPLATE
from src.modules.tenancy.dependencies import (
    get_host_mode,
    get_tenant_resolver,
    raise_for_failure,
    settle,
)
from src.modules.tenancy.schemas import HostMode, HostModeResult, TenantLookup

router = APIRouter(tags=["landing"])


def _dashboard(slug: str) -> str:
    return TENANT_DASHBOARD_TEMPLATE.format(tenant=slug, lang=settings.default_language)


@router.get("/")
async def landing(
    request: Request,
    host_mode: HostModeResult = Depends(get_host_mode),
):
    """Serve the developer landing page or send the visitor into their tenant.

    Subdomain hosts redirect straight to the tenant dashboard; custom domains
    are resolved by domain first so the redirect uses the canonical slug.
    """
    if host_mode.mode == HostMode.DEVELOPER:
        return {"experience": "developer"}

    if host_mode.tenant_hint:
        raise RouteRedirect(_dashboard(host_mode.tenant_hint))

    if host_mode.domain:
        resolver = get_tenant_resolver(request)
        state = raise_for_failure(await settle(resolver, TenantLookup(domain=host_mode.domain)))
        raise RouteRedirect(_dashboard(state.tenant.slug))

    return {"experience": "tenant_login"}
