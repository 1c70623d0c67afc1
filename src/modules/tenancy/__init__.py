"""Tenancy module: tenant resolution, query scoping and route access control."""

from src.modules.tenancy.access import (
    UNAUTHENTICATED,
    AccessPrincipal,
    Allow,
    Capability,
    Pending,
    Redirect,
    Role,
    RouteContext,
    RouteRequirement,
    check,
)
from src.modules.tenancy.directory import DirectoryTransportError, TenantDirectoryClient
from src.modules.tenancy.host_mode import detect
from src.modules.tenancy.query_guard import TenantScope, TenantScopedSelect, scope, scoped_select
from src.modules.tenancy.resolver import TenantResolver
from src.modules.tenancy.schemas import (
    Failed,
    FailureKind,
    HostMode,
    HostModeResult,
    ResolutionState,
    Resolved,
    Resolving,
    TenantIdentity,
    TenantLookup,
    Unresolved,
)
from src.modules.tenancy.service import with_tenant_scope
from src.modules.tenancy.sessions import TenantSessionRegistry

__all__ = [
    # Schemas
    "TenantIdentity",
    "TenantLookup",
    "ResolutionState",
    "Unresolved",
    "Resolving",
    "Resolved",
    "Failed",
    "FailureKind",
    "HostMode",
    "HostModeResult",
    # Host mode
    "detect",
    # Directory + resolution
    "DirectoryTransportError",
    "TenantDirectoryClient",
    "TenantResolver",
    "TenantSessionRegistry",
    # Query guard
    "TenantScope",
    "TenantScopedSelect",
    "scope",
    "scoped_select",
    "with_tenant_scope",
    # Access gate
    "AccessPrincipal",
    "Role",
    "Capability",
    "RouteRequirement",
    "RouteContext",
    "Allow",
    "Redirect",
    "Pending",
    "UNAUTHENTICATED",
    "check",
]
