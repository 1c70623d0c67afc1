"""Tenant identity, resolution state and host-mode schemas."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from src.exceptions import CallerContractError


class TenantIdentity(BaseModel):
    """One customer organization as returned by the tenant directory."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str
    slug: str
    custom_domain: str | None = None
    is_active: bool = True
    logo_url: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class TenantLookup:
    """Directory lookup key: exactly one of ``slug`` or ``domain`` is set."""

    slug: str | None = None
    domain: str | None = None

    def __post_init__(self) -> None:
        if bool(self.slug) == bool(self.domain):
            raise CallerContractError(
                "Tenant lookup requires exactly one of slug or domain"
            )

    def describe(self) -> str:
        return f"slug={self.slug}" if self.slug is not None else f"domain={self.domain}"


# ---------------------------------------------------------------------------
# Resolution state
# ---------------------------------------------------------------------------


class ResolutionStatus(str, enum.Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


class FailureKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class Unresolved:
    status = ResolutionStatus.UNRESOLVED


@dataclass(frozen=True)
class Resolving:
    lookup: TenantLookup
    status = ResolutionStatus.RESOLVING

    @property
    def slug(self) -> str | None:
        return self.lookup.slug


@dataclass(frozen=True)
class Resolved:
    tenant: TenantIdentity
    status = ResolutionStatus.RESOLVED


@dataclass(frozen=True)
class Failed:
    reason: str
    kind: FailureKind
    status = ResolutionStatus.FAILED


ResolutionState = Union[Unresolved, Resolving, Resolved, Failed]

UNRESOLVED = Unresolved()


# ---------------------------------------------------------------------------
# Host mode
# ---------------------------------------------------------------------------


class HostMode(str, enum.Enum):
    DEVELOPER = "developer"
    TENANT = "tenant"


@dataclass(frozen=True)
class HostModeResult:
    mode: HostMode
    tenant_hint: str | None = None
    domain: str | None = None


# ---------------------------------------------------------------------------
# API responses
# ---------------------------------------------------------------------------


class TenantResponse(BaseModel):
    id: str
    name: str
    slug: str
    custom_domain: str | None = None
    logo_url: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)


class ResolutionStateResponse(BaseModel):
    status: ResolutionStatus
    slug: str | None = None
    domain: str | None = None
    tenant: TenantResponse | None = None
    failure: FailureKind | None = None
    reason: str | None = None

    @classmethod
    def from_state(
        cls, state: ResolutionState, lookup: TenantLookup | None = None
    ) -> ResolutionStateResponse:
        response = cls(
            status=state.status,
            slug=lookup.slug if lookup else None,
            domain=lookup.domain if lookup else None,
        )
        if isinstance(state, Resolved):
            response.tenant = TenantResponse(**state.tenant.model_dump())
        elif isinstance(state, Failed):
            response.failure = state.kind
            response.reason = state.reason
        return response


class HostContextResponse(BaseModel):
    mode: HostMode
    tenant_hint: str | None = None
    domain: str | None = None
    resolution: ResolutionStateResponse


class ImpersonationResponse(BaseModel):
    """The tenant a developer switched to and where its dashboard lives."""

    tenant: TenantResponse
    dashboard: str
