"""JWT bearer authentication producing an ``AccessPrincipal``.

Tokens are issued by the external authentication service; this module only
validates them and projects the role-relevant claims.
"""

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from src.config import settings
from src.exceptions import UnauthorizedException
from src.modules.tenancy.access import UNAUTHENTICATED, AccessPrincipal, Capability, Role

logger = logging.getLogger(__name__)

# FastAPI security scheme: extracts Bearer token from Authorization header
_bearer_scheme = HTTPBearer(auto_error=False)


def _decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


def principal_from_claims(payload: dict) -> AccessPrincipal:
    """Build a principal from token claims.

    Capabilities come from a ``capabilities`` list; the legacy boolean
    ``logistics`` claim is also honoured.
    """
    try:
        role = Role(payload["role"])
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing a valid role claim") from exc

    capabilities: set[Capability] = set()
    for name in payload.get("capabilities") or []:
        try:
            capabilities.add(Capability(name))
        except ValueError:
            logger.info("Ignoring unknown capability claim %r", name)
    if payload.get("logistics") is True:
        capabilities.add(Capability.LOGISTICS)

    tenant_id = payload.get("tenant_id")
    return AccessPrincipal(
        role=role,
        capabilities=frozenset(capabilities),
        tenant_id=str(tenant_id) if tenant_id else None,
        user_id=payload.get("sub"),
    )


async def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AccessPrincipal:
    """FastAPI dependency that validates the bearer token and returns the principal."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    principal = principal_from_claims(_decode_token(credentials.credentials))
    request.state.principal = principal
    return principal


async def get_optional_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
):
    """Like get_current_principal but yields UNAUTHENTICATED instead of raising."""
    if credentials is None:
        return UNAUTHENTICATED

    try:
        return await get_current_principal(request, credentials)
    except UnauthorizedException:
        return UNAUTHENTICATED
