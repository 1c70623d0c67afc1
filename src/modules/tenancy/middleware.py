"""FastAPI middleware that classifies the host and binds the tenant session."""

import logging
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.config import settings
from src.modules.tenancy.constants import EXCLUDED_ROUTES
from src.modules.tenancy.host_mode import detect

logger = logging.getLogger(__name__)


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Stores the host mode and the client's tenant session id in request state.

    ``request.state.host_mode`` holds the ``HostModeResult`` for the request
    origin. ``request.state.tenant_session_id`` identifies the client's tenant
    session, read from a cookie or freshly generated. The resolver for that
    session is only opened by routes that need one (``get_tenant_resolver``),
    and the cookie is only issued once a session actually exists, so
    cookieless API clients on other routes leave no state behind.

    Tenant lookups happen in the route dependencies, not here, because only the
    route knows the ``{tenant}`` path segment.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path

        if any(path.startswith(route) for route in EXCLUDED_ROUTES):
            return await call_next(request)

        request.state.host_mode = detect(
            request.headers.get("host"), request.query_params
        )

        registry = request.app.state.tenant_sessions
        registry.evict_idle()

        cookie_name = settings.tenant_session_cookie
        session_id = request.cookies.get(cookie_name)
        is_new_session = not session_id
        if is_new_session:
            session_id = uuid.uuid4().hex
        request.state.tenant_session_id = session_id

        response = await call_next(request)
        if is_new_session and session_id in registry:
            response.set_cookie(
                cookie_name,
                session_id,
                httponly=True,
                samesite="lax",
                secure=not settings.is_development,
            )
        return response
