"""Tenancy module constants for tenant resolution and route access."""

import re

# Directory RPC
DIRECTORY_RPC_PATH = "/rest/v1/rpc/resolve_tenant"
NOT_FOUND_REASON = "not_found"

# Slugs: lowercase, URL-safe, no leading/trailing hyphen
SLUG_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
HOSTNAME_LABEL_PATTERN = SLUG_PATTERN
TENANT_QUERY_PARAM = "tenant"
LOCAL_HOSTS = ("localhost", "127.0.0.1")

# Redirect targets
SITE_ROOT = "/"
DEVELOPER_LOGIN_PATH = "/dev/login"
TENANT_LOGIN_TEMPLATE = "/{tenant}/login"
TENANT_DASHBOARD_TEMPLATE = "/{tenant}/{lang}"

# User-facing failure messages
TENANT_NOT_FOUND_MESSAGE = "Tenant not found, check your link."
TENANT_UNAVAILABLE_MESSAGE = "We could not load your organization right now. Please try again."

# Routes excluded from host-mode and tenant session handling
EXCLUDED_ROUTES = [
    "/health",
    "/api/docs",
    "/api/openapi.json",
    "/api/redoc",
]
