"""Classify an inbound request origin as the operator console or a tenant site."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from src.config import Settings
from src.config import settings as default_settings
from src.modules.tenancy.constants import (
    HOSTNAME_LABEL_PATTERN,
    LOCAL_HOSTS,
    SLUG_PATTERN,
    TENANT_QUERY_PARAM,
)
from src.modules.tenancy.schemas import HostMode, HostModeResult

logger = logging.getLogger(__name__)

_TENANT_WITHOUT_HINT = HostModeResult(mode=HostMode.TENANT)


def normalize_host(host: str | None) -> str | None:
    """Lower-case the host and strip port and trailing dot.

    Returns None when the value is not a syntactically valid hostname.
    """
    if not host:
        return None
    candidate = host.strip().lower()
    if candidate.startswith("["):
        # IPv6 literals never identify a tenant
        return None
    candidate = candidate.split(":", 1)[0].rstrip(".")
    if not candidate or len(candidate) > 253:
        return None
    labels = candidate.split(".")
    if not all(HOSTNAME_LABEL_PATTERN.match(label) for label in labels):
        return None
    return candidate


def is_valid_slug(value: str | None) -> bool:
    return bool(value) and SLUG_PATTERN.match(value) is not None


def _is_preview_host(host: str, config: Settings) -> bool:
    if host in LOCAL_HOSTS:
        return True
    return any(host.endswith(suffix) for suffix in config.preview_host_suffixes_list)


def detect(
    host: str | None,
    query_params: Mapping[str, str] | None = None,
    settings: Settings | None = None,
) -> HostModeResult:
    """Return the experience to serve for a request host.

    Anything that is not positively an operator host is classified as tenant
    mode, so a malformed or unknown host can never open the developer console.
    """
    config = settings or default_settings

    override = (query_params or {}).get(TENANT_QUERY_PARAM)
    if override:
        override = override.strip().lower()
        if is_valid_slug(override):
            return HostModeResult(mode=HostMode.TENANT, tenant_hint=override)
        logger.info("Ignoring malformed tenant override %r", override)

    normalized = normalize_host(host)
    if normalized is None:
        return _TENANT_WITHOUT_HINT

    if normalized in config.operator_hosts_list:
        return HostModeResult(mode=HostMode.DEVELOPER)

    base_domain = config.base_domain.lower()
    suffix = f".{base_domain}"
    if normalized.endswith(suffix):
        label = normalized[: -len(suffix)].split(".")[0]
        if label != "www" and is_valid_slug(label):
            return HostModeResult(mode=HostMode.TENANT, tenant_hint=label)
        return _TENANT_WITHOUT_HINT

    if _is_preview_host(normalized, config):
        return HostModeResult(mode=HostMode.TENANT, tenant_hint=config.default_tenant_slug)

    return HostModeResult(mode=HostMode.TENANT, domain=normalized)
