"""Client for the external tenant directory's ``resolve_tenant`` RPC."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from src.config import settings
from src.modules.tenancy.constants import DIRECTORY_RPC_PATH
from src.modules.tenancy.schemas import TenantIdentity, TenantLookup

logger = logging.getLogger(__name__)


class DirectoryTransportError(Exception):
    """The directory lookup could not be completed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TenantDirectoryClient:
    """Issues a single lookup per call; never retries.

    Args:
        base_url: Directory service root. Defaults to ``settings.directory_url``.
        api_key: Sent as ``apikey`` and bearer token when set.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.directory_url
        self.api_key = settings.directory_api_key if api_key is None else api_key
        self.timeout = timeout or settings.directory_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["apikey"] = self.api_key
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def resolve_tenant(
        self, slug: str | None = None, domain: str | None = None
    ) -> TenantIdentity | None:
        """Resolve a tenant by slug or custom domain.

        Exactly one of ``slug`` and ``domain`` must be given; anything else
        raises ``CallerContractError``. Returns None when the directory has no
        matching row. Raises ``DirectoryTransportError`` on any transport,
        status or payload failure.
        """
        lookup = TenantLookup(slug=slug, domain=domain)
        return await self.lookup(lookup)

    async def lookup(self, lookup: TenantLookup) -> TenantIdentity | None:
        payload = {"p_slug": lookup.slug, "p_domain": lookup.domain}
        try:
            client = await self._get_client()
            response = await client.post(DIRECTORY_RPC_PATH, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            message = _error_message(exc.response)
            logger.warning("Directory lookup %s failed: %s", lookup.describe(), message)
            raise DirectoryTransportError(message) from exc
        except httpx.HTTPError as exc:
            logger.warning("Directory lookup %s request error: %s", lookup.describe(), exc)
            raise DirectoryTransportError(str(exc) or exc.__class__.__name__) from exc
        except httpx.InvalidURL as exc:
            logger.error("Directory URL %r is invalid: %s", self.base_url, exc)
            raise DirectoryTransportError(f"Invalid directory URL: {exc}") from exc
        except ValueError as exc:
            raise DirectoryTransportError("Directory returned malformed JSON") from exc

        row = data[0] if isinstance(data, list) and data else data
        if not row:
            return None
        try:
            return TenantIdentity.model_validate(row)
        except ValidationError as exc:
            raise DirectoryTransportError("Directory returned an invalid tenant record") from exc

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


def _error_message(response: httpx.Response) -> str:
    """Prefer the RPC error ``message`` field over the bare status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Directory returned HTTP {response.status_code}"
