from src.database.base import Base, TenantBoundMixin, TimestampMixin, UUIDPrimaryKeyMixin
from src.database.engine import async_session, engine
from src.database.session import get_db
from src.database.tenant import set_rls_bypass, set_tenant_context

__all__ = [
    "Base",
    "TenantBoundMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "get_db",
    "set_tenant_context",
    "set_rls_bypass",
]
