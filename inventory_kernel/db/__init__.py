"""Database layer - engine, base classes and session scope."""

from inventory_kernel.db.base import UUID, Base, TenantScopedBase, UUIDString
from inventory_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "session_scope",
    "create_tables",
    "Base",
    "TenantScopedBase",
    "UUIDString",
    "UUID",
]
