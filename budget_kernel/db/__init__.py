"""Database layer - engine, base classes and sessions."""

from budget_kernel.db.base import Base, TrackedBase, UUIDString
from budget_kernel.db.engine import (
    begin_write_transaction,
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "begin_write_transaction",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
]
