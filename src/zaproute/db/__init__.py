"""Database clients and utilities."""

from .session import build_engine, get_engine, get_session_factory, init_db, make_session_factory
from .supabase import get_supabase_client

__all__ = [
    "build_engine",
    "get_engine",
    "get_session_factory",
    "init_db",
    "make_session_factory",
    "get_supabase_client",
]
