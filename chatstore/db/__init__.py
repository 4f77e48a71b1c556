from .base import create_sqlite_session_pool
from .db import ChatDatabase

__all__ = (
    "ChatDatabase",
    "create_sqlite_session_pool",
)
