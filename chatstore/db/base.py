from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from pathlib import Path

MEMORY_PATH = ":memory:"


def _enable_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_sqlite_session_pool(
    path: Path | str = MEMORY_PATH,
    *,
    echo: bool = False,
) -> tuple[Engine, sessionmaker[Session]]:
    """
    Create a SQLite engine and a session factory bound to it.

    Foreign keys are enabled on every new connection. An in-memory database shares a
    single connection, otherwise every checkout would see an empty database.

    :param path: Path of the database file, or ``":memory:"``.
    :type path: Path | str
    :param echo: Log every emitted statement.
    :type echo: bool
    """
    if str(path) == MEMORY_PATH:
        engine = create_engine(
            "sqlite://",
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(f"sqlite:///{path}", echo=echo)

    event.listen(engine, "connect", _enable_foreign_keys)

    return engine, sessionmaker(engine, expire_on_commit=False)
