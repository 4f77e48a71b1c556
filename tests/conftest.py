from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from chatstore import ChatStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def empty_store(tmp_path: Path) -> Iterator[ChatStore]:
    store = ChatStore(tmp_path / "DB.sqlite")
    yield store
    store.close()


@pytest.fixture
def store(empty_store: ChatStore) -> ChatStore:
    assert empty_store.create_user_table()
    assert empty_store.create_chat_tables()
    return empty_store


@pytest.fixture
def users(store: ChatStore) -> ChatStore:
    for username, password in (
        ("Bob", "password1"),
        ("Fred", "password2"),
        ("Harry", "password3"),
        ("Rick", "password4"),
    ):
        assert store.add_user(username, password)
    return store
