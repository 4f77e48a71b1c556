import sqlite3
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from chatstore import ChatStore


def test_add_chat(users: ChatStore) -> None:
    assert users.add_chat(1, "Bob", ["Bob", "Fred", "Harry"]) is True

    assert users.chat_exists(1)
    assert users.get_chat_owner(1) == "Bob"
    assert sorted(users.get_chat_members(1)) == ["Bob", "Fred", "Harry"]


def test_add_chat_keeps_member_order(users: ChatStore) -> None:
    assert users.add_chat(1, "Bob", ["Harry", "Bob", "Fred"])

    assert users.get_chat_members(1) == ["Harry", "Bob", "Fred"]


def test_add_chat_accepts_any_iterable(users: ChatStore) -> None:
    assert users.add_chat(1, "Bob", (name for name in ("Bob", "Fred")))

    assert users.get_chat_members(1) == ["Bob", "Fred"]


def test_add_chat_with_unknown_owner(users: ChatStore) -> None:
    assert users.add_chat(1, "Nick", ["Bob", "Fred", "Harry"]) is False

    assert not users.chat_exists(1)
    assert users.get_chats_for_user("Bob") == []


def test_add_chat_with_existing_id(users: ChatStore) -> None:
    assert users.add_chat(1, "Bob", ["Bob", "Fred"])
    assert users.add_chat(1, "Harry", ["Harry"]) is False

    assert users.get_chat_owner(1) == "Bob"
    assert users.get_chat_members(1) == ["Bob", "Fred"]


def test_add_chat_without_members(users: ChatStore) -> None:
    assert users.add_chat(1, "Bob", []) is False

    assert not users.chat_exists(1)


def test_add_chat_with_unknown_member_writes_nothing(users: ChatStore) -> None:
    assert users.add_chat(1, "Bob", ["Bob", "Fred", "Ghost"]) is False

    assert not users.chat_exists(1)
    assert users.get_chats_for_user("Bob") == []
    assert users.get_chats_for_user("Fred") == []


def test_add_chat_unknown_member_first(users: ChatStore) -> None:
    assert users.add_chat(1, "Bob", ["Ghost", "Bob"]) is False

    assert not users.chat_exists(1)


def test_duplicate_memberships_are_kept(users: ChatStore) -> None:
    assert users.add_chat(1, "Bob", ["Bob", "Fred", "Bob"])

    assert users.get_chat_members(1) == ["Bob", "Fred", "Bob"]
    assert users.get_chats_for_user("Bob") == [1, 1]


def test_remove_chat_by_owner(users: ChatStore) -> None:
    users.add_chat(1, "Bob", ["Bob", "Fred", "Harry"])

    assert users.remove_chat(1, "Bob") is True

    assert not users.chat_exists(1)
    assert users.get_chat_members(1) == []
    assert users.get_chats_for_user("Fred") == []


def test_remove_chat_by_other_user(users: ChatStore) -> None:
    users.add_chat(1, "Bob", ["Bob", "Fred", "Harry"])

    assert users.remove_chat(1, "Fred") is False
    assert users.remove_chat(1, "Nick") is False

    assert users.chat_exists(1)
    assert sorted(users.get_chat_members(1)) == ["Bob", "Fred", "Harry"]


def test_remove_missing_chat(users: ChatStore) -> None:
    assert users.remove_chat(9, "Bob") is False


def test_remove_chat_leaves_other_chats(users: ChatStore) -> None:
    users.add_chat(1, "Bob", ["Bob", "Fred", "Harry"])
    users.add_chat(2, "Harry", ["Fred", "Harry"])

    assert users.remove_chat(1, "Bob")

    assert users.chat_exists(2)
    assert users.get_chat_members(2) == ["Fred", "Harry"]
    assert users.get_chats_for_user("Fred") == [2]


def test_chat_id_can_be_reused_after_removal(users: ChatStore) -> None:
    users.add_chat(1, "Bob", ["Bob", "Fred"])
    users.remove_chat(1, "Bob")

    assert users.add_chat(1, "Harry", ["Harry", "Rick"])

    assert users.get_chat_owner(1) == "Harry"
    assert users.get_chat_members(1) == ["Harry", "Rick"]


def test_get_chat_owner_of_missing_chat(users: ChatStore) -> None:
    assert users.get_chat_owner(9) is None


def test_chat_operations_without_chat_tables(empty_store: ChatStore) -> None:
    empty_store.create_user_table()
    empty_store.add_user("Bob", "password1")

    assert empty_store.add_chat(1, "Bob", ["Bob"]) is False
    assert empty_store.chat_exists(1) is False
    assert empty_store.get_chat_owner(1) is None
    assert empty_store.remove_chat(1, "Bob") is False


def test_remove_chat_rolls_back_when_membership_delete_fails(users: ChatStore) -> None:
    users.add_chat(1, "Bob", ["Bob", "Fred", "Harry"])

    def fail_membership_delete(
        _conn: Any,
        _cursor: Any,
        statement: str,
        *_args: Any,
    ) -> None:
        if statement.startswith("DELETE FROM chatusers"):
            raise OperationalError(statement, None, sqlite3.OperationalError("disk I/O error"))

    event.listen(users.db.engine, "before_cursor_execute", fail_membership_delete)
    try:
        assert users.remove_chat(1, "Bob") is False
    finally:
        event.remove(users.db.engine, "before_cursor_execute", fail_membership_delete)

    assert users.chat_exists(1)
    assert users.get_chat_owner(1) == "Bob"
    assert users.get_chat_members(1) == ["Bob", "Fred", "Harry"]
