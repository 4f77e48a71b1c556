from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from chatstore.db.base import create_sqlite_session_pool
from chatstore.db.db import ChatDatabase
from chatstore.exceptions import (
    ChatAlreadyExistsError,
    ChatNotFoundError,
    ChatStoreError,
    EmptyChatError,
    MembershipInsertError,
    NotChatOwnerError,
    StoreClosedError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from chatstore.types import ChatPeer, NotFound, Result, StoreError, Success

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULT_PATH = "DB.sqlite"


class ChatStore:
    """
    Users, chats and chat memberships, and the relationship queries built on them.

    Expected failures (unknown user or chat, duplicate keys, a non-owner deleting a
    chat) are reported by a ``False`` or empty return value and a warning in the log.
    Store failures are returned the same way but logged with their traceback. Use
    ``lookup_chat_owner``/``lookup_user_chats`` to tell the two apart.
    """

    def __init__(
        self,
        path: Path | str = DEFAULT_PATH,
        *,
        echo: bool = False,
        db: ChatDatabase | None = None,
    ) -> None:
        """
        Open the store.

        :param path: The SQLite database file, or ``":memory:"``.
        :type path: Path | str
        :param echo: Log every SQL statement.
        :type echo: bool
        :param db: An already opened database; ``path`` and ``echo`` are ignored.
        :type db: ChatDatabase | None
        """
        if db is None:
            db = ChatDatabase(*create_sqlite_session_pool(path, echo=echo))

        self.db: ChatDatabase = db

    @classmethod
    def from_database(cls, db: ChatDatabase) -> ChatStore:
        return cls(db=db)

    @property
    def is_open(self) -> bool:
        return self.db.is_open

    def close(self) -> None:
        if self.db.is_open:
            self.db.close()

    # Schema

    def create_user_table(self) -> bool:
        try:
            self.db.create_user_table()
        except (SQLAlchemyError, StoreClosedError) as e:
            logger.warning(
                "Couldn't create the table 'userinfo': one might already exist. %s",
                e.args,
            )
            return False

        return True

    def create_chat_tables(self) -> bool:
        try:
            self.db.create_chat_tables()
        except (SQLAlchemyError, StoreClosedError) as e:
            logger.warning("Couldn't create the chat tables: one might already exist. %s", e.args)
            return False

        return True

    # Credentials

    def add_user(self, username: str, password: str) -> bool:
        try:
            with self.db.transaction("add_user") as session:
                ChatDatabase.register_user(session, username, password)
        except UserAlreadyExistsError:
            logger.warning("addUser failed: user %r already exists", username)
            return False
        except (SQLAlchemyError, ChatStoreError):
            logger.exception("addUser failed for user %r", username)
            return False

        logger.info("User %r added", username)
        return True

    def user_exists(self, username: str) -> bool:
        try:
            with self.db.session() as session:
                return ChatDatabase.user_exists(session, username)
        except (SQLAlchemyError, StoreClosedError):
            logger.exception("Could not check whether user %r exists", username)
            return False

    def check_credentials(self, username: str, password: str) -> bool:
        try:
            with self.db.session() as session:
                matched = ChatDatabase.check_credentials(session, username, password)
        except UserNotFoundError:
            logger.warning("checkCredentials failed: user %r does not exist", username)
            return False
        except (SQLAlchemyError, StoreClosedError):
            logger.exception("Credentials of user %r could not be checked", username)
            return False

        if not matched:
            logger.info("checkCredentials failed: wrong password for user %r", username)

        return matched

    # Chats

    def add_chat(self, chat_id: int, owner: str, members: Iterable[str]) -> bool:
        """
        Create a chat owned by ``owner`` with one membership per entry in ``members``.

        The chat and all of its memberships are written in one transaction: if any
        membership cannot be inserted, nothing is kept.
        """
        try:
            with self.db.transaction("add_chat") as session:
                ChatDatabase.create_chat(session, chat_id, owner, members)
        except ChatAlreadyExistsError:
            logger.warning("addChat failed: a chat with chat_id %s already exists", chat_id)
            return False
        except UserNotFoundError:
            logger.warning("addChat failed: owner %r does not exist", owner)
            return False
        except EmptyChatError:
            logger.warning("addChat failed: chat %s has no members", chat_id)
            return False
        except MembershipInsertError as e:
            logger.warning(
                "addChat failed: user %r could not be added to chat %s: %s",
                e.username,
                chat_id,
                e.__cause__,
            )
            return False
        except (SQLAlchemyError, ChatStoreError):
            logger.exception("addChat failed for chat %s", chat_id)
            return False

        logger.info("Chat %s created by %r", chat_id, owner)
        return True

    def remove_chat(self, chat_id: int, username: str) -> bool:
        """Delete a chat and its memberships. Only the chat owner may do this."""
        try:
            with self.db.transaction("remove_chat") as session:
                ChatDatabase.delete_chat(session, chat_id, username)
        except ChatNotFoundError:
            logger.warning("Remove chat failed: chat %s does not exist", chat_id)
            return False
        except NotChatOwnerError:
            logger.warning(
                "Remove chat failed: %r is not the owner of chat %s and may not delete it",
                username,
                chat_id,
            )
            return False
        except (SQLAlchemyError, ChatStoreError):
            logger.exception("Remove chat failed for chat %s", chat_id)
            return False

        logger.info("Chat %s removed by %r", chat_id, username)
        return True

    def chat_exists(self, chat_id: int) -> bool:
        try:
            with self.db.session() as session:
                return ChatDatabase.chat_exists(session, chat_id)
        except (SQLAlchemyError, StoreClosedError):
            logger.exception("Could not check whether chat %s exists", chat_id)
            return False

    def get_chat_owner(self, chat_id: int) -> str | None:
        match self.lookup_chat_owner(chat_id):
            case Success(value=owner):
                return owner
            case _:
                return None

    def lookup_chat_owner(self, chat_id: int) -> Result:
        try:
            with self.db.session() as session:
                return Success(value=ChatDatabase.get_chat_owner(session, chat_id))
        except ChatNotFoundError:
            return NotFound(key=chat_id)
        except (SQLAlchemyError, StoreClosedError) as e:
            logger.exception("Chat owner of chat %s could not be retrieved", chat_id)
            return StoreError(message=str(e))

    # Relationship queries

    def get_chat_members(self, chat_id: int) -> list[str]:
        try:
            with self.db.session() as session:
                return ChatDatabase.get_chat_members(session, chat_id)
        except ChatNotFoundError:
            return []
        except (SQLAlchemyError, StoreClosedError):
            logger.exception("Users of chat %s could not be retrieved", chat_id)
            return []

    def get_chats_for_user(self, username: str) -> list[int]:
        match self.lookup_user_chats(username):
            case Success(value=chat_ids):
                return chat_ids
            case _:
                return []

    get_chats_user_is_in = get_chats_for_user

    def lookup_user_chats(self, username: str) -> Result:
        try:
            with self.db.session() as session:
                return Success(value=ChatDatabase.get_chats_for_user(session, username))
        except UserNotFoundError:
            return NotFound(key=username)
        except (SQLAlchemyError, StoreClosedError) as e:
            logger.exception("Chats of user %r could not be retrieved", username)
            return StoreError(message=str(e))

    def do_users_share_chat(self, first: str, second: str) -> bool:
        first_chats = self.get_chats_for_user(first)
        if not first_chats:
            return False

        second_chats = self.get_chats_for_user(second)
        if not second_chats:
            return False

        return any(chat_id in second_chats for chat_id in first_chats)

    def get_user_chat_peers(self, username: str) -> list[ChatPeer]:
        """Every (chat, other member) pair for the chats ``username`` belongs to."""
        return [
            ChatPeer(chat_id=chat_id, username=member)
            for chat_id in self.get_chats_for_user(username)
            for member in self.get_chat_members(chat_id)
            if member != username
        ]

    def get_user_chat_summary(self, username: str) -> str:
        """
        Flatten ``get_user_chat_peers`` into ``"chat_id,member,chat_id,member"``.

        For example ``"3,Bob,3,Harry,5,Dave"``, or ``""`` if the user has no chats.
        """
        return ",".join(
            f"{peer.chat_id},{peer.username}" for peer in self.get_user_chat_peers(username)
        )
