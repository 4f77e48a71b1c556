from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

from sqlalchemy import delete, exists, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from chatstore.db.models import Base, ChatModel, ChatUserModel, UserModel
from chatstore.exceptions import (
    ChatAlreadyExistsError,
    ChatNotFoundError,
    EmptyChatError,
    MembershipInsertError,
    NotChatOwnerError,
    PartialFailureError,
    StoreClosedError,
    UserAlreadyExistsError,
    UserNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=sessionmaker[Session])


class ChatDatabase(Generic[T]):
    def __init__(self, engine: Engine, sessionmaker: T) -> None:
        self._engine = engine
        self._sessionmaker = sessionmaker
        self.is_closed = False

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def sessionmaker(self) -> T:
        return self._sessionmaker

    @property
    def is_open(self) -> bool:
        return not self.is_closed

    def close(self) -> None:
        self.is_closed = True
        self._engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        if self.is_closed:
            raise StoreClosedError

        with self._sessionmaker() as session:
            yield session

    @contextmanager
    def transaction(self, operation: str = "transaction") -> Iterator[Session]:
        """
        Run a block of statements as one unit.

        Commits when the block finishes, rolls back when it raises. If the rollback
        itself fails the original error is chained to a ``PartialFailureError``.
        """
        with self.session() as session:
            try:
                yield session
                session.commit()
            except Exception:
                try:
                    session.rollback()
                except SQLAlchemyError as e:
                    raise PartialFailureError(operation) from e
                raise

    def create_user_table(self) -> None:
        if self.is_closed:
            raise StoreClosedError

        Base.metadata.tables[UserModel.__tablename__].create(self._engine)

    def create_chat_tables(self) -> None:
        if self.is_closed:
            raise StoreClosedError

        Base.metadata.tables[ChatModel.__tablename__].create(self._engine)
        Base.metadata.tables[ChatUserModel.__tablename__].create(self._engine)

    @staticmethod
    def user_exists(session: Session, username: str) -> bool:
        stmt: Any = select(exists().where(UserModel.username == username))
        return bool(session.scalar(stmt))

    @staticmethod
    def register_user(session: Session, username: str, password: str) -> UserModel:
        if ChatDatabase.user_exists(session, username):
            raise UserAlreadyExistsError(username=username)

        stmt: Any = (
            insert(UserModel)
            .values(
                username=username,
                password=password,
            )
            .returning(UserModel)
        )
        user = session.scalar(stmt)

        return cast(UserModel, user)

    @staticmethod
    def check_credentials(session: Session, username: str, password: str) -> bool:
        if not ChatDatabase.user_exists(session, username):
            raise UserNotFoundError(username=username)

        stmt: Any = select(
            exists().where(UserModel.username == username, UserModel.password == password),
        )
        return bool(session.scalar(stmt))

    @staticmethod
    def chat_exists(session: Session, chat_id: int) -> bool:
        stmt: Any = select(exists().where(ChatModel.chat_id == chat_id))
        return bool(session.scalar(stmt))

    @staticmethod
    def get_chat_owner(session: Session, chat_id: int) -> str:
        owner = session.scalar(select(ChatModel.owner).filter(ChatModel.chat_id == chat_id))

        if owner is None:
            raise ChatNotFoundError(chat_id=chat_id)

        return owner

    @staticmethod
    def create_chat(
        session: Session,
        chat_id: int,
        owner: str,
        members: Iterable[str],
    ) -> ChatModel:
        """
        Insert a chat and one membership row per member, in the given order.

        Nothing is committed here; run inside ``ChatDatabase.transaction`` so a failed
        membership insert discards the chat row as well.
        """
        member_list = list(members)

        if ChatDatabase.chat_exists(session, chat_id):
            raise ChatAlreadyExistsError(chat_id=chat_id)

        if not ChatDatabase.user_exists(session, owner):
            raise UserNotFoundError(username=owner)

        if not member_list:
            raise EmptyChatError(chat_id=chat_id)

        stmt: Any = (
            insert(ChatModel)
            .values(
                chat_id=chat_id,
                owner=owner,
            )
            .returning(ChatModel)
        )
        chat = session.scalar(stmt)

        for username in member_list:
            try:
                session.execute(insert(ChatUserModel).values(chat_id=chat_id, username=username))
            except IntegrityError as e:
                raise MembershipInsertError(chat_id=chat_id, username=username) from e

        logger.debug("Chat %s inserted with %d members", chat_id, len(member_list))

        return cast(ChatModel, chat)

    @staticmethod
    def delete_chat(session: Session, chat_id: int, username: str) -> None:
        owner = ChatDatabase.get_chat_owner(session, chat_id)

        if owner != username:
            raise NotChatOwnerError(chat_id=chat_id, username=username)

        # Chat row first, memberships second; the chat foreign key is checked at commit.
        session.execute(delete(ChatModel).where(ChatModel.chat_id == chat_id))
        session.execute(delete(ChatUserModel).where(ChatUserModel.chat_id == chat_id))

    @staticmethod
    def get_chat_members(session: Session, chat_id: int) -> list[str]:
        if not ChatDatabase.chat_exists(session, chat_id):
            raise ChatNotFoundError(chat_id=chat_id)

        stmt: Any = (
            select(ChatUserModel.username)
            .filter(ChatUserModel.chat_id == chat_id)
            .order_by(ChatUserModel.row_id)
        )
        return list(session.scalars(stmt))

    @staticmethod
    def get_chats_for_user(session: Session, username: str) -> list[int]:
        if not ChatDatabase.user_exists(session, username):
            raise UserNotFoundError(username=username)

        stmt: Any = (
            select(ChatUserModel.chat_id)
            .filter(ChatUserModel.username == username)
            .order_by(ChatUserModel.row_id)
        )
        return list(session.scalars(stmt))
