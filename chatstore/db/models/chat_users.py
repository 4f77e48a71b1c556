from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chatstore.db.models.base import Base


class ChatUserModel(Base):
    """
    One row per (chat, user) pair.

    Repeated pairs are allowed. The chat foreign key is checked at commit, so a chat
    row can be deleted before its memberships within the same transaction.
    """

    __tablename__ = "chatusers"

    row_id: Mapped[int] = mapped_column("rowid", Integer, primary_key=True)
    chat_id: Mapped[int | None] = mapped_column(
        "chatid",
        Integer,
        ForeignKey("chats.chatid", deferrable=True, initially="DEFERRED"),
    )
    username: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("userinfo.username"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ChatUserModel(chat_id={self.chat_id}, username={self.username!r})>"
