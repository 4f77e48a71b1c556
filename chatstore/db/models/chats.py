from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chatstore.db.models.base import Base


class ChatModel(Base):
    __tablename__ = "chats"

    chat_id: Mapped[int] = mapped_column("chatid", Integer, primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("userinfo.username"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ChatModel(chat_id={self.chat_id}, owner={self.owner!r})>"
