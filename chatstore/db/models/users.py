from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from chatstore.db.models.base import Base


class UserModel(Base):
    __tablename__ = "userinfo"

    username: Mapped[str] = mapped_column(String(20), primary_key=True)
    password: Mapped[str | None] = mapped_column(String(20))

    def __repr__(self) -> str:
        return f"<UserModel(username={self.username!r})>"
