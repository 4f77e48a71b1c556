from .base import Base
from .chat_users import ChatUserModel
from .chats import ChatModel
from .users import UserModel

__all__ = (
    "Base",
    "ChatModel",
    "ChatUserModel",
    "UserModel",
)
