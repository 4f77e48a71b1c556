from .chat_peer import ChatPeer
from .results import NotFound, Result, StoreError, Success

__all__ = (
    "ChatPeer",
    "NotFound",
    "Result",
    "StoreError",
    "Success",
)
