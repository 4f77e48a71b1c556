from msgspec import Struct


class ChatPeer(Struct, kw_only=True, tag=True):
    chat_id: int
    username: str
