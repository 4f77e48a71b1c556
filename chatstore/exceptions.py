class ChatStoreError(Exception):
    pass


class UserAlreadyExistsError(ChatStoreError):
    def __init__(self, username: str) -> None:
        super().__init__(f"User {username!r} already exists")
        self.username: str = username


class UserNotFoundError(ChatStoreError):
    def __init__(self, username: str) -> None:
        super().__init__(f"User {username!r} not found")
        self.username: str = username


class ChatAlreadyExistsError(ChatStoreError):
    def __init__(self, chat_id: int) -> None:
        super().__init__(f"Chat with chat_id {chat_id} already exists")
        self.chat_id: int = chat_id


class ChatNotFoundError(ChatStoreError):
    def __init__(self, chat_id: int) -> None:
        super().__init__(f"Chat with chat_id {chat_id} not found")
        self.chat_id: int = chat_id


class NotChatOwnerError(ChatStoreError):
    def __init__(self, chat_id: int, username: str) -> None:
        super().__init__(f"User {username!r} is not the owner of chat {chat_id}")
        self.chat_id: int = chat_id
        self.username: str = username


class EmptyChatError(ChatStoreError):
    def __init__(self, chat_id: int) -> None:
        super().__init__(f"Chat with chat_id {chat_id} has no members")
        self.chat_id: int = chat_id


class MembershipInsertError(ChatStoreError):
    def __init__(self, chat_id: int, username: str) -> None:
        super().__init__(f"Could not add user {username!r} to chat {chat_id}")
        self.chat_id: int = chat_id
        self.username: str = username


class PartialFailureError(ChatStoreError):
    """Raised when a failed transaction could not be rolled back."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Rollback failed during {operation}; state may be partially applied")
        self.operation: str = operation


class StoreClosedError(ChatStoreError):
    def __init__(self) -> None:
        super().__init__("Database is closed")
