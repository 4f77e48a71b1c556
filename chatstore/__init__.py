from .store import ChatStore

__all__ = ("ChatStore",)
