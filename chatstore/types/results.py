from typing import Any

from msgspec import Struct


class Success(Struct, kw_only=True, tag=True):
    value: Any


class NotFound(Struct, kw_only=True, tag=True):
    key: str | int


class StoreError(Struct, kw_only=True, tag=True):
    message: str


Result = Success | NotFound | StoreError
