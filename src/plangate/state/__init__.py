"""State store: durable, versioned record of applied resources."""

from .base import StateStore
from .models import StateRecord, StateSnapshot, LockInfo
from .sqlite import SqliteStateStore

__all__ = [
    "StateStore",
    "StateRecord",
    "StateSnapshot",
    "LockInfo",
    "SqliteStateStore",
]
