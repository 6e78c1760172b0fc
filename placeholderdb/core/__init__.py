"""
核心模块 - 数据库的主要组件
"""
from .config import Config
from .database import PlaceholderDB
from .event_store import EventStore
from .exceptions import PlaceholderDBError, NotFoundError, UnknownCollectionError, ConflictError

__all__ = [
    "PlaceholderDB", "Config", "EventStore",
    "PlaceholderDBError", "NotFoundError", "UnknownCollectionError", "ConflictError",
]
