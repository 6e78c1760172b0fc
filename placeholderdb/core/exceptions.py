"""
异常定义模块
"""

from typing import Any


class PlaceholderDBError(Exception):
    """数据库异常基类"""


class NotFoundError(PlaceholderDBError):
    """实体不存在"""

    def __init__(self, collection: str, object_id: Any):
        self.collection = collection
        self.object_id = object_id
        super().__init__(f"{collection}/{object_id} 不存在")


class UnknownCollectionError(NotFoundError):
    """集合不存在"""

    def __init__(self, collection: str):
        self.collection = collection
        self.object_id = None
        PlaceholderDBError.__init__(self, f"集合不存在: {collection}")


class ConflictError(PlaceholderDBError):
    """ID 冲突，创建时该 ID 已存在"""

    def __init__(self, collection: str, object_id: Any):
        self.collection = collection
        self.object_id = object_id
        super().__init__(f"{collection}/{object_id} 已存在")
