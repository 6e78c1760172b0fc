"""
资源存储模块 - 按集合管理内存中的实体
"""

import asyncio
import copy
from typing import Dict, List, Any, Iterable

from loguru import logger

from ..core.exceptions import NotFoundError, UnknownCollectionError, ConflictError
from ..core.values import to_text, to_number


Entity = Dict[str, Any]


class ResourceStore:
    """
    资源存储引擎 - 每个集合是一个按插入顺序排列、以 ID 为键的实体表

    读操作不加锁；同一集合上的写操作通过集合锁串行执行，
    保证创建时的存在性检查和插入是原子的。
    """

    def __init__(self, collections: Iterable[str]):
        """
        初始化资源存储

        Args:
            collections: 集合名称列表
        """
        # 集合名 -> {ID 文本: 实体}，字典保持插入顺序
        self._collections: Dict[str, Dict[str, Entity]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

        for name in collections:
            self._add_collection(name)

        logger.info(f"资源存储初始化完成，集合: {', '.join(self._collections)}")

    def _add_collection(self, name: str):
        """添加空集合"""
        if name not in self._collections:
            self._collections[name] = {}
            self._locks[name] = asyncio.Lock()

    def _get_collection(self, collection: str) -> Dict[str, Entity]:
        """获取集合，不存在时抛出 UnknownCollectionError"""
        try:
            return self._collections[collection]
        except KeyError:
            raise UnknownCollectionError(collection) from None

    @property
    def collections(self) -> List[str]:
        """所有集合名称"""
        return list(self._collections)

    def has_collection(self, collection: str) -> bool:
        """判断集合是否存在"""
        return collection in self._collections

    def lock(self, collection: str) -> asyncio.Lock:
        """获取集合的写锁"""
        self._get_collection(collection)
        return self._locks[collection]

    def load(self, data: Dict[str, List[Entity]]):
        """
        加载种子数据，替换已有集合内容

        Args:
            data: {集合名: [实体, ...]}
        """
        for name, entities in data.items():
            if not isinstance(entities, list):
                logger.warning(f"忽略非列表种子数据: {name}")
                continue

            self._add_collection(name)
            table: Dict[str, Entity] = {}
            for entity in entities:
                if not isinstance(entity, dict) or "id" not in entity:
                    logger.warning(f"忽略缺少 id 的种子实体: {name}")
                    continue
                key = to_text(entity["id"])
                if key in table:
                    logger.warning(f"忽略重复 ID 的种子实体: {name}/{key}")
                    continue
                table[key] = copy.deepcopy(entity)
            self._collections[name] = table

            logger.info(f"加载集合 {name}，实体数: {len(table)}")

    def dump(self) -> Dict[str, List[Entity]]:
        """导出全部集合"""
        return {name: self.list(name) for name in self._collections}

    def count(self, collection: str) -> int:
        """集合中的实体数量"""
        return len(self._get_collection(collection))

    def list(self, collection: str) -> List[Entity]:
        """
        获取集合中的全部实体

        Returns:
            按插入顺序排列的实体副本
        """
        table = self._get_collection(collection)
        return [copy.deepcopy(entity) for entity in table.values()]

    def get(self, collection: str, object_id: Any) -> Entity:
        """
        按 ID 获取实体

        Raises:
            NotFoundError: 实体不存在
        """
        table = self._get_collection(collection)
        entity = table.get(to_text(object_id))
        if entity is None:
            raise NotFoundError(collection, object_id)
        return copy.deepcopy(entity)

    def next_id(self, collection: str) -> int:
        """下一个可用的数值 ID"""
        table = self._get_collection(collection)
        numbers = [to_number(entity.get("id")) for entity in table.values()]
        numbers = [int(number) for number in numbers if number is not None]
        return max(numbers, default=0) + 1

    async def create(self, collection: str, entity: Entity) -> Entity:
        """
        创建实体

        Args:
            collection: 集合名
            entity: 实体数据，缺少 id 时自动分配

        Returns:
            创建后的实体

        Raises:
            ConflictError: ID 已存在，存储不做任何修改
        """
        async with self.lock(collection):
            return self.create_unlocked(collection, entity)

    def create_unlocked(self, collection: str, entity: Entity) -> Entity:
        """在已持有集合锁时创建实体"""
        table = self._get_collection(collection)
        entity = copy.deepcopy(entity)
        if entity.get("id") is None:
            entity["id"] = self.next_id(collection)

        key = to_text(entity["id"])
        if key in table:
            raise ConflictError(collection, entity["id"])

        table[key] = entity
        logger.debug(f"实体已创建: {collection}/{key}")
        return copy.deepcopy(entity)

    async def update(self, collection: str, object_id: Any, partial: Entity) -> Entity:
        """
        合并更新实体，id 字段不可修改

        Raises:
            NotFoundError: 实体不存在
        """
        async with self.lock(collection):
            return self.update_unlocked(collection, object_id, partial)

    def update_unlocked(self, collection: str, object_id: Any, partial: Entity) -> Entity:
        """在已持有集合锁时更新实体"""
        table = self._get_collection(collection)
        key = to_text(object_id)
        entity = table.get(key)
        if entity is None:
            raise NotFoundError(collection, object_id)

        for field_name, value in partial.items():
            if field_name == "id":
                continue
            entity[field_name] = copy.deepcopy(value)

        logger.debug(f"实体已更新: {collection}/{key}")
        return copy.deepcopy(entity)

    async def delete(self, collection: str, object_id: Any) -> Entity:
        """
        删除实体，其余实体保持原有顺序

        Returns:
            被删除的实体

        Raises:
            NotFoundError: 实体不存在
        """
        async with self.lock(collection):
            return self.delete_unlocked(collection, object_id)

    def delete_unlocked(self, collection: str, object_id: Any) -> Entity:
        """在已持有集合锁时删除实体"""
        table = self._get_collection(collection)
        key = to_text(object_id)
        if key not in table:
            raise NotFoundError(collection, object_id)

        entity = table.pop(key)
        logger.debug(f"实体已删除: {collection}/{key}")
        return entity

    def get_statistics(self) -> Dict[str, int]:
        """各集合的实体数量"""
        return {name: len(table) for name, table in self._collections.items()}
