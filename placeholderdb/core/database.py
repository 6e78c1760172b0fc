"""
PlaceholderDB 主数据库类
"""

import json
import uuid
from typing import Dict, List, Any, Optional, Union, Iterable, Tuple
from pathlib import Path

import aiofiles
from loguru import logger

from .config import Config
from .event_store import EventStore, EVENT_CREATE, EVENT_UPDATE, EVENT_DELETE, utc_now
from .exceptions import PlaceholderDBError
from ..storage.resource_store import ResourceStore
from ..query.models import Query, QueryResult
from ..query.parser import QueryParser
from ..query.executor import QueryEngine
from ..query.relations import Relation


QueryLike = Union[Query, str, Iterable[Tuple[str, str]], None]


class PlaceholderDB:
    """
    内存多资源数据库主类

    实例在进程启动时创建、关闭时销毁，由调用方注入查询层和 HTTP 层。
    """

    def __init__(self, config: Optional[Config] = None, relations: Optional[List[Relation]] = None):
        """
        初始化数据库

        Args:
            config: 配置对象，如果为 None 则使用默认配置
            relations: 关系表，如果为 None 则使用默认关系
        """
        self.config = config or Config()
        self.db_id = str(uuid.uuid4())
        self.started_at = utc_now()
        self.initialized = False

        # 初始化核心组件
        self._init_components(relations)

        logger.info(f"PlaceholderDB 初始化完成，数据库 ID: {self.db_id}")

    def _init_components(self, relations: Optional[List[Relation]]):
        """初始化核心组件"""
        self.store = ResourceStore(self.config.storage.collections)

        self.event_store = None
        if self.config.storage.event_log_enabled:
            self.event_store = EventStore(self.config.storage)

        self.query_parser = QueryParser(self.config.query)
        self.query_engine = QueryEngine(self.store, relations)

        logger.info("核心组件初始化完成")

    async def initialize(self):
        """加载种子数据并重放变更日志"""
        if self.initialized:
            return

        if self.config.storage.seed_file:
            await self.load_seed(self.config.storage.seed_file)

        if self.event_store is not None and self.config.storage.replay_on_start:
            await self.replay()

        self.initialized = True
        logger.info(f"数据库已就绪，集合统计: {self.store.get_statistics()}")

    async def load_seed(self, seed_file: str):
        """
        从 JSON 文件加载种子数据

        Args:
            seed_file: 种子文件路径，内容为 {集合名: [实体, ...]}
        """
        seed_path = Path(seed_file)
        if not seed_path.exists():
            raise FileNotFoundError(f"种子文件不存在: {seed_path}")

        async with aiofiles.open(seed_path, 'r', encoding='utf-8') as f:
            seed_data = json.loads(await f.read())

        if not isinstance(seed_data, dict):
            raise ValueError(f"种子文件格式错误: {seed_path}")

        self.store.load(seed_data)
        logger.info(f"种子数据加载完成: {seed_path}")

    async def replay(self) -> int:
        """
        在当前数据上重放变更日志

        Returns:
            成功应用的事件数
        """
        applied = 0
        async for event in self.event_store.replay_events():
            collection = event.get("collection")
            object_id = event.get("object_id")
            data = event.get("data") or {}
            try:
                if event.get("event_type") == EVENT_CREATE:
                    self.store.create_unlocked(collection, data)
                elif event.get("event_type") == EVENT_UPDATE:
                    self.store.update_unlocked(collection, object_id, data)
                elif event.get("event_type") == EVENT_DELETE:
                    self.store.delete_unlocked(collection, object_id)
                else:
                    logger.warning(f"未知事件类型: {event.get('event_type')}")
                    continue
            except PlaceholderDBError as e:
                logger.warning(f"跳过无法应用的事件 {event.get('event_id')}: {e}")
                continue
            applied += 1

        logger.info(f"变更日志重放完成，应用事件数: {applied}")
        return applied

    def parse_query(self, query: QueryLike) -> Query:
        """把查询字符串或参数序列解析为查询对象"""
        if isinstance(query, Query):
            return query
        return self.query_parser.parse(query)

    async def _record(self, event_type: str, collection: str, object_id: Any, data: Optional[Dict[str, Any]]) -> bool:
        """记录变更事件，写入失败时变更已生效但不会被重放"""
        if self.event_store is None:
            return True
        recorded = await self.event_store.append_event(event_type, collection, object_id, data)
        if not recorded:
            logger.warning(f"变更未写入事件日志: {event_type} {collection}/{object_id}")
        return recorded

    async def create(self, collection: str, entity: Dict[str, Any]) -> Dict[str, Any]:
        """
        创建实体

        Args:
            collection: 集合名
            entity: 实体数据

        Returns:
            创建后的实体

        Raises:
            ConflictError: ID 已存在
            UnknownCollectionError: 集合不存在
        """
        try:
            async with self.store.lock(collection):
                created = self.store.create_unlocked(collection, entity)
                await self._record(EVENT_CREATE, collection, created["id"], created)
        except PlaceholderDBError as e:
            logger.warning(f"创建实体失败: {e}")
            raise

        logger.info(f"实体创建成功: {collection}/{created['id']}")
        return created

    async def get(self, collection: str, object_id: Any, query: QueryLike = None) -> Dict[str, Any]:
        """
        获取单个实体，可附带 `_embed` / `_expand`

        Raises:
            NotFoundError: 实体或集合不存在
        """
        parsed = self.parse_query(query) if query is not None else None
        return self.query_engine.execute_one(collection, object_id, parsed)

    async def list(self, collection: str) -> List[Dict[str, Any]]:
        """获取集合中的全部实体"""
        return self.store.list(collection)

    async def query(self, collection: str, query: QueryLike = None) -> QueryResult:
        """
        执行查询

        Args:
            collection: 集合名
            query: 查询字符串、参数序列或查询对象

        Returns:
            查询结果
        """
        parsed = self.parse_query(query)
        result = self.query_engine.execute(collection, parsed)

        logger.info(f"查询执行完成: {collection}，返回 {len(result.items)} / {result.total} 条结果")
        return result

    async def update(self, collection: str, object_id: Any, partial: Dict[str, Any]) -> Dict[str, Any]:
        """
        合并更新实体

        Raises:
            NotFoundError: 实体或集合不存在
        """
        try:
            async with self.store.lock(collection):
                updated = self.store.update_unlocked(collection, object_id, partial)
                changes = {key: value for key, value in partial.items() if key != "id"}
                await self._record(EVENT_UPDATE, collection, updated["id"], changes)
        except PlaceholderDBError as e:
            logger.warning(f"更新实体失败: {e}")
            raise

        logger.info(f"实体更新成功: {collection}/{updated['id']}")
        return updated

    async def delete(self, collection: str, object_id: Any) -> Dict[str, Any]:
        """
        删除实体

        Returns:
            被删除的实体

        Raises:
            NotFoundError: 实体或集合不存在
        """
        try:
            async with self.store.lock(collection):
                deleted = self.store.delete_unlocked(collection, object_id)
                await self._record(EVENT_DELETE, collection, deleted["id"], None)
        except PlaceholderDBError as e:
            logger.warning(f"删除实体失败: {e}")
            raise

        logger.info(f"实体删除成功: {collection}/{deleted['id']}")
        return deleted

    async def dump(self) -> Dict[str, List[Dict[str, Any]]]:
        """导出全部集合"""
        return self.store.dump()

    async def get_statistics(self) -> Dict[str, Any]:
        """
        获取数据库统计信息

        Returns:
            统计信息字典
        """
        stats = {
            "db_id": self.db_id,
            "collections": self.store.get_statistics(),
            "total_objects": sum(self.store.get_statistics().values()),
            "started_at": self.started_at,
        }
        if self.event_store is not None:
            stats["events"] = await self.event_store.get_statistics()

        return stats

    async def close(self):
        """关闭数据库"""
        if self.event_store is not None:
            await self.event_store.close()

        self.initialized = False
        logger.info("数据库已关闭")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
