"""
查询执行器模块 - 按固定流水线执行解析后的查询
"""

from typing import Dict, List, Any, Optional, Set
from loguru import logger

from ..storage.resource_store import ResourceStore
from .models import Query, QueryResult
from .predicates import PredicateEvaluator
from .fulltext import FullTextMatcher
from .sorter import Sorter
from .paginator import Paginator
from .relations import RelationEmbedder, Relation


class QueryEngine:
    """
    查询引擎 - 在单个集合上执行查询

    流水线顺序固定：
    加载集合 → 字段过滤 → 全文过滤 → 排序 → 分页或切片 → 嵌入关系。
    排序必须看到完整的过滤结果，嵌入只作用于最终窗口。
    """

    def __init__(self,
                 store: ResourceStore,
                 relations: Optional[List[Relation]] = None):
        """
        初始化查询引擎

        Args:
            store: 资源存储
            relations: 关系表，为 None 时使用默认关系
        """
        self.store = store
        self.predicates = PredicateEvaluator()
        self.fulltext = FullTextMatcher()
        self.sorter = Sorter()
        self.paginator = Paginator()
        self.embedder = RelationEmbedder(store, relations)

        logger.info("查询引擎初始化完成")

    def execute(self, collection: str, query: Query) -> QueryResult:
        """
        执行查询

        Args:
            collection: 集合名
            query: 解析后的查询对象

        Returns:
            查询结果（最终窗口和切片前总数）

        Raises:
            UnknownCollectionError: 集合不存在
        """
        entities = self.store.list(collection)
        known_fields = self._known_fields(entities)

        entities = self.predicates.filter(entities, query.predicates, known_fields)
        entities = self.fulltext.filter(entities, query.text)
        entities = self.sorter.sort(entities, query.sort)
        window, total = self.paginator.paginate(entities, query.pagination)
        window = self._attach_relations(collection, window, query)

        logger.debug(f"查询 {collection} 完成，总数 {total}，返回 {len(window)} 条结果")
        return QueryResult(
            items=window,
            total=total,
            links=self.paginator.page_links(query.pagination, total)
        )

    def execute_one(self, collection: str, object_id: Any, query: Optional[Query] = None) -> Dict[str, Any]:
        """
        按 ID 获取单个实体，只应用嵌入和展开

        Raises:
            NotFoundError: 实体不存在
        """
        entity = self.store.get(collection, object_id)
        if query is None:
            return entity
        return self._attach_relations(collection, [entity], query)[0]

    def _attach_relations(self, collection: str, entities: List[Dict[str, Any]], query: Query) -> List[Dict[str, Any]]:
        if query.embed:
            entities = self.embedder.embed(collection, entities, query.embed)
        if query.expand:
            entities = self.embedder.expand(collection, entities, query.expand)
        return entities

    @staticmethod
    def _known_fields(entities: List[Dict[str, Any]]) -> Set[str]:
        fields: Set[str] = set()
        for entity in entities:
            fields.update(entity)
        return fields
