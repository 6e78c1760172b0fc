"""
关系模块 - 父子集合之间的声明式关系和嵌入
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from ..core.exceptions import NotFoundError
from ..core.values import to_text
from ..storage.resource_store import ResourceStore


@dataclass(frozen=True)
class Relation:
    """
    父子关系：child[foreign_key] == parent["id"]

    `_embed=<embed_name>` 把子实体列表挂到父实体上，
    `_expand=<expand_name>` 把父实体挂到子实体上。
    """
    parent: str
    child: str
    foreign_key: str

    @property
    def embed_name(self) -> str:
        return self.child

    @property
    def expand_name(self) -> str:
        return self.parent[:-1] if self.parent.endswith("s") else self.parent


DEFAULT_RELATIONS = [
    Relation("posts", "comments", "postId"),
    Relation("albums", "photos", "albumId"),
    Relation("users", "posts", "userId"),
    Relation("users", "albums", "userId"),
]


class RelationEmbedder:
    """
    关系嵌入器

    嵌入永远不会失败：未知的关系名仍然会以原名挂上空值。
    """

    def __init__(self, store: ResourceStore, relations: Optional[Iterable[Relation]] = None):
        self.store = store
        self.relations = list(DEFAULT_RELATIONS if relations is None else relations)

    def find_embed(self, collection: str, name: str) -> Optional[Relation]:
        for relation in self.relations:
            if relation.parent == collection and relation.embed_name == name:
                return relation
        return None

    def find_expand(self, collection: str, name: str) -> Optional[Relation]:
        for relation in self.relations:
            if relation.child == collection and relation.expand_name == name:
                return relation
        return None

    def embed(self,
              collection: str,
              entities: List[Dict[str, Any]],
              names: Iterable[str]) -> List[Dict[str, Any]]:
        """
        嵌入子实体

        Args:
            collection: 父集合名
            entities: 父实体（不会被修改）
            names: 关系名列表

        Returns:
            挂上子实体列表的父实体副本
        """
        result = [dict(entity) for entity in entities]

        for name in names:
            relation = self.find_embed(collection, name)
            if relation is None or not self.store.has_collection(relation.child):
                logger.debug(f"未知嵌入关系: {collection}.{name}")
                for entity in result:
                    entity[name] = []
                continue

            children_by_parent: Dict[str, List[Dict[str, Any]]] = {}
            for child in self.store.list(relation.child):
                if relation.foreign_key in child:
                    children_by_parent.setdefault(to_text(child[relation.foreign_key]), []).append(child)

            for entity in result:
                entity[name] = list(children_by_parent.get(to_text(entity.get("id")), []))

        return result

    def expand(self,
               collection: str,
               entities: List[Dict[str, Any]],
               names: Iterable[str]) -> List[Dict[str, Any]]:
        """
        展开父实体

        Returns:
            挂上父实体（不存在时为 None）的子实体副本
        """
        result = [dict(entity) for entity in entities]

        for name in names:
            relation = self.find_expand(collection, name)
            for entity in result:
                entity[name] = self._lookup_parent(relation, entity)

        return result

    def _lookup_parent(self, relation: Optional[Relation], entity: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if relation is None or relation.foreign_key not in entity:
            return None
        try:
            return self.store.get(relation.parent, entity[relation.foreign_key])
        except NotFoundError:
            return None
