"""
查询模型 - 解析后的查询对象
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


# 过滤操作符
OP_EQ = "eq"
OP_NE = "ne"
OP_LTE = "lte"
OP_GTE = "gte"
OP_LIKE = "like"

OPERATOR_SUFFIXES = {
    "_lte": OP_LTE,
    "_gte": OP_GTE,
    "_ne": OP_NE,
    "_like": OP_LIKE,
}

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class Predicate:
    """单个字段过滤条件"""
    field: str
    operator: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class SortKey:
    """排序键"""
    field: str
    direction: str = ASC

    @property
    def descending(self) -> bool:
        return self.direction == DESC


@dataclass(frozen=True)
class PagePagination:
    """页码分页"""
    page: int
    limit: int


@dataclass(frozen=True)
class SlicePagination:
    """区间切片 [start, end)，start 可以为负数"""
    start: int
    end: int


@dataclass(frozen=True)
class NoPagination:
    """不分页"""


PaginationMode = Union[PagePagination, SlicePagination, NoPagination]


@dataclass
class Query:
    """解析后的查询，所有字段都已填充默认值"""
    predicates: List[Predicate] = field(default_factory=list)
    text: Optional[str] = None
    sort: List[SortKey] = field(default_factory=list)
    pagination: PaginationMode = field(default_factory=NoPagination)
    embed: List[str] = field(default_factory=list)
    expand: List[str] = field(default_factory=list)


@dataclass
class QueryResult:
    """查询结果：最终窗口内的实体和切片前的总数"""
    items: List[Dict[str, Any]]
    total: int
    links: Dict[str, int] = field(default_factory=dict)
