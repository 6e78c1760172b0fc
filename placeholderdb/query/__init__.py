"""
查询层模块 - 查询解析和执行
"""

from .models import Query, QueryResult
from .parser import QueryParser
from .executor import QueryEngine
from .relations import Relation, DEFAULT_RELATIONS

__all__ = ["Query", "QueryResult", "QueryParser", "QueryEngine", "Relation", "DEFAULT_RELATIONS"]
