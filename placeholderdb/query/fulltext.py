"""
全文检索模块
"""

from typing import Any, Dict, List, Optional


class FullTextMatcher:
    """全文匹配器 - 在实体自身的字符串字段中查找子串（区分大小写）"""

    separator = " "

    def filter(self, entities: List[Dict[str, Any]], text: Optional[str]) -> List[Dict[str, Any]]:
        if not text:
            return list(entities)
        return [entity for entity in entities if self.matches(entity, text)]

    def matches(self, entity: Dict[str, Any], text: str) -> bool:
        return text in self.document(entity)

    def document(self, entity: Dict[str, Any]) -> str:
        """拼接实体的字符串字段"""
        return self.separator.join(value for value in entity.values() if isinstance(value, str))
