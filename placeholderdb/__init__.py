"""
PlaceholderDB - 提供 REST 接口的内存多资源数据库

支持字段过滤、全文检索、排序、分页/切片以及一层关系嵌入，
资源集合包括 users、posts、comments、albums 和 photos。
"""

__version__ = "0.1.0"
__author__ = "PlaceholderDB Team"

from .core.database import PlaceholderDB
from .core.config import Config

__all__ = ["PlaceholderDB", "Config"]
