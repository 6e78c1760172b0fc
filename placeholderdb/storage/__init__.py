"""
存储层模块 - 内存资源集合
"""

from .resource_store import ResourceStore

__all__ = ["ResourceStore"]
