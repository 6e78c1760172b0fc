"""
事件存储模块 - 记录集合变更的追加式日志
"""

import json
import uuid
from typing import Dict, List, Any, Optional, AsyncGenerator
from datetime import datetime, timezone
from pathlib import Path
import aiofiles
from loguru import logger

from .config import StorageConfig


EVENT_CREATE = "CREATE"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventStore:
    """
    事件存储引擎 - 实现 Append-only 变更日志

    每行一个 JSON 事件，文件超过大小上限后轮转。
    """

    def __init__(self, config: StorageConfig):
        """
        初始化事件存储

        Args:
            config: 存储配置
        """
        self.config = config
        self.event_log_dir = Path(config.event_log_dir)
        self.event_log_dir.mkdir(parents=True, exist_ok=True)

        # 当前事件日志文件
        self.current_log_path = None
        self.event_count = 0
        self._file_seq = 0

        # 初始化当前日志文件
        self._init_current_log_file()

        logger.info(f"事件存储初始化完成，日志目录: {self.event_log_dir}")

    def _init_current_log_file(self):
        """初始化当前日志文件"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"events_{timestamp}_{self._file_seq:04d}.log"
        self._file_seq += 1
        self.current_log_path = self.event_log_dir / filename

        # 创建日志文件
        self.current_log_path.touch(exist_ok=True)
        logger.info(f"创建事件日志文件: {self.current_log_path}")

    async def append_event(self,
                           event_type: str,
                           collection: str,
                           object_id: Any,
                           data: Optional[Dict[str, Any]] = None) -> bool:
        """
        追加事件到日志

        Args:
            event_type: 事件类型（CREATE / UPDATE / DELETE）
            collection: 集合名
            object_id: 实体 ID
            data: 事件数据（创建时为完整实体，更新时为变更字段）

        Returns:
            是否追加成功
        """
        event = {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "collection": collection,
            "object_id": object_id,
            "timestamp": utc_now(),
            "data": data or {},
        }

        try:
            # 序列化事件
            event_line = json.dumps(event, ensure_ascii=False) + "\n"

            # 写入日志文件
            async with aiofiles.open(self.current_log_path, mode='a', encoding='utf-8') as f:
                await f.write(event_line)

            self.event_count += 1

            # 检查是否需要轮转日志文件
            self._check_log_rotation()

            logger.debug(f"事件已追加: {event['event_id']}")
            return True

        except (OSError, TypeError, ValueError) as e:
            logger.error(f"追加事件失败: {e}")
            return False

    def _check_log_rotation(self):
        """检查是否需要轮转日志文件"""
        if self.current_log_path.exists():
            file_size = self.current_log_path.stat().st_size

            # 如果文件超过最大大小，创建新文件
            if file_size > self.config.max_file_size:
                self._init_current_log_file()
                logger.info("事件日志文件已轮转")

    async def get_events(self,
                         event_type: Optional[str] = None,
                         collection: Optional[str] = None,
                         object_id: Optional[Any] = None,
                         limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        获取事件列表

        Args:
            event_type: 事件类型
            collection: 集合名
            object_id: 实体 ID
            limit: 限制数量

        Returns:
            事件列表
        """
        events = []

        async for event in self._scan_events():
            if not self._filter_event(event, event_type, collection, object_id):
                continue

            events.append(event)

            if limit and len(events) >= limit:
                break

        logger.debug(f"获取到 {len(events)} 个事件")
        return events

    async def _scan_events(self) -> AsyncGenerator[Dict[str, Any], None]:
        """扫描所有事件"""
        # 获取所有日志文件，按文件名（时间和序号）排序
        log_files = sorted(self.event_log_dir.glob("events_*.log"))

        for log_file in log_files:
            async with aiofiles.open(log_file, mode='r', encoding='utf-8') as f:
                async for line in f:
                    line = line.strip()
                    if line:
                        try:
                            yield json.loads(line)
                        except json.JSONDecodeError as e:
                            logger.warning(f"解析事件失败: {e}")
                            continue

    @staticmethod
    def _filter_event(event: Dict[str, Any],
                      event_type: Optional[str],
                      collection: Optional[str],
                      object_id: Optional[Any]) -> bool:
        """过滤事件"""
        # 事件类型过滤
        if event_type and event.get("event_type") != event_type:
            return False

        # 集合过滤
        if collection and event.get("collection") != collection:
            return False

        # 实体 ID 过滤
        if object_id is not None and str(event.get("object_id")) != str(object_id):
            return False

        return True

    async def get_event_count(self) -> int:
        """获取事件总数"""
        count = 0
        async for _ in self._scan_events():
            count += 1
        return count

    async def replay_events(self) -> AsyncGenerator[Dict[str, Any], None]:
        """
        按写入顺序重放事件

        Yields:
            事件数据
        """
        async for event in self._scan_events():
            yield event

    async def get_statistics(self) -> Dict[str, Any]:
        """获取事件存储统计信息"""
        return {
            "event_count": await self.get_event_count(),
            "log_files": len(list(self.event_log_dir.glob("events_*.log"))),
            "current_log_file": str(self.current_log_path),
            "log_directory": str(self.event_log_dir),
            "max_file_size": self.config.max_file_size
        }

    async def close(self):
        """关闭事件存储"""
        logger.info(f"事件存储已关闭，本次写入事件数: {self.event_count}")
