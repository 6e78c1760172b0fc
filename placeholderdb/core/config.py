"""
配置管理模块
"""

import os
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from pathlib import Path
import yaml
from dotenv import load_dotenv

load_dotenv()


DEFAULT_COLLECTIONS = ["users", "posts", "comments", "albums", "photos"]


@dataclass
class StorageConfig:
    """存储配置"""
    # 资源集合
    collections: List[str] = field(default_factory=lambda: list(DEFAULT_COLLECTIONS))

    # 种子数据文件（JSON，格式为 {集合名: [实体, ...]}）
    seed_file: Optional[str] = None

    # 变更事件日志
    event_log_enabled: bool = False
    event_log_dir: str = "data/events"
    max_file_size: int = 100 * 1024 * 1024  # 100MB
    replay_on_start: bool = False


@dataclass
class QueryConfig:
    """查询配置"""
    # 分页默认值
    default_page: int = 1
    default_limit: int = 10


@dataclass
class APIConfig:
    """API 配置"""
    host: str = "localhost"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"

    # 过滤后总数的响应头
    total_count_header: str = "X-Total-Count"


class Config:
    """主配置类"""

    def __init__(self,
                 storage: StorageConfig = None,
                 query: QueryConfig = None,
                 api: APIConfig = None):
        """初始化配置"""
        self.storage = storage or StorageConfig()
        self.query = query or QueryConfig()
        self.api = api or APIConfig()

    @classmethod
    def from_file(cls, config_path: str) -> "Config":
        """从配置文件加载配置"""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"配置文件不存在: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "Config":
        """从字典创建配置"""
        storage_config = StorageConfig(**(config_data.get("storage") or {}))
        query_config = QueryConfig(**(config_data.get("query") or {}))
        api_config = APIConfig(**(config_data.get("api") or {}))

        return cls(
            storage=storage_config,
            query=query_config,
            api=api_config
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "storage": dict(self.storage.__dict__),
            "query": dict(self.query.__dict__),
            "api": dict(self.api.__dict__)
        }

    def save_to_file(self, config_path: str):
        """保存配置到文件"""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True)


# 环境变量配置
def load_config_from_env(config: Optional[Config] = None) -> Config:
    """从环境变量加载配置，覆盖传入配置中的对应字段"""
    config = config or Config()

    # 存储配置
    if os.getenv("PLACEHOLDERDB_COLLECTIONS"):
        config.storage.collections = [
            name.strip() for name in os.getenv("PLACEHOLDERDB_COLLECTIONS").split(",") if name.strip()
        ]
    if os.getenv("PLACEHOLDERDB_SEED_FILE"):
        config.storage.seed_file = os.getenv("PLACEHOLDERDB_SEED_FILE")
    if os.getenv("PLACEHOLDERDB_EVENT_LOG_ENABLED"):
        config.storage.event_log_enabled = os.getenv("PLACEHOLDERDB_EVENT_LOG_ENABLED").lower() == "true"
    if os.getenv("PLACEHOLDERDB_EVENT_LOG_DIR"):
        config.storage.event_log_dir = os.getenv("PLACEHOLDERDB_EVENT_LOG_DIR")
    if os.getenv("PLACEHOLDERDB_REPLAY_ON_START"):
        config.storage.replay_on_start = os.getenv("PLACEHOLDERDB_REPLAY_ON_START").lower() == "true"

    # 查询配置
    if os.getenv("PLACEHOLDERDB_DEFAULT_LIMIT"):
        config.query.default_limit = int(os.getenv("PLACEHOLDERDB_DEFAULT_LIMIT"))

    # API 配置
    if os.getenv("PLACEHOLDERDB_HOST"):
        config.api.host = os.getenv("PLACEHOLDERDB_HOST")
    if os.getenv("PLACEHOLDERDB_PORT"):
        config.api.port = int(os.getenv("PLACEHOLDERDB_PORT"))
    if os.getenv("PLACEHOLDERDB_LOG_LEVEL"):
        config.api.log_level = os.getenv("PLACEHOLDERDB_LOG_LEVEL")

    return config
