"""
测试公共夹具 - 生成与线上示例数据规模一致的测试数据集
"""

import json

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from placeholderdb.core.config import Config
from placeholderdb.core.database import PlaceholderDB
from placeholderdb.api.main import create_app


TITLE_WORDS = [
    "sunt aut facere",
    "qui est esse",
    "ea molestias quasi",
    "eum et est occaecati",
    "nesciunt quas odio",
    "magni dolor eum",
    "magnam facilis autem",
    "dolor dolore est",
    "nesciunt iure omnis",
    "optio molestias id",
]


def build_dataset():
    """
    构造测试数据集

    - users: 10 个
    - posts: 100 个，userId 为 1..10（每个用户 10 篇），标题以 TITLE_WORDS 循环，
      id 为 5 的倍数的正文以 "lorem ipsum" 开头
    - comments: 500 个，每篇 post 5 条
    - albums: 20 个，photos: 40 个
    """
    users = [
        {"id": i, "name": f"User {i}", "username": f"user{i}", "email": f"user{i}@example.com"}
        for i in range(1, 11)
    ]
    posts = []
    for i in range(1, 101):
        body = f"quia et suscipit recusandae {i}"
        if i % 5 == 0:
            body = f"lorem ipsum {body}"
        posts.append({
            "userId": (i - 1) // 10 + 1,
            "id": i,
            "title": f"{TITLE_WORDS[(i - 1) % len(TITLE_WORDS)]} {i}",
            "body": body,
        })
    comments = [
        {
            "postId": (i - 1) // 5 + 1,
            "id": i,
            "name": f"comment {i}",
            "email": f"c{i}@example.com",
            "body": f"comment body {i}",
        }
        for i in range(1, 501)
    ]
    albums = [
        {"userId": (i - 1) // 2 + 1, "id": i, "title": f"album {i}"}
        for i in range(1, 21)
    ]
    photos = [
        {
            "albumId": (i - 1) // 2 + 1,
            "id": i,
            "title": f"photo {i}",
            "url": f"https://via.placeholder.com/600/{i}",
        }
        for i in range(1, 41)
    ]
    return {"users": users, "posts": posts, "comments": comments, "albums": albums, "photos": photos}


@pytest.fixture
def dataset():
    """测试数据集"""
    return build_dataset()


@pytest.fixture
def seed_file(tmp_path, dataset):
    """写入临时种子文件"""
    path = tmp_path / "db.json"
    path.write_text(json.dumps(dataset), encoding="utf-8")
    return path


@pytest.fixture
def config(seed_file):
    """使用临时种子文件的配置"""
    config = Config()
    config.storage.seed_file = str(seed_file)
    return config


@pytest_asyncio.fixture
async def db(config):
    """已加载测试数据的数据库实例"""
    database = PlaceholderDB(config)
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def client(config):
    """HTTP 测试客户端，每个测试使用独立的应用和数据库"""
    app = create_app(config)
    with TestClient(app) as test_client:
        yield test_client
