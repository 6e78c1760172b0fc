"""
PlaceholderDB 测试文件
"""

import asyncio
import json

import pytest
import pytest_asyncio
from loguru import logger

from placeholderdb.core.database import PlaceholderDB
from placeholderdb.core.config import Config
from placeholderdb.core.exceptions import NotFoundError, ConflictError
from placeholderdb.query.models import Query, SortKey


@pytest.fixture
def logged_config(config, tmp_path):
    """开启变更日志的配置"""
    config.storage.event_log_enabled = True
    config.storage.event_log_dir = str(tmp_path / "events")
    config.storage.replay_on_start = True
    return config


@pytest_asyncio.fixture
async def logged_db(logged_config):
    database = PlaceholderDB(logged_config)
    await database.initialize()
    yield database
    await database.close()


class TestPlaceholderDB:
    """PlaceholderDB 测试类"""

    @pytest.mark.asyncio
    async def test_seed_is_loaded(self, db, dataset):
        """初始化时加载种子数据"""
        stats = await db.get_statistics()

        assert stats["collections"]["posts"] == 100
        assert stats["collections"]["comments"] == 500
        assert stats["total_objects"] == sum(len(items) for items in dataset.values())
        assert await db.list("users") == dataset["users"]

    @pytest.mark.asyncio
    async def test_missing_seed_file(self, tmp_path):
        """种子文件不存在"""
        config = Config()
        config.storage.seed_file = str(tmp_path / "missing.json")
        database = PlaceholderDB(config)

        with pytest.raises(FileNotFoundError):
            await database.initialize()

    @pytest.mark.asyncio
    async def test_crud(self, db):
        """创建、读取、更新、删除"""
        post = {"id": 50000, "title": "title", "body": "body", "userId": 1}

        created = await db.create("posts", post)
        assert created == post
        assert await db.get("posts", 50000) == post

        with pytest.raises(ConflictError):
            await db.create("posts", post)

        updated = await db.update("posts", "50000", {"title": "updated title"})
        assert updated == {**post, "title": "updated title"}

        deleted = await db.delete("posts", 50000)
        assert deleted["title"] == "updated title"
        with pytest.raises(NotFoundError):
            await db.get("posts", 50000)

    @pytest.mark.asyncio
    async def test_query_accepts_string_and_query_object(self, db):
        """查询接受查询字符串或查询对象"""
        by_string = await db.query("posts", "_sort=id&_order=desc&_limit=2")
        by_object = await db.query("posts", Query(sort=[SortKey("id", "desc")]))

        assert [post["id"] for post in by_string.items] == [100, 99]
        assert by_string.total == 100
        assert by_object.items[0]["id"] == 100

    @pytest.mark.asyncio
    async def test_get_with_embed(self, db):
        """单个实体也可以嵌入关系"""
        album = await db.get("albums", 1, "_embed=photos&_expand=user")

        assert [photo["id"] for photo in album["photos"]] == [1, 2]
        assert album["user"]["id"] == 1

    @pytest.mark.asyncio
    async def test_mutations_are_logged(self, logged_db):
        """变更写入事件日志"""
        await logged_db.create("posts", {"id": 500, "title": "new"})
        await logged_db.update("posts", 1, {"title": "changed"})
        await logged_db.delete("posts", 2)

        events = await logged_db.event_store.get_events()
        assert [event["event_type"] for event in events] == ["CREATE", "UPDATE", "DELETE"]
        assert events[1]["data"] == {"title": "changed"}

        deletes = await logged_db.event_store.get_events(event_type="DELETE", collection="posts")
        assert [event["object_id"] for event in deletes] == [2]

        by_id = await logged_db.event_store.get_events(object_id="1")
        assert [event["event_type"] for event in by_id] == ["UPDATE"]
        assert len(await logged_db.event_store.get_events(limit=2)) == 2

        stats = await logged_db.get_statistics()
        assert stats["events"]["event_count"] == 3

    @pytest.mark.asyncio
    async def test_failed_mutation_is_not_logged(self, logged_db):
        """失败的变更不写日志"""
        with pytest.raises(ConflictError):
            await logged_db.create("posts", {"id": 1})
        with pytest.raises(NotFoundError):
            await logged_db.delete("posts", 12345)

        assert await logged_db.event_store.get_event_count() == 0

    @pytest.mark.asyncio
    async def test_event_write_failure_is_reported(self, logged_db, monkeypatch):
        """事件日志写入失败时变更仍然生效，并记录警告"""
        async def failing_append(*args, **kwargs):
            return False

        monkeypatch.setattr(logged_db.event_store, "append_event", failing_append)
        warnings = []
        handler_id = logger.add(lambda message: warnings.append(str(message)), level="WARNING")
        try:
            created = await logged_db.create("posts", {"id": 500, "title": "new"})
        finally:
            logger.remove(handler_id)

        assert (await logged_db.get("posts", 500)) == created
        assert any("posts/500" in message for message in warnings)
        assert await logged_db.event_store.get_event_count() == 0

    @pytest.mark.asyncio
    async def test_replay_restores_state(self, logged_config):
        """重启时在种子数据上重放事件日志"""
        async with PlaceholderDB(logged_config) as first:
            await first.create("posts", {"id": 500, "title": "new"})
            await first.update("posts", 1, {"title": "changed"})
            await first.delete("posts", 2)

        async with PlaceholderDB(logged_config) as second:
            assert (await second.get("posts", 500))["title"] == "new"
            assert (await second.get("posts", 1))["title"] == "changed"
            with pytest.raises(NotFoundError):
                await second.get("posts", 2)
            assert len(await second.list("posts")) == 100

    @pytest.mark.asyncio
    async def test_concurrent_operations(self, db):
        """并发创建相同 ID 时只有一个成功"""
        results = await asyncio.gather(
            *[db.create("users", {"id": 15, "name": f"user {i}"}) for i in range(5)],
            return_exceptions=True
        )

        assert sum(1 for result in results if isinstance(result, dict)) == 1
        assert sum(1 for result in results if isinstance(result, ConflictError)) == 4
        assert len(await db.list("users")) == 11

    @pytest.mark.asyncio
    async def test_dump(self, db, dataset):
        """导出全部集合"""
        dumped = await db.dump()

        assert json.loads(json.dumps(dumped)) == dataset
