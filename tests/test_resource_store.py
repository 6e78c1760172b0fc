"""
资源存储测试
"""

import asyncio

import pytest

from placeholderdb.storage.resource_store import ResourceStore
from placeholderdb.core.exceptions import NotFoundError, ConflictError, UnknownCollectionError


@pytest.fixture
def store(dataset):
    store = ResourceStore(["users", "posts", "comments", "albums", "photos"])
    store.load(dataset)
    return store


class TestResourceStore:
    """ResourceStore 测试类"""

    @pytest.mark.asyncio
    async def test_create_then_get_round_trip(self, store):
        """创建后按 ID 获取，字段完全一致"""
        post = {"id": 50000, "title": "title", "body": "body", "userId": 1}

        created = await store.create("posts", post)

        assert created == post
        assert store.get("posts", 50000) == post

    @pytest.mark.asyncio
    async def test_create_existing_id_is_rejected_without_mutation(self, store):
        """重复 ID 创建失败且不修改存储"""
        original = store.get("posts", 1)
        count = store.count("posts")

        with pytest.raises(ConflictError):
            await store.create("posts", {"id": 1, "title": "other"})

        assert store.count("posts") == count
        assert store.get("posts", 1) == original

    @pytest.mark.asyncio
    async def test_list_length_follows_create_and_delete(self, store):
        """创建后数量加一，删除后数量减一"""
        before = len(store.list("posts"))

        await store.create("posts", {"id": 500, "title": "new"})
        assert len(store.list("posts")) == before + 1

        await store.delete("posts", 500)
        assert len(store.list("posts")) == before

        with pytest.raises(NotFoundError):
            store.get("posts", 500)

    @pytest.mark.asyncio
    async def test_update_merges_supplied_fields_only(self, store):
        """更新只修改提供的字段，id 不可修改"""
        original = store.get("posts", 18)

        updated = await store.update("posts", 18, {"id": 999, "title": "updated title"})

        assert updated["id"] == 18
        assert updated["title"] == "updated title"
        assert updated["body"] == original["body"]
        assert updated["userId"] == original["userId"]
        with pytest.raises(NotFoundError):
            store.get("posts", 999)

    @pytest.mark.asyncio
    async def test_update_and_delete_missing_entity(self, store):
        """更新或删除不存在的实体"""
        with pytest.raises(NotFoundError):
            await store.update("posts", 180000, {"title": "x"})
        with pytest.raises(NotFoundError):
            await store.delete("posts", 12345)

    @pytest.mark.asyncio
    async def test_delete_preserves_order(self, store):
        """删除后其余实体保持原有顺序"""
        await store.delete("posts", 2)

        ids = [post["id"] for post in store.list("posts")]
        assert ids[:3] == [1, 3, 4]

    @pytest.mark.asyncio
    async def test_create_assigns_next_id(self, store):
        """缺少 id 时分配下一个数值 ID"""
        created = await store.create("posts", {"title": "no id"})
        assert created["id"] == 101

        empty = ResourceStore(["todos"])
        created = await empty.create("todos", {"title": "first"})
        assert created["id"] == 1

    def test_get_accepts_text_id(self, store):
        """路径中的文本 ID 可以找到数值 ID 的实体"""
        assert store.get("posts", "89")["id"] == 89

    def test_unknown_collection(self, store):
        """未知集合"""
        with pytest.raises(UnknownCollectionError):
            store.list("user")
        with pytest.raises(NotFoundError):
            store.get("user", 1)

    def test_returned_entities_are_copies(self, store):
        """修改返回的实体不会影响存储"""
        post = store.get("posts", 1)
        post["title"] = "changed"
        store.list("posts")[0]["title"] = "changed"

        assert store.get("posts", 1)["title"] != "changed"

    def test_empty_collection_is_never_absent(self):
        """集合可以为空但总是存在"""
        store = ResourceStore(["users", "posts"])
        assert store.list("posts") == []
        assert store.get_statistics() == {"users": 0, "posts": 0}

    def test_load_skips_invalid_entities(self):
        """加载时跳过缺少 id 或 ID 重复的实体"""
        store = ResourceStore(["posts"])
        store.load({"posts": [{"id": 1}, {"title": "no id"}, {"id": 1, "title": "dup"}], "todos": [{"id": 1}]})

        assert store.list("posts") == [{"id": 1}]
        assert store.has_collection("todos")

    @pytest.mark.asyncio
    async def test_concurrent_creates_with_same_id(self, store):
        """并发创建相同 ID，只有一个成功"""
        results = await asyncio.gather(
            store.create("comments", {"id": 5001, "body": "a"}),
            store.create("comments", {"id": 5001, "body": "b"}),
            return_exceptions=True,
        )

        successes = [result for result in results if isinstance(result, dict)]
        conflicts = [result for result in results if isinstance(result, ConflictError)]
        assert len(successes) == 1
        assert len(conflicts) == 1
        assert store.get("comments", 5001) == successes[0]
