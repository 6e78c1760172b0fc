"""
PlaceholderDB 基本使用示例
"""

import asyncio

from placeholderdb.core.database import PlaceholderDB
from placeholderdb.core.config import Config
from placeholderdb.core.exceptions import ConflictError, NotFoundError


async def basic_example():
    """基本使用示例"""
    print("=== PlaceholderDB 基本使用示例 ===\n")

    # 初始化数据库
    config = Config()
    config.storage.seed_file = "data/db.json"
    db = PlaceholderDB(config)
    await db.initialize()

    try:
        # 1. 创建文章
        print("1. 创建文章...")
        post = await db.create("posts", {
            "userId": 1,
            "title": "lorem ipsum dolor",
            "body": "这是一篇新的文章"
        })
        print(f"文章创建成功，ID: {post['id']}")

        # 2. 重复 ID 创建
        print("\n2. 使用已存在的 ID 创建文章...")
        try:
            await db.create("posts", {"id": post["id"], "title": "duplicate"})
        except ConflictError as e:
            print(f"创建失败: {e}")

        # 3. 过滤、排序和分页
        print("\n3. 查询 userId=1 的文章，按标题倒序，每页 2 条...")
        result = await db.query("posts", "userId=1&_sort=title&_order=desc&_page=1&_limit=2")
        print(f"总数: {result.total}")
        for item in result.items:
            print(f"  {item['id']}: {item['title']}")

        # 4. 全文检索
        print("\n4. 全文检索 lorem...")
        result = await db.query("posts", "q=lorem")
        print(f"匹配数量: {result.total}")

        # 5. 关系嵌入
        print("\n5. 获取文章 1 及其评论...")
        first = await db.get("posts", 1, "_embed=comments")
        print(f"评论数量: {len(first['comments'])}")

        # 6. 更新和删除
        print("\n6. 更新并删除新文章...")
        updated = await db.update("posts", post["id"], {"title": "updated title"})
        print(f"更新后标题: {updated['title']}")
        await db.delete("posts", post["id"])
        try:
            await db.get("posts", post["id"])
        except NotFoundError as e:
            print(f"删除后获取: {e}")

        # 7. 统计信息
        print("\n7. 获取数据库统计信息...")
        stats = await db.get_statistics()
        for name, count in stats["collections"].items():
            print(f"  - {name}: {count}")

    finally:
        # 关闭数据库
        await db.close()


if __name__ == "__main__":
    # 运行示例
    asyncio.run(basic_example())

    print("\n=== 示例执行完成 ===")
