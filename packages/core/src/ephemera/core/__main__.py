"""CLI 入口模块 -- python -m ephemera.core <command>

支持的命令：
  purge-expired  立即删除所有已过期消息（不发送删除广播）
  stats          输出当前消息数量（未过期 / 已过期待清理）

运维命令直接连接数据库文件，可在网关运行期间执行（WAL 模式）。
"""

import asyncio
import sys

from .config import get_db_path

_COMMANDS = {
    "purge-expired": "立即删除所有已过期消息",
    "stats": "输出当前消息数量",
}


def _usage() -> None:
    print("用法: python -m ephemera.core <command>")
    print("命令:")
    for name, help_text in _COMMANDS.items():
        print(f"  {name:<14} {help_text}")


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        _usage()
        sys.exit(1)

    command = sys.argv[1]

    if command == "purge-expired":
        asyncio.run(purge_expired())
    elif command == "stats":
        asyncio.run(show_stats())
    else:
        print(f"未知命令: {command}")
        print(f"可用命令: {', '.join(_COMMANDS)}")
        sys.exit(1)


async def purge_expired() -> int:
    """执行一次过期清理，返回删除条数"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        store = store_group.message_store
        removed = await store.delete_expired(store.now())
    finally:
        await store_group.conn.close()

    print(f"清理完成，删除 {len(removed)} 条过期消息")
    return len(removed)


async def show_stats() -> dict[str, int]:
    """统计未过期与已过期待清理的消息数量"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        store = store_group.message_store
        stats = await store.count_by_expiry(store.now())
    finally:
        await store_group.conn.close()

    print(f"未过期消息: {stats['live']}")
    print(f"已过期待清理: {stats['expired']}")
    return stats


if __name__ == "__main__":
    main()
