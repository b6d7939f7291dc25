"""CLI 测试 -- python -m ephemera.core purge-expired / stats"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from ephemera.core.__main__ import main, purge_expired, show_stats
from ephemera.core.models import MessageDraft, Sender
from ephemera.core.store import create_store_group


class TestPurgeExpired:
    """purge-expired 命令"""

    async def test_purges_only_expired(self, tmp_path: Path, monkeypatch, capsys):
        db_path = str(tmp_path / "cli.db")
        monkeypatch.setenv("EPHEMERA_DB_PATH", db_path)

        current = await create_store_group(db_path)
        fresh = await current.message_store.insert(MessageDraft(text="fresh", sender=Sender.ADEEB))
        await current.conn.close()

        # 以三小时前的时钟写入，得到一条已过期记录
        past = await create_store_group(
            db_path, clock=lambda: datetime.now(UTC) - timedelta(hours=3)
        )
        stale = await past.message_store.insert(MessageDraft(text="stale", sender=Sender.ADEEB))
        await past.conn.close()

        removed = await purge_expired()
        assert removed == 1
        assert "删除 1 条" in capsys.readouterr().out

        check = await create_store_group(db_path)
        try:
            assert await check.message_store.get_by_id(stale.message_id) is None
            assert await check.message_store.get_by_id(fresh.message_id) is not None
        finally:
            await check.conn.close()


class TestStats:
    """stats 命令"""

    async def test_counts_live_and_expired(self, tmp_path: Path, monkeypatch, capsys):
        db_path = str(tmp_path / "stats.db")
        monkeypatch.setenv("EPHEMERA_DB_PATH", db_path)

        current = await create_store_group(db_path)
        for text in ("a", "b"):
            await current.message_store.insert(MessageDraft(text=text, sender=Sender.ADEEB))
        await current.conn.close()

        past = await create_store_group(
            db_path, clock=lambda: datetime.now(UTC) - timedelta(hours=3)
        )
        await past.message_store.insert(MessageDraft(text="old", sender=Sender.ADEEB))
        await past.conn.close()

        stats = await show_stats()
        assert stats == {"live": 2, "expired": 1}
        out = capsys.readouterr().out
        assert "未过期消息: 2" in out
        assert "已过期待清理: 1" in out

    async def test_empty_database(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("EPHEMERA_DB_PATH", str(tmp_path / "empty.db"))
        assert await show_stats() == {"live": 0, "expired": 0}


class TestMain:
    """命令行参数处理"""

    def test_missing_command(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["ephemera.core"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        assert "purge-expired" in capsys.readouterr().out

    def test_unknown_command(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["ephemera.core", "vacuum"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        assert "未知命令: vacuum" in capsys.readouterr().out
