"""Tests for shared.storage.SnapshotStorageFile: JSON files per key with an optional quota."""

import pytest

from shared.errors import PersistenceError
from shared.storage.SnapshotStorageFile import SnapshotStorageFile


@pytest.fixture
def storage(helper_config, env, tmp_path):
    env.setenv("SNAPSHOT_DIR", str(tmp_path / "data"))
    env.delenv("SNAPSHOT_MAX_BYTES", raising=False)
    return SnapshotStorageFile(helper_config=helper_config)


class TestSnapshotStorageFile:
    @pytest.mark.asyncio
    async def test_put_get(self, storage, tmp_path):
        await storage.do_put("documents", [{"id": 1, "title": "Circular 1133"}])

        assert await storage.do_get("documents") == [{"id": 1, "title": "Circular 1133"}]
        assert (tmp_path / "data" / "rag_documents.json").exists()

    @pytest.mark.asyncio
    async def test_absent_key(self, storage):
        assert await storage.do_get("chunks") is None

    @pytest.mark.asyncio
    async def test_overwrite_and_delete(self, storage):
        await storage.do_put("chunks", [1])
        await storage.do_put("chunks", [2])
        assert await storage.do_get("chunks") == [2]

        await storage.do_delete("chunks")
        await storage.do_delete("chunks")
        assert await storage.do_get("chunks") is None

    @pytest.mark.asyncio
    async def test_quota(self, helper_config, env, tmp_path):
        env.setenv("SNAPSHOT_DIR", str(tmp_path))
        env.setenv("SNAPSHOT_MAX_BYTES", "16")
        storage = SnapshotStorageFile(helper_config=helper_config)

        await storage.do_put("chunks", [1, 2])
        with pytest.raises(PersistenceError):
            await storage.do_put("chunks", ["x" * 100])
        assert await storage.do_get("chunks") == [1, 2]

    @pytest.mark.asyncio
    async def test_corrupt_file(self, storage, tmp_path):
        await storage.do_put("documents", [])
        (tmp_path / "data" / "rag_documents.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            await storage.do_get("documents")

    @pytest.mark.asyncio
    async def test_invalid_key(self, storage):
        with pytest.raises(PersistenceError):
            await storage.do_get("../etc")
