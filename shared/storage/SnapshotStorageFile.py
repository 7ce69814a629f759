import asyncio
import json
import os
import tempfile
from typing import Any

from shared.errors import PersistenceError
from shared.helper.HelperConfig import HelperConfig
from shared.storage.SnapshotStorageInterface import SnapshotStorageInterface


class SnapshotStorageFile(SnapshotStorageInterface):
    """Snapshot storage keeping one JSON file per key below SNAPSHOT_DIR.

    Writes go to a temporary file that replaces the target atomically. When
    SNAPSHOT_MAX_BYTES is set, a value whose serialised form exceeds it is
    rejected like an exhausted storage quota.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._directory = helper_config.get_string_val("SNAPSHOT_DIR", default=os.path.join(os.getcwd(), "data"))
        # 0 means unlimited
        self._max_bytes = int(helper_config.get_number_val("SNAPSHOT_MAX_BYTES", default=0, minimum=0))

    def _get_path(self, key: str) -> str:
        if not key or os.sep in key or key.startswith("."):
            raise PersistenceError(f"Invalid snapshot key '{key}'.")
        return os.path.join(self._directory, f"rag_{key}.json")

    ##########################################
    ################ SYNC IO #################
    ##########################################

    def _read(self, path: str) -> list[Any] | None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Failed to read snapshot file {path}: {exc}") from exc

    def _write(self, path: str, value: list[Any]) -> None:
        try:
            serialised = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Snapshot value for {path} is not serialisable: {exc}") from exc

        size = len(serialised.encode("utf-8"))
        if self._max_bytes and size > self._max_bytes:
            raise PersistenceError(f"Snapshot quota exceeded for {path}: {size} bytes > {self._max_bytes} bytes.")

        try:
            os.makedirs(self._directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._directory, prefix=".tmp_", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(serialised)
                os.replace(tmp_path, path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as exc:
            raise PersistenceError(f"Failed to write snapshot file {path}: {exc}") from exc

    def _remove(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Failed to delete snapshot file {path}: {exc}") from exc

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_get(self, key: str) -> list[Any] | None:
        return await asyncio.to_thread(self._read, self._get_path(key))

    async def do_put(self, key: str, value: list[Any]) -> None:
        await asyncio.to_thread(self._write, self._get_path(key), value)

    async def do_delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, self._get_path(key))
