from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig


class SnapshotStorageInterface(ABC):
    """Key-value storage holding the durable corpus snapshot.

    Values are JSON-serialisable lists. An absent key means "no prior snapshot".
    Every operation raises PersistenceError on failure.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    @abstractmethod
    async def do_get(self, key: str) -> list[Any] | None:
        """Return the stored value for key, or None if the key is absent."""
        pass

    @abstractmethod
    async def do_put(self, key: str, value: list[Any]) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    async def do_delete(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""
        pass
