"""Key-value persistence backends for browser-scoped state.

``BrowserKeyValueStore`` writes into NiceGUI's per-browser user storage, which
NiceGUI persists across page reloads and server restarts. ``MemoryKeyValueStore``
keeps everything in a dict and is used by tests and by ``STORAGE_BACKEND=memory``.
"""

import logging
from collections.abc import Callable, MutableMapping
from typing import Any, Protocol

from mistral_hub.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """String-keyed, string-valued persistence medium.

    Implementations raise ``StorageUnavailableError`` when the medium cannot
    be reached; callers decide how to degrade.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store, scoped to the object's lifetime."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def _nicegui_user_storage() -> MutableMapping[str, Any]:
    from nicegui import app

    return app.storage.user


class BrowserKeyValueStore:
    """Store backed by NiceGUI's ``app.storage.user``.

    The storage is only reachable from inside a page request or event
    handler with a configured storage secret; elsewhere every operation
    raises ``StorageUnavailableError``.
    """

    def __init__(
        self,
        storage_factory: Callable[[], MutableMapping[str, Any]] = _nicegui_user_storage,
    ) -> None:
        self._storage_factory = storage_factory

    def _storage(self) -> MutableMapping[str, Any]:
        try:
            return self._storage_factory()
        except (RuntimeError, AssertionError) as e:
            raise StorageUnavailableError(f"Browser storage unavailable: {e}") from e

    def get(self, key: str) -> str | None:
        value = self._storage().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._storage()[key] = value

    def delete(self, key: str) -> None:
        self._storage().pop(key, None)


def create_backend(name: str) -> KeyValueStore:
    """Create the backend selected by configuration.

    Args:
        name: ``browser`` or ``memory``.

    Raises:
        ValueError: If the name is unknown.
    """
    if name == "browser":
        return BrowserKeyValueStore()
    if name == "memory":
        return MemoryKeyValueStore()
    raise ValueError(f"Unknown storage backend: {name}")
