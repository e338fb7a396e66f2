"""Persistent key-value storage for offkulture.

Values are JSON-serialisable Python objects. ``JsonFileStore`` keeps one
``<key>.json`` file per key under a data directory; ``MemoryStore`` keeps
them in a dict. Neither offers atomicity across keys.
"""

import copy
import fcntl
import json
import logging
import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable

from . import config
from .errors import CorruptStoreError, StoreWriteError

logger = logging.getLogger(__name__)

# Keys used by the shop
META_KEY = "meta"
SESSION_KEY = "session"
CART_KEY = "cart"
WISHLIST_KEY = "wishlist"
PRODUCTS_KEY = "products"
ORDERS_KEY = "orders"
REVIEWS_KEY = "reviews"
RECENTLY_VIEWED_KEY = "recently_viewed"
COMPARISON_KEY = "comparison"
ACCOUNTS_KEY = "accounts"

_KEY_PATTERN = re.compile(r"^[a-z0-9_\-]+$")
LOCK_FILE = ".store.lock"


@runtime_checkable
class KeyValueStore(Protocol):
    """Opaque durable mapping from string keys to JSON values."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> list[str]:
        ...

    def clear(self) -> None:
        ...


class MemoryStore:
    """In-process store. Values are deep-copied in and out like a real store."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so unserialisable values fail here as they would on disk
        try:
            self._data[key] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            raise StoreWriteError(key, str(e)) from e

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def clear(self) -> None:
        self._data.clear()

    @contextmanager
    def lock(self) -> Iterator[None]:
        yield


class JsonFileStore:
    """Manages reading and writing JSON values, one file per key."""

    def __init__(self, data_dir: Path | None = None):
        """
        Initialize JsonFileStore.

        Args:
            data_dir: Override data directory (for testing). Defaults to
                OFFKULTURE_DATA_DIR.
        """
        self.data_dir = Path(data_dir) if data_dir is not None else config.data_dir()

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self.data_dir / f"{key}.json"

    def _ensure_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Acquire exclusive lock on the data directory for read-modify-write operations."""
        self._ensure_dir()
        lock_path = self.data_dir / LOCK_FILE
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Load a value from disk.

        Raises:
            CorruptStoreError: If the file exists but isn't valid JSON.
        """
        path = self._path(key)
        if not path.exists():
            return default

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(key, str(e)) from e

    def set(self, key: str, value: Any) -> None:
        """
        Save a value to disk atomically.

        Uses write-to-temp-then-rename for atomicity.

        Raises:
            StoreWriteError: If serialisation or the filesystem write fails.
        """
        path = self._path(key)
        try:
            self._ensure_dir()
            fd, temp_path = tempfile.mkstemp(
                dir=self.data_dir, prefix=f".{key}_", suffix=".tmp"
            )
        except OSError as e:
            raise StoreWriteError(key, str(e)) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
                f.write("\n")
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            logger.error("Write of key %s failed: %s", key, e)
            raise StoreWriteError(key, str(e)) from e

        logger.debug("Wrote key %s", key)

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StoreWriteError(key, str(e)) from e
        logger.debug("Removed key %s", key)

    def keys(self) -> list[str]:
        if not self.data_dir.exists():
            return []
        return sorted(p.stem for p in self.data_dir.glob("*.json"))

    def clear(self) -> None:
        for key in self.keys():
            self.remove(key)
