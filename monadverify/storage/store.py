"""
Key-Value Store
===============

Namespaced persistent storage for per-address JSON documents.

Keys are ``(namespace, address)`` pairs; addresses are lower-cased so the
same account always maps to the same entry. Values are opaque strings,
decoding is left to the caller so corrupt entries can be detected there.

Version: 0.1.0
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

from monadverify.logging import get_logger

logger = get_logger(__name__)


def normalize_address(address: str) -> str:
    return address.strip().lower()


class KeyValueStore(ABC):
    """Abstract base class for cache stores."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name."""
        ...

    @abstractmethod
    async def get(self, namespace: str, address: str) -> str | None:
        """Return the stored value, or None when absent."""
        ...

    @abstractmethod
    async def set(self, namespace: str, address: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    @abstractmethod
    async def delete(self, namespace: str, address: str) -> bool:
        """
        Remove a value.

        Returns:
            True if an entry existed
        """
        ...

    async def close(self) -> None:
        """Release backend resources."""
        return None


class MemoryStore(KeyValueStore):
    """Process-local store; contents are lost on restart."""

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], str] = {}

    @property
    def name(self) -> str:
        return "memory"

    async def get(self, namespace: str, address: str) -> str | None:
        return self._data.get((namespace, normalize_address(address)))

    async def set(self, namespace: str, address: str, value: str) -> None:
        self._data[(namespace, normalize_address(address))] = value

    async def delete(self, namespace: str, address: str) -> bool:
        return self._data.pop((namespace, normalize_address(address)), None) is not None

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStore(KeyValueStore):
    """
    One JSON file per address under ``<directory>/<namespace>/``.

    Writes go to a temporary file first and are renamed into place.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    @property
    def name(self) -> str:
        return "file"

    def _path(self, namespace: str, address: str) -> Path:
        return self.directory / namespace / f"{normalize_address(address)}.json"

    async def get(self, namespace: str, address: str) -> str | None:
        path = self._path(namespace, address)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None

    async def set(self, namespace: str, address: str, value: str) -> None:
        path = self._path(namespace, address)
        await asyncio.to_thread(self._write, path, value)

    @staticmethod
    def _write(path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    async def delete(self, namespace: str, address: str) -> bool:
        path = self._path(namespace, address)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        logger.debug("file_store_deleted", path=str(path))
        return True
