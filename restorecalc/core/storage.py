"""Storage adapter abstractions."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod


class StorageAdapter(ABC):
    """Abstract interface for persisting binary data under string keys."""

    @abstractmethod
    def join(self, *parts: str) -> str:
        """Join path components into a destination URI."""

    @abstractmethod
    def write_bytes(self, uri: str, data: bytes) -> str:
        """Write bytes to the destination and return the URI."""

    @abstractmethod
    def read_bytes(self, uri: str) -> bytes:
        """Return bytes stored at *uri*."""

    @abstractmethod
    def exists(self, uri: str) -> bool:
        """Return ``True`` when something is stored at *uri*."""


class LocalFS(StorageAdapter):
    """Store files on the local filesystem, optionally below ``root``."""

    def __init__(self, root: str | None = None) -> None:
        self.root = root

    def join(self, *parts: str) -> str:  # pragma: no cover - trivial
        if self.root:
            return os.path.join(self.root, *parts)
        return os.path.join(*parts)

    def write_bytes(self, uri: str, data: bytes) -> str:
        dirpath = os.path.dirname(uri) or "."
        os.makedirs(dirpath, exist_ok=True)
        # Write to a sibling file first so readers never see a partial write
        tmp = f"{uri}.tmp"
        with open(tmp, "wb") as fh:
            fh.write(data)
        os.replace(tmp, uri)
        return uri

    def read_bytes(self, uri: str) -> bytes:
        with open(uri, "rb") as fh:
            return fh.read()

    def exists(self, uri: str) -> bool:
        return os.path.exists(uri)


class MemoryStorage(StorageAdapter):
    """Keep objects in a dictionary; used for browser sessions and tests."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    def join(self, *parts: str) -> str:  # pragma: no cover - trivial
        return "/".join(p.strip("/") for p in parts)

    def write_bytes(self, uri: str, data: bytes) -> str:
        self.objects[uri] = bytes(data)
        return uri

    def read_bytes(self, uri: str) -> bytes:
        try:
            return self.objects[uri]
        except KeyError as exc:
            raise FileNotFoundError(uri) from exc

    def exists(self, uri: str) -> bool:
        return uri in self.objects
