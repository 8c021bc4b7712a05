"""
Abstract key-value store interface consumed by the debug inspector.

The inspector only needs a handful of capabilities from the store it looks at:
writes for the workload under test, and an isolated read view that can seek to
a key and walk forward while a prefix holds.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable, List, Optional, Tuple, Union
import logging

logger = logging.getLogger(__name__)

KeyLike = Union[bytes, str]


class StoreError(Exception):
    """Raised when the store is not usable (closed, I/O failure)."""


def to_key_bytes(key: KeyLike) -> bytes:
    """Normalise a str/bytes key to bytes."""
    if isinstance(key, str):
        return key.encode('utf-8')
    return bytes(key)


class SnapshotView(ABC):
    """
    A consistent, read-only point-in-time view of the store.

    Obtained through ``KeyValueStore.snapshot()``. Writers are never blocked by
    an open view and writes committed after the view was opened are not visible
    through it.
    """

    @abstractmethod
    def iter_prefix(self, prefix: KeyLike) -> AsyncIterator[Tuple[bytes, bytes]]:
        """
        Seek to the first key >= prefix and yield entries while the key still
        starts with prefix.

        Args:
            prefix: Key prefix to scan

        Yields:
            (key, value) tuples in key byte order
        """
        pass


class KeyValueStore(ABC):
    """
    Base class for key-value stores the inspector can browse.

    Concrete stores own their lifecycle; the inspector never opens, closes or
    writes to them.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def open(self) -> None:
        """Open the underlying storage."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the underlying storage. Safe to call twice."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def put(self, key: KeyLike, value: bytes) -> None:
        pass

    @abstractmethod
    def get(self, key: KeyLike) -> Optional[bytes]:
        pass

    @abstractmethod
    def delete(self, key: KeyLike) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def update(self, fn: Callable[["KeyValueStore"], None]) -> None:
        """
        Run ``fn`` inside a single write transaction.

        Every ``put``/``delete`` issued by ``fn`` is committed together, or not
        at all if ``fn`` raises.
        """
        pass

    @abstractmethod
    def snapshot(self):
        """
        Open an isolated read-only view.

        Returns:
            An async context manager yielding a SnapshotView
        """
        pass

    @abstractmethod
    def scan_prefix(self, prefix: KeyLike) -> List[Tuple[bytes, bytes]]:
        """Synchronous prefix scan for callers without an event loop."""
        pass

    def __enter__(self):
        if not self.is_open:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
