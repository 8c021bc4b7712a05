"""
Helpers for opening small throwaway stores in tests and benchmarks.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple, Union

from .kv_interface import KeyValueStore, StoreError
from .sqlite_kv_store import SQLiteKeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/tmp/database/debug"
DB_FILENAME = "kv.db"


def open_store(path: Union[str, Path] = DEFAULT_PATH) -> SQLiteKeyValueStore:
    """
    Open a key-value store inside ``path``, creating the directory if needed.

    Args:
        path: Directory holding the database file

    Returns:
        An opened SQLiteKeyValueStore

    Raises:
        StoreError: If the directory cannot be created or the database opened
    """
    directory = Path(path)
    try:
        os.makedirs(directory, mode=0o755, exist_ok=True)
    except OSError as e:
        raise StoreError(f"failed to create store directory {directory}: {e}") from e

    store = SQLiteKeyValueStore(directory / DB_FILENAME)
    store.open()
    return store


def cleanup_store(store: Optional[KeyValueStore]) -> None:
    """Close a store if one was opened."""
    if store is not None:
        store.close()


def setup_benchmark(path: Union[str, Path] = DEFAULT_PATH,
                    log_level: Union[int, str] = logging.ERROR) -> Tuple[logging.Logger, SQLiteKeyValueStore]:
    """
    Prepare a quiet logger and a fresh store for a benchmark run.

    Only the "benchmark" logger is set to ``log_level``; the root logging
    configuration is left to the caller.

    Returns:
        (logger, store) tuple. The caller owns the store and should pass it to
        cleanup_store() when done.
    """
    bench_logger = logging.getLogger("benchmark")
    bench_logger.setLevel(log_level)
    store = open_store(path)
    return bench_logger, store
