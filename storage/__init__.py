"""
Storage module for the debug inspector.

Provides the key-value store interface the inspector browses and a SQLite
implementation used by tests, benchmarks and the standalone CLI.
"""

from .kv_interface import KeyValueStore, SnapshotView, StoreError
from .sqlite_kv_store import SQLiteKeyValueStore, SQLiteSnapshotView
from .helpers import DEFAULT_PATH, open_store, cleanup_store, setup_benchmark

__all__ = [
    'KeyValueStore',
    'SnapshotView',
    'StoreError',
    'SQLiteKeyValueStore',
    'SQLiteSnapshotView',
    'DEFAULT_PATH',
    'open_store',
    'cleanup_store',
    'setup_benchmark'
]
