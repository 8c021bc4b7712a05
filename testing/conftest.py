"""
Shared fixtures for inspector and storage tests.
"""

import logging
import socket
import sqlite3
import time

import pytest
import requests

from inspector.inspector_server import InspectionServer
from storage.sqlite_kv_store import SQLiteKeyValueStore


def find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def wait_for_health(port: int, timeout: float = 5.0) -> bool:
    """Poll /health until the server answers."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            if requests.get(f"http://localhost:{port}/health", timeout=0.5).status_code == 200:
                return True
        except requests.ConnectionError:
            pass
        time.sleep(0.02)
    return False


def insert_text_value(store: SQLiteKeyValueStore, key: str, text: str) -> None:
    """Write a row whose value column holds TEXT instead of a BLOB, bypassing the store API."""
    connection = sqlite3.connect(str(store.db_path), timeout=5.0, isolation_level=None)
    try:
        connection.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key.encode("utf-8"), text))
    finally:
        connection.close()


@pytest.fixture
def free_port():
    return find_free_port()


@pytest.fixture
def kv_store(tmp_path):
    """An open SQLite key-value store in a temporary directory."""
    store = SQLiteKeyValueStore(tmp_path / "kv.db")
    store.open()
    yield store
    store.close()


@pytest.fixture
def running_server(kv_store):
    """An inspection server on an ephemeral localhost port."""
    server = InspectionServer(kv_store, port=0, host="127.0.0.1")
    server.start()
    assert server.wait_until_started(5.0)
    yield server
    server.stop()


@pytest.fixture
def restore_root_logging():
    """Undo configure_logging() changes to the root logger after a test."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)
