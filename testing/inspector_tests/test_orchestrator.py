"""
Tests for the inspect() harness.
"""

import socket
import threading
import time
from unittest.mock import MagicMock

import pytest
import requests

from conftest import wait_for_health
from inspector.config import InspectorSettings
from inspector.orchestrator import inspect


def resume_when_ready(port, delay=0.0, seen=None):
    """Operator stand-in: wait for the server, optionally look at the page, then resume."""
    def run():
        assert wait_for_health(port)
        time.sleep(delay)
        if seen is not None:
            seen.append(requests.get(f"http://localhost:{port}/inspect?prefix=analysis:", timeout=5).text)
        requests.get(f"http://localhost:{port}/resume", timeout=5)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


class TestInspect:
    """Test suite for inspect()."""

    def test_workload_runs_then_waits_for_resume(self, kv_store, free_port, capsys):
        key = f"analysis:room-42:{time.time_ns()}:uuid-12345678-90"
        workload = MagicMock(side_effect=lambda: kv_store.put(key, b"payload"))
        pages = []
        operator = resume_when_ready(free_port, delay=0.2, seen=pages)

        start = time.monotonic()
        resumed = inspect(kv_store, port=free_port, prefix="analysis:", workload=workload, timeout=10)
        elapsed = time.monotonic() - start
        operator.join(5)

        assert resumed is True
        assert elapsed >= 0.2
        workload.assert_called_once_with()
        assert len(pages) == 1
        assert key in pages[0]

        out = capsys.readouterr().out
        assert out.count("--- TEST PAUSED ---") == 1
        assert f"http://localhost:{free_port}/inspect?prefix=analysis:" in out

    def test_without_workload(self, kv_store, free_port):
        operator = resume_when_ready(free_port)

        assert inspect(kv_store, port=free_port, timeout=10) is True
        operator.join(5)

    def test_server_stopped_after_return(self, kv_store, free_port):
        operator = resume_when_ready(free_port)
        inspect(kv_store, port=free_port, timeout=10)
        operator.join(5)

        with pytest.raises(requests.ConnectionError):
            requests.get(f"http://localhost:{free_port}/health", timeout=1)

    def test_timeout_returns_false(self, kv_store, free_port):
        assert inspect(kv_store, port=free_port, timeout=0.1) is False

    def test_bind_failure_does_not_block(self, kv_store):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("0.0.0.0", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]
            workload = MagicMock()

            start = time.monotonic()
            resumed = inspect(kv_store, port=port, workload=workload)

            assert resumed is False
            assert time.monotonic() - start < 5.0
            workload.assert_called_once_with()

    def test_workload_exception_propagates(self, kv_store, free_port):
        def workload():
            raise RuntimeError("workload failed")

        with pytest.raises(RuntimeError, match="workload failed"):
            inspect(kv_store, port=free_port, workload=workload)

    def test_custom_mapper_used(self, kv_store, free_port):
        from inspector.row_mapper import DisplayRecord

        kv_store.put("analysis:a", b"{}")
        pages = []
        operator = resume_when_ready(free_port, seen=pages)

        inspect(kv_store, port=free_port, mapper=lambda key, value: DisplayRecord(key=key, kind="JSON-EVENT"), timeout=10)
        operator.join(5)

        assert "JSON-EVENT" in pages[0]

    def test_settings_supply_defaults(self, kv_store, free_port):
        settings = InspectorSettings(_env_file=None, host="127.0.0.1", default_prefix="chat:", startup_timeout=2.0)
        kv_store.put("chat:1", b"")
        operator = resume_when_ready(free_port)

        assert inspect(kv_store, port=free_port, settings=settings, timeout=10) is True
        operator.join(5)

    def test_settings_port_and_endpoint_used_when_not_passed(self, kv_store, free_port, capsys):
        settings = InspectorSettings(_env_file=None, host="127.0.0.1", port=free_port, endpoint="/kv", default_prefix="chat:")
        kv_store.put("chat:1", b"")
        statuses = []

        def operator():
            assert wait_for_health(free_port)
            statuses.append(requests.get(f"http://localhost:{free_port}/kv", timeout=5).status_code)
            requests.get(f"http://localhost:{free_port}/resume", timeout=5)

        thread = threading.Thread(target=operator, daemon=True)
        thread.start()

        assert inspect(kv_store, settings=settings, timeout=10) is True
        thread.join(5)

        assert statuses == [200]
        assert f"http://localhost:{free_port}/kv?prefix=chat:" in capsys.readouterr().out
