"""
Tests for the single-slot resume gate.
"""

import threading
import time

from inspector.resume_gate import ResumeGate


class TestResumeGate:
    """Test suite for ResumeGate."""

    def test_starts_empty(self):
        gate = ResumeGate()

        assert gate.is_armed is False
        assert gate.block(timeout=0.05) is False

    def test_signal_before_block_is_not_lost(self):
        gate = ResumeGate()
        gate.signal()

        start = time.monotonic()
        assert gate.block(timeout=2.0) is True
        assert time.monotonic() - start < 1.0

    def test_repeated_signals_collapse(self):
        """Two signals then one block leave the gate empty."""
        gate = ResumeGate()
        gate.signal()
        gate.signal()

        assert gate.block(timeout=1.0) is True
        assert gate.is_armed is False
        assert gate.block(timeout=0.1) is False

    def test_block_released_from_other_thread(self):
        gate = ResumeGate()
        timer = threading.Timer(0.2, gate.signal)

        start = time.monotonic()
        timer.start()
        resumed = gate.block(timeout=5.0)
        elapsed = time.monotonic() - start

        assert resumed is True
        assert elapsed >= 0.19

    def test_timeout_distinguishable_and_slot_untouched(self):
        gate = ResumeGate()

        assert gate.block(timeout=0.05) is False

        gate.signal()
        assert gate.block(timeout=0.05) is True

    def test_reusable_after_consumption(self):
        gate = ResumeGate()
        for _ in range(3):
            gate.signal()
            assert gate.block(timeout=1.0) is True
        assert gate.is_armed is False

    def test_reset_drops_pending_signal(self):
        gate = ResumeGate()
        gate.signal()

        gate.reset()

        assert gate.is_armed is False
        assert gate.block(timeout=0.05) is False
