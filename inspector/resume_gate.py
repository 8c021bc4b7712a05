"""
Resume Gate

Single-slot handshake between the operator (clicking "resume" in a browser)
and the paused workload thread.
"""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class ResumeGate:
    """
    One waiter blocks until one signal arrives.

    The slot holds at most one pending signal: repeated ``signal()`` calls
    before a ``block()`` collapse into one, and a signal sent before
    ``block()`` is called is not lost.
    """

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._armed = False

    @property
    def is_armed(self) -> bool:
        with self._condition:
            return self._armed

    def signal(self) -> None:
        """Arm the gate. An unconsumed signal is overwritten, never stacked."""
        with self._condition:
            self._armed = True
            self._condition.notify()
        logger.debug("Resume gate armed")

    def block(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for a signal and consume it.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            True if a signal was consumed, False if the timeout expired first
        """
        with self._condition:
            if not self._condition.wait_for(lambda: self._armed, timeout=timeout):
                return False
            self._armed = False
        logger.debug("Resume gate released")
        return True

    def reset(self) -> None:
        """Drop a pending signal, if any."""
        with self._condition:
            self._armed = False
