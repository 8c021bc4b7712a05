"""
One-call debug pause for tests and benchmarks.

    def test_pipeline(tmp_path):
        store = open_store(tmp_path)
        inspect(store, port=9999, prefix="analysis:", workload=lambda: run_pipeline(store))

starts the inspector, runs the workload, prints the inspection link and waits
until someone opens the resume endpoint.
"""

import logging
from typing import Callable, Optional

from storage.kv_interface import KeyValueStore

from .config import InspectorSettings
from .inspector_server import InspectionServer
from .row_mapper import MapperLike

logger = logging.getLogger(__name__)

DEFAULT_STARTUP_TIMEOUT = 5.0


def inspect(store: KeyValueStore, port: Optional[int] = None, endpoint: Optional[str] = None,
            mapper: MapperLike = None, prefix: Optional[str] = None,
            workload: Optional[Callable[[], None]] = None, timeout: Optional[float] = None,
            settings: Optional[InspectorSettings] = None) -> bool:
    """
    Start the inspector, run ``workload`` and block until the operator resumes.

    Inspector faults never reach the caller: a listener that cannot bind is
    logged and the call returns False straight away, since nobody could
    resume it. Exceptions raised by ``workload`` itself propagate once the
    server has been stopped.

    Args:
        store: Store the workload writes to and the page browses
        port: Listening port, settings.port or 8089 if None
        endpoint: Path of the browsing page, settings.endpoint or "/inspect" if None
        mapper: RowMapper or callable, DefaultRowMapper if None
        prefix: Prefix embedded in the printed link, the server default if None
        workload: Code to run before pausing
        timeout: Give up waiting after this many seconds (None waits forever)
        settings: Optional InspectorSettings supplying every option not
            passed explicitly

    Returns:
        True if resumed by the operator, False on timeout or startup failure
    """
    overrides = {}
    if port is not None:
        overrides["port"] = port
    if endpoint is not None:
        overrides["endpoint"] = endpoint

    startup_timeout = DEFAULT_STARTUP_TIMEOUT
    if settings is not None:
        server = InspectionServer.from_settings(store, settings, mapper=mapper, **overrides)
        startup_timeout = settings.startup_timeout
    else:
        server = InspectionServer(store, mapper=mapper, **overrides)

    server.start()
    try:
        if workload is not None:
            workload()

        if not server.wait_until_started(startup_timeout):
            logger.error(f"Inspector unavailable on port {server.port}; continuing without pausing")
            return False

        return server.wait(prefix, timeout=timeout)
    finally:
        server.stop()
