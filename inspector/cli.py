"""
Standalone inspector

Opens an existing store and serves the inspection page until someone visits
the resume endpoint.

Usage:
    python -m inspector serve --db /tmp/database/debug
    python -m inspector serve --db ./data --port 9000 --prefix "session:"
"""

import argparse
import logging
import sys
from typing import List, Optional

from storage.helpers import cleanup_store, open_store
from storage.kv_interface import StoreError

from .config import load_settings
from .errors import TemplateError
from .inspector_server import InspectionServer
from .logging_config import configure_logging
from .observability import setup_tracing

logger = logging.getLogger(__name__)


def create_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inspector",
        description="Browse a key-value store in the browser"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Serve the inspection page until resumed")
    serve.add_argument("--db", help="Directory of the store to open")
    serve.add_argument("--host", help="Interface to bind")
    serve.add_argument("--port", type=int, help="Port to listen on")
    serve.add_argument("--endpoint", help="Path of the browsing page")
    serve.add_argument("--prefix", help="Default key prefix")
    serve.add_argument("--log-level", help="Logging level")
    serve.add_argument("--env-file", default=".env", help="Optional .env file with KV_INSPECTOR_ settings")
    return parser


def run_serve(args: argparse.Namespace) -> int:
    settings = load_settings(args.env_file)
    overrides = {
        "db_path": args.db,
        "host": args.host,
        "port": args.port,
        "endpoint": args.endpoint,
        "default_prefix": args.prefix,
        "log_level": args.log_level,
    }
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    configure_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_to_file=settings.log_to_file,
        log_file_path=settings.log_file_path
    )
    if settings.tracing_enabled:
        setup_tracing()

    try:
        store = open_store(settings.db_path)
    except StoreError as e:
        logger.error(f"Could not open store: {e}")
        return 1

    try:
        server = InspectionServer.from_settings(store, settings)
        server.start()
        try:
            if not server.wait_until_started(settings.startup_timeout):
                return 1
            server.wait()
        finally:
            server.stop()
        return 0
    except TemplateError as e:
        logger.error(f"Inspector template unusable: {e}")
        return 1
    finally:
        cleanup_store(store)


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_cli_parser()
    args = parser.parse_args(argv)
    if args.command == "serve":
        return run_serve(args)
    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
