#!/usr/bin/env python3
"""
Health News Service - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
serve    Run the HTTP API with the periodic refresh loop
refresh  Run one refresh (aggregate + replace) and exit
init-db  Create the database tables and exit

============================================================
USAGE
============================================================
    python app.py serve --port 5000
    python app.py refresh
    DATABASE_URL=sqlite:///data/news.db python app.py init-db

Exit codes: 0 on success (a skipped refresh counts as success),
1 on failure, 2 on configuration errors.

============================================================
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from core.config import Settings, load_settings
from core.exceptions import ConfigurationError
from core.logging import setup_logging
from database.engine import (
    DatabasePersistenceError,
    configure_database,
    initialize_database,
)
from news_ingestion.refresh_service import create_refresh_service
from news_ingestion.types import RefreshTrigger


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="health-news",
        description="Health news aggregation service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s serve                    # API + refresh every 6 hours
  %(prog)s serve --no-scheduler     # API only
  %(prog)s refresh                  # One refresh run
  %(prog)s init-db                  # Create tables
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None, help="Bind address (default: HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT or 5000)")
    serve.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Do not start the periodic refresh loop",
    )

    subparsers.add_parser("refresh", help="Run one refresh and exit")
    subparsers.add_parser("init-db", help="Create database tables and exit")

    return parser


# ============================================================
# COMMANDS
# ============================================================

def run_serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    from api.main import create_app

    if args.no_scheduler:
        settings = replace(settings, scheduler_enabled=False)

    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


async def run_refresh(settings: Settings) -> int:
    logger = logging.getLogger(__name__)

    configure_database(settings.database_url)
    initialize_database()

    service = create_refresh_service(settings)
    result = await service.refresh(RefreshTrigger.MANUAL)

    print(f"\nRefresh Result: {result.status.value.upper()}")
    print(f"Articles stored: {result.count}")
    print(f"Duration: {result.duration_seconds:.2f}s")
    if result.aggregation and result.aggregation.failed_sources:
        print(f"Failed sources: {', '.join(result.aggregation.failed_sources)}")
    if result.error:
        logger.error(f"Refresh failed: {result.error}")

    return 0 if result.ok else 1


def run_init_db(settings: Settings) -> int:
    configure_database(settings.database_url)
    initialize_database()
    print("Database tables ready")
    return 0


# ============================================================
# MAIN FUNCTION
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(settings.log_level, settings.log_format, service_name="health-news")
    logger = logging.getLogger(__name__)

    try:
        if args.command == "serve":
            return run_serve(settings, args)
        if args.command == "refresh":
            return asyncio.run(run_refresh(settings))
        return run_init_db(settings)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except DatabasePersistenceError as e:
        logger.error(f"Database error: {e}")
        return 1


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
