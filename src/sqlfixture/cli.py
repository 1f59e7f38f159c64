"""CLI entry-point that creates the test database and its tables.

Usage::

    sqlfixture-create --ddl create_db_content.ddl --verbose
"""

from __future__ import annotations

import argparse
import logging
import sys

from sqlfixture.config import ConfigResolver, ConnectionKey, FixtureSettings
from sqlfixture.database import create_and_initialize
from sqlfixture.exceptions import SqlFixtureError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create the test database (where the backend allows it) and execute the DDL file against it",
        prog="sqlfixture-create",
    )
    parser.add_argument(
        "--ddl",
        default=None,
        help="DDL file name, looked up like fixture files (default: SQLFIXTURE_DDL_FILE or create_db_content.ddl)",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Database URL overriding the configured sqlfixture.url",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable DEBUG logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    settings = FixtureSettings()
    resolver = ConfigResolver(settings=settings)
    if args.url:
        resolver.override(ConnectionKey.URL, args.url)

    try:
        count = create_and_initialize(args.ddl, resolver=resolver, settings=settings)
    except SqlFixtureError as exc:
        logger.error("Creating the test database failed: %s", exc)
        return 1

    print(f"Test database ready, {count} DDL statement(s) executed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
