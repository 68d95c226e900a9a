"""
Apply Alembic migrations (``alembic upgrade <revision>``, default ``head``).
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config
from alembic.util import CommandError

logger = logging.getLogger("paperforum.migrate")


def build_config(config_path: Path) -> Config:
    config = Config(str(config_path))
    # alembic.ini's own logging config would replace ours
    config.attributes["configure_logger"] = False
    return config


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = argparse.ArgumentParser(prog="paperforum-migrate", description=__doc__.strip())
    parser.add_argument("revision", nargs="?", default="head", help="Target revision (default: head)")
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=Path("alembic.ini"),
        help="Path to alembic.ini (default: ./alembic.ini)",
    )
    parser.add_argument("--sql", action="store_true", help="Print the SQL instead of running it")
    args = parser.parse_args(argv)

    if not args.config.is_file():
        print(f"✗ Alembic config not found: {args.config}")
        sys.exit(1)

    logger.info("Upgrading database to %s", args.revision)
    try:
        command.upgrade(build_config(args.config), args.revision, sql=args.sql)
    except CommandError as exc:
        print(f"✗ Migration failed: {exc}")
        sys.exit(1)

    print(f"✓ Database upgraded to {args.revision}")


if __name__ == "__main__":
    main()
