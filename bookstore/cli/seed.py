"""
CLI for loading the sample book catalog into MongoDB.

Usage:
    bookstore-seed
    bookstore-seed --config config/bookstore_config.yaml --drop
    bookstore-seed --books my_books.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pymongo.errors import PyMongoError

from bookstore.cli.queries import configure_logging
from bookstore.data.config import ConfigError, display_uri, load_query_config
from bookstore.db.import_books_mongo import BookFileError, run_import

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Load book documents into the bookstore collection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Insert the bundled 12-book sample catalog
  %(prog)s

  # Start from an empty collection
  %(prog)s --config config/bookstore_config.yaml --drop

  # Insert your own books
  %(prog)s --books my_books.json
""",
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults are used when omitted)",
    )

    parser.add_argument(
        "--books",
        type=str,
        default=None,
        help="JSON array of books to insert (defaults to the bundled sample)",
    )

    parser.add_argument(
        "--drop",
        action="store_true",
        help="Remove existing documents before inserting",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override logging level from config",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = parse_args(argv)

    try:
        config = load_query_config(args.config)
        configure_logging(args.log_level or config.logging.level)

        inserted = run_import(config.mongo, books_path=args.books, drop_collection=args.drop)

        print(
            f"Inserted {inserted} books into "
            f"{config.mongo.database}.{config.mongo.collection} "
            f"at {display_uri(config.mongo.mongo_uri)}"
        )
        return 0

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except BookFileError as e:
        logger.error(f"Books file error: {e}")
        return 1
    except PyMongoError as e:
        logger.error(f"MongoDB error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
