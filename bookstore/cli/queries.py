"""
CLI for running the bookstore query sequence.

This module provides a command-line interface for:
- Loading the MongoDB connection settings from YAML and the environment
- Building the fixed bookstore query catalog (optionally a subset of it)
- Appending extra query specification files
- Executing every step in order over a single connection
- Printing each result and optionally saving results as JSON files

A failing step stops the sequence: the error is reported once, the
connection is closed and the process exits with status 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from bookstore.data.config import ConfigError, display_uri, load_query_config
from bookstore.queries.catalog import build_catalog, select_queries
from bookstore.queries.mongo_executor import (
    MongoConnectionError,
    QueryExecutionError,
    run_mongo_queries,
)
from bookstore.queries.output import (
    print_result,
    print_status,
    print_summary,
    save_results_to_files,
)
from bookstore.queries.query_parser import (
    QueryFileNotFoundError,
    QuerySpecError,
    load_queries,
    parse_queries_arg,
)

logger = logging.getLogger(__name__)


def configure_logging(level_str: str = "INFO") -> None:
    """Configure logging for CLI."""
    level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run the bookstore query sequence against MongoDB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run every query (connection string from MONGODB_ATLAS_URI or .env)
  bookstore-queries

  # Use a configuration file and keep the results as JSON
  bookstore-queries \\
    --config config/bookstore_config.yaml \\
    --output-dir results/

  # Run only some steps, plus an extra query file
  bookstore-queries --only fiction_books,top_author --queries extra.json

  # Show the available steps
  bookstore-queries --list
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults are used when omitted)",
    )

    parser.add_argument(
        "--queries",
        type=str,
        default=None,
        help="Comma-separated list of extra query specification files run after the catalog",
    )

    parser.add_argument(
        "--only",
        type=str,
        default=None,
        help="Comma-separated catalog query names to run (catalog order is kept)",
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory to save query results as JSON files (optional)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override logging level from config",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate config and queries without executing against MongoDB",
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List the catalog queries and exit",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)

    try:
        # 1. Load configuration
        config = load_query_config(args.config)

        # Configure logging (CLI flag overrides config)
        log_level = args.log_level or config.logging.level
        configure_logging(log_level)

        logger.info(f"Target: {display_uri(config.mongo.mongo_uri)}")
        logger.info(f"Database: {config.mongo.database}, collection: {config.mongo.collection}")

        # 2. Build the query sequence
        queries = build_catalog(config.mongo.collection)

        if args.list:
            for query in queries:
                access = "write" if query.is_write else "read"
                print(f"  {query.name:<24} {query.type:<13} {access:<6} {query.title}")
            return 0

        if args.only:
            queries = select_queries(queries, args.only.split(","))

        if args.queries:
            logger.info(f"Parsing query file paths: {args.queries}")
            query_paths = parse_queries_arg(args.queries)
            extra = load_queries(query_paths, default_collection=config.mongo.collection)
            clashes = {q.name for q in queries} & {q.name for q in extra}
            if clashes:
                raise QuerySpecError(
                    f"Query file names clash with catalog queries: {', '.join(sorted(clashes))}"
                )
            queries.extend(extra)

        logger.info(f"Loaded {len(queries)} queries")
        for query in queries:
            logger.debug(f"  - {query.name} ({query.type} on {query.collection})")

        # 3. Dry run mode: exit early
        if args.dry_run:
            logger.info(
                "DRY RUN MODE: Configuration and queries validated successfully"
            )
            print("\n✓ Dry run completed successfully")
            print(f"  Config: {args.config or '(defaults)'}")
            print(f"  Queries: {len(queries)} validated")
            return 0

        # 4. Execute queries, printing each result as soon as it arrives
        results = run_mongo_queries(
            queries=queries,
            mongo_uri=config.mongo.mongo_uri,
            database_name=config.mongo.database,
            timeout_s=config.execution.timeout_s,
            on_result=print_result,
            server_selection_timeout_ms=config.mongo.server_selection_timeout_ms,
            on_status=print_status,
        )

        # 5. Output results
        print_summary(results)

        if args.output_dir:
            output_dir = Path(args.output_dir).expanduser().resolve()
            logger.info(f"Saving JSON results to {output_dir}")
            save_results_to_files(results, output_dir)

        logger.info("✓ All queries processed successfully")
        return 0

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except (QueryFileNotFoundError, QuerySpecError) as e:
        logger.error(f"Query specification error: {e}")
        return 1
    except MongoConnectionError as e:
        logger.error(f"MongoDB connection error: {e}")
        return 1
    except QueryExecutionError as e:
        logger.error(f"Query execution error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
