"""
Presentation of query results: labeled console blocks, JSON files and a
final execution summary.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from pprint import pformat
from typing import Any, Dict, TextIO

from bookstore.queries.query_parser import MongoQuery

logger = logging.getLogger(__name__)


def print_result(query: MongoQuery, result: Any, stream: TextIO | None = None) -> None:
    """Print one labeled block with the raw result structure."""
    out = stream or sys.stdout
    print(f"\n{query.title}:", file=out)
    print(pformat(result, sort_dicts=False), file=out)


def print_status(message: str, stream: TextIO | None = None) -> None:
    """Print a connection status line."""
    print(f"\n{message}", file=stream or sys.stdout)


def describe_result(result: Any) -> str:
    """Short description of a result for the summary table."""
    if isinstance(result, list):
        return f"{len(result)} documents"
    if isinstance(result, dict):
        if "modified_count" in result:
            return f"{result['matched_count']} matched, {result['modified_count']} modified"
        if "deleted_count" in result:
            return f"{result['deleted_count']} deleted"
        if "index_name" in result:
            return f"index {result['index_name']}"
        stats = result.get("executionStats")
        if isinstance(stats, dict):
            return (
                f"{stats.get('nReturned', '?')} returned, "
                f"{stats.get('totalDocsExamined', '?')} docs examined"
            )
    return "done"


def save_results_to_files(results: Dict[str, Any], output_dir: Path) -> None:
    """
    Save query results to individual JSON files.

    Args:
        results: Dictionary mapping query name to its result
        output_dir: Directory to save result files

    Raises:
        OSError: If the directory or a file cannot be written
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    for query_name, result in results.items():
        output_file = output_dir / f"{query_name}.json"
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2, ensure_ascii=False, default=str)
        logger.info(f"Saved '{query_name}' ({describe_result(result)}) to {output_file}")


def print_summary(results: Dict[str, Any], stream: TextIO | None = None) -> None:
    """Print execution summary to stdout."""
    out = stream or sys.stdout
    print("\n" + "=" * 60, file=out)
    print("QUERY EXECUTION SUMMARY", file=out)
    print("=" * 60, file=out)
    for query_name, result in results.items():
        print(f"  {query_name}: {describe_result(result)}", file=out)
    print("=" * 60 + "\n", file=out)
