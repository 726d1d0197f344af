"""
Parser for MongoDB query specification files.

This module defines the query descriptor used by the runner and provides
functionality to parse extra descriptors from JSON files and validate them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

QueryType = Literal["find", "aggregate", "update", "delete", "create_index", "explain"]

QUERY_TYPES: Tuple[str, ...] = (
    "find",
    "aggregate",
    "update",
    "delete",
    "create_index",
    "explain",
)

# Fields that must be present (and not None) for each query type
REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "find": ("filter",),
    "aggregate": ("pipeline",),
    "update": ("filter", "update"),
    "delete": ("filter",),
    "create_index": ("keys",),
    "explain": ("filter",),
}


class QuerySpecError(Exception):
    """Raised when query specification is invalid."""

    pass


class QueryFileNotFoundError(FileNotFoundError):
    """Raised when query file doesn't exist."""

    pass


@dataclass
class MongoQuery:
    """Represents one step of the query sequence."""

    name: str
    collection: str
    type: QueryType

    # Heading printed above the result
    label: Optional[str] = None

    # For find / update / delete / explain queries
    filter: Optional[Dict[str, Any]] = None
    projection: Optional[Dict[str, Any]] = None
    sort: Optional[List[Tuple[str, int]]] = None
    skip: int = 0
    limit: int = 0

    # For update queries
    update: Optional[Dict[str, Any]] = None

    # For aggregate queries
    pipeline: Optional[List[Dict[str, Any]]] = None

    # For create_index queries
    keys: Optional[List[Tuple[str, int]]] = None

    # For explain queries
    verbosity: str = "executionStats"

    # Source file for logging
    source_file: Optional[str] = None

    @property
    def title(self) -> str:
        return self.label or self.name

    @property
    def is_write(self) -> bool:
        """True when the step mutates documents or index metadata."""
        return self.type in ("update", "delete", "create_index")

    def validate(self) -> "MongoQuery":
        """
        Check that the descriptor carries the fields its type needs.

        Returns:
            The same descriptor, so calls can be chained

        Raises:
            QuerySpecError: If the descriptor is incomplete or inconsistent
        """
        where = f" in {self.source_file}" if self.source_file else ""

        if not self.name:
            raise QuerySpecError(f"Query without a name{where}")
        if self.type not in QUERY_TYPES:
            raise QuerySpecError(
                f"Invalid type '{self.type}' for query '{self.name}'{where}. "
                f"Must be one of: {', '.join(QUERY_TYPES)}"
            )

        for field_name in REQUIRED_FIELDS[self.type]:
            if getattr(self, field_name) is None:
                raise QuerySpecError(
                    f"Missing '{field_name}' for {self.type} query '{self.name}'{where}"
                )

        if self.type == "aggregate":
            if not isinstance(self.pipeline, list) or len(self.pipeline) == 0:
                raise QuerySpecError(
                    f"'pipeline' must be non-empty list for query '{self.name}'{where}"
                )
        if self.type == "update" and not self.update:
            raise QuerySpecError(
                f"'update' must be a non-empty document for query '{self.name}'{where}"
            )
        if self.type == "create_index" and not self.keys:
            raise QuerySpecError(
                f"'keys' must be non-empty for query '{self.name}'{where}"
            )

        for field_name in ("skip", "limit"):
            value = getattr(self, field_name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise QuerySpecError(
                    f"'{field_name}' must be a non-negative integer "
                    f"for query '{self.name}'{where}"
                )

        return self


def normalize_key_spec(raw: Any, field_name: str = "sort") -> Optional[List[Tuple[str, int]]]:
    """
    Normalize a sort or index key specification to a list of pairs.

    Accepts ``{"price": 1}``, ``[["price", 1]]`` or ``[("price", 1)]``.
    JSON objects keep their key order, so compound keys survive the
    conversion.

    Raises:
        QuerySpecError: If the specification has another shape
    """
    if raw is None:
        return None

    if isinstance(raw, dict):
        pairs = list(raw.items())
    elif isinstance(raw, list):
        pairs = []
        for item in raw:
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise QuerySpecError(
                    f"'{field_name}' entries must be [field, direction] pairs, got {item!r}"
                )
            pairs.append((item[0], item[1]))
    else:
        raise QuerySpecError(f"'{field_name}' must be an object or a list of pairs")

    for key, direction in pairs:
        if not isinstance(key, str) or direction not in (1, -1):
            raise QuerySpecError(
                f"Invalid '{field_name}' entry ({key!r}, {direction!r}): "
                "direction must be 1 or -1"
            )
    return [(key, int(direction)) for key, direction in pairs]


def parse_queries_arg(raw: str) -> List[Path]:
    """
    Parse comma-separated query file paths.

    Args:
        raw: Comma-separated paths like "q1.json,q2.json"

    Returns:
        List of validated Path objects

    Raises:
        QueryFileNotFoundError: If any file doesn't exist

    Example:
        >>> paths = parse_queries_arg("q1.json,q2.json")
        >>> len(paths)
        2
    """
    paths = []
    for part in raw.split(","):
        if not part.strip():
            continue
        path = Path(part.strip()).expanduser().resolve()
        if not path.exists():
            raise QueryFileNotFoundError(f"Query file not found: {path}")
        paths.append(path)
    return paths


def parse_query_spec(path: Path, default_collection: Optional[str] = None) -> MongoQuery:
    """
    Parse a single query specification file.

    Expected JSON format:
    {
      "name": "query_identifier",
      "label": "Heading printed above the result",   // optional
      "collection": "books",         // optional when a default is given
      "type": "find" | "aggregate" | "update" | "delete" | "create_index" | "explain",
      "filter": {...},               // find, update, delete, explain
      "projection": {...},           // optional for find
      "sort": {"price": 1},          // optional for find, explain
      "skip": 0, "limit": 0,         // optional for find, explain
      "update": {"$set": {...}},     // for update
      "pipeline": [...],             // for aggregate
      "keys": {"title": 1},          // for create_index
      "verbosity": "executionStats"  // optional for explain
    }

    Args:
        path: Path to query specification file
        default_collection: Collection used when the file names none

    Returns:
        Parsed and validated MongoQuery object

    Raises:
        QuerySpecError: If spec is invalid or malformed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            spec = json.load(f)
    except json.JSONDecodeError as e:
        raise QuerySpecError(f"Invalid JSON in {path}: {e}")
    except UnicodeDecodeError as e:
        raise QuerySpecError(f"{path} is not UTF-8 text: {e}")
    except OSError as e:
        raise QuerySpecError(f"Error reading {path}: {e}")

    if not isinstance(spec, dict):
        raise QuerySpecError(f"Query specification in {path} must be a JSON object")

    # Validate required fields
    if "name" not in spec:
        raise QuerySpecError(f"Missing 'name' field in {path}")
    if "type" not in spec:
        raise QuerySpecError(f"Missing 'type' field in {path}")
    collection = spec.get("collection", default_collection)
    if not collection:
        raise QuerySpecError(f"Missing 'collection' field in {path}")

    query = MongoQuery(
        name=spec["name"],
        collection=collection,
        type=spec["type"],
        label=spec.get("label"),
        filter=spec.get("filter"),
        projection=spec.get("projection"),
        sort=normalize_key_spec(spec.get("sort"), "sort"),
        skip=spec.get("skip", 0),
        limit=spec.get("limit", 0),
        update=spec.get("update"),
        pipeline=spec.get("pipeline"),
        keys=normalize_key_spec(spec.get("keys"), "keys"),
        verbosity=spec.get("verbosity", "executionStats"),
        source_file=str(path),
    )
    return query.validate()


def load_queries(paths: List[Path], default_collection: Optional[str] = None) -> List[MongoQuery]:
    """
    Load and parse multiple query specification files.

    Args:
        paths: List of paths to query files
        default_collection: Collection used by files that name none

    Returns:
        List of parsed MongoQuery objects

    Raises:
        QuerySpecError: If any query spec is invalid or two share a name
    """
    queries = []
    seen = set()
    for path in paths:
        query = parse_query_spec(path, default_collection=default_collection)
        if query.name in seen:
            raise QuerySpecError(f"Duplicate query name '{query.name}' in {path}")
        seen.add(query.name)
        queries.append(query)
    return queries
