"""
MongoDB query execution for the bookstore collection.

This module provides functionality to:
- Describe each step of the query sequence as a MongoQuery
- Build the fixed bookstore query catalog
- Parse extra query specifications from JSON files
- Execute the sequence against MongoDB over a single connection
- Print results and save them as JSON
"""

from bookstore.queries.query_parser import (
    MongoQuery,
    QuerySpecError,
    QueryFileNotFoundError,
    parse_queries_arg,
    parse_query_spec,
    load_queries,
)

from bookstore.queries.catalog import (
    COLLECTION_NAME,
    DATABASE_NAME,
    build_catalog,
    page_query,
    select_queries,
)

from bookstore.queries.mongo_executor import (
    MongoConnectionError,
    QueryExecutionError,
    QueryRunner,
    run_mongo_query,
    run_mongo_queries,
)

__all__ = [
    # Query parsing
    "MongoQuery",
    "QuerySpecError",
    "QueryFileNotFoundError",
    "parse_queries_arg",
    "parse_query_spec",
    "load_queries",
    # Catalog
    "COLLECTION_NAME",
    "DATABASE_NAME",
    "build_catalog",
    "page_query",
    "select_queries",
    # MongoDB execution
    "MongoConnectionError",
    "QueryExecutionError",
    "QueryRunner",
    "run_mongo_query",
    "run_mongo_queries",
]
