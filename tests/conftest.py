"""
Shared fixtures for the bookstore test suite.
"""

from typing import Any, Dict, List

import mongomock
import pytest
from pymongo.collection import Collection
from pymongo.database import Database

from bookstore.queries.mongo_executor import QueryRunner
from tests.fixture_data import FIXTURE_BOOKS


@pytest.fixture
def fixture_books() -> List[Dict[str, Any]]:
    """
    Fresh copies of the fixture books, safe to mutate.

    Returns:
        A list of book dictionaries.
    """
    return [dict(book) for book in FIXTURE_BOOKS]


@pytest.fixture
def mongo_db() -> Database:
    """
    An empty in-memory database.

    Returns:
        A mongomock database standing in for `plp_bookstore`.
    """
    return mongomock.MongoClient()["plp_bookstore"]


@pytest.fixture
def books_collection(mongo_db: Database, fixture_books: List[Dict[str, Any]]) -> Collection:
    """
    The `books` collection preloaded with the fixture books.

    Args:
        mongo_db: The in-memory database.
        fixture_books: The documents to insert.

    Returns:
        The populated collection.
    """
    collection = mongo_db["books"]
    collection.insert_many(fixture_books)
    return collection


@pytest.fixture
def runner(mongo_db: Database, books_collection: Collection) -> QueryRunner:
    """
    A query runner bound to the populated in-memory database.

    Args:
        mongo_db: The in-memory database.
        books_collection: Ensures the collection is populated first.

    Returns:
        A `QueryRunner` without read timeouts.
    """
    return QueryRunner(mongo_db, timeout_ms=None)
