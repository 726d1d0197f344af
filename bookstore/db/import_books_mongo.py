"""
import_books_mongo.py

Loads the sample book catalog into the ``books`` collection so the query
sequence has something to work on.

Usage:
    bookstore-seed --config config/bookstore_config.yaml
    bookstore-seed --books my_books.json --drop
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.collection import Collection

from bookstore.data.config import MongoConfig, display_uri

logger = logging.getLogger(__name__)

DEFAULT_BOOKS_PATH = Path(__file__).with_name("books.json")

BOOK_FIELDS = ("title", "author", "genre", "published_year", "price", "in_stock")


class BookFileError(Exception):
    """Raised when the books file cannot be read or has the wrong shape."""

    pass


def load_books(path: str | Path | None = None) -> List[Dict[str, Any]]:
    """
    Read a JSON array of book documents.

    Args:
        path: JSON file; defaults to the bundled 12-book sample catalog

    Returns:
        List of book dictionaries

    Raises:
        BookFileError: If the file is missing or unreadable, is not valid
            UTF-8 JSON, or any entry lacks one of the book fields
    """
    books_path = Path(path).expanduser().resolve() if path else DEFAULT_BOOKS_PATH
    try:
        with open(books_path, "r", encoding="utf-8") as f:
            books = json.load(f)
    except FileNotFoundError:
        raise BookFileError(f"Books file not found: {books_path}")
    except json.JSONDecodeError as e:
        raise BookFileError(f"Invalid JSON in {books_path}: {e}")
    except UnicodeDecodeError as e:
        raise BookFileError(f"{books_path} is not UTF-8 text: {e}")
    except OSError as e:
        raise BookFileError(f"Error reading {books_path}: {e}")

    if not isinstance(books, list):
        raise BookFileError(f"{books_path} must contain a JSON array of books")

    for i, book in enumerate(books):
        if not isinstance(book, dict):
            raise BookFileError(f"Entry {i} in {books_path} is not an object")
        missing = [name for name in BOOK_FIELDS if name not in book]
        if missing:
            raise BookFileError(
                f"Entry {i} ('{book.get('title', '?')}') in {books_path} "
                f"is missing: {', '.join(missing)}"
            )

    logger.info(f"Read {len(books)} books from {books_path}")
    return books


def import_books(
    collection: Collection,
    books: List[Dict[str, Any]],
    drop_collection: bool = False,
) -> int:
    """
    Insert book documents into a collection.

    Args:
        collection: Target collection
        books: Documents to insert (copied, the originals are not modified)
        drop_collection: Remove existing documents first

    Returns:
        Number of inserted documents
    """
    if drop_collection:
        deleted = collection.delete_many({}).deleted_count
        logger.info(f"Removed {deleted} existing documents from '{collection.name}'")

    if not books:
        logger.warning("No books to import")
        return 0

    result = collection.insert_many([dict(book) for book in books])
    inserted = len(result.inserted_ids)
    logger.info(f"Inserted {inserted} books into '{collection.name}'")
    return inserted


def run_import(
    mongo: MongoConfig,
    books_path: Optional[str | Path] = None,
    drop_collection: bool = False,
) -> int:
    """Open a connection, import the books file and close the connection."""
    books = load_books(books_path)

    with MongoClient(
        mongo.mongo_uri, serverSelectionTimeoutMS=mongo.server_selection_timeout_ms
    ) as client:
        client.admin.command("ping")
        logger.info(f"Connected to MongoDB: {display_uri(mongo.mongo_uri)}")
        collection = client[mongo.database][mongo.collection]
        return import_books(collection, books, drop_collection=drop_collection)
