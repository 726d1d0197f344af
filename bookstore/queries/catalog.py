"""
Fixed sequence of bookstore queries.

The catalog groups the operations of the bookstore exercise:

- Task 2: basic CRUD (filtered reads, price update, delete)
- Task 3: advanced queries (compound filter, projection, sorting, pagination)
- Task 4: aggregation pipelines
- Task 5: indexing and query plan inspection

Every step is an independent :class:`MongoQuery`, so a single step can be
executed and tested on its own.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bookstore.queries.query_parser import MongoQuery, QuerySpecError

DATABASE_NAME = "plp_bookstore"
COLLECTION_NAME = "books"

DEFAULT_PAGE_SIZE = 5
PAGE_SORT: List[Tuple[str, int]] = [("title", 1)]


# ---------------------- PIPELINES ----------------------


def average_price_by_genre_pipeline() -> List[Dict[str, Any]]:
    return [
        {"$group": {"_id": "$genre", "avgPrice": {"$avg": "$price"}}},
    ]


def top_author_pipeline(limit: int = 1) -> List[Dict[str, Any]]:
    """Authors ranked by number of books; ties resolve alphabetically."""
    return [
        {"$group": {"_id": "$author", "bookCount": {"$sum": 1}}},
        {"$sort": {"bookCount": -1, "_id": 1}},
        {"$limit": limit},
    ]


def books_by_decade_pipeline() -> List[Dict[str, Any]]:
    """
    Count books per decade of publication.

    The bucket is the first year of the decade (1984 -> 1980), computed as
    ``published_year - published_year mod 10`` so it stays an integer.
    """
    return [
        {
            "$project": {
                "decade": {
                    "$subtract": [
                        "$published_year",
                        {"$mod": ["$published_year", 10]},
                    ]
                }
            }
        },
        {"$group": {"_id": "$decade", "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ]


# ---------------------- BUILDERS ----------------------


def page_query(
    page: int,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
    collection: str = COLLECTION_NAME,
) -> MongoQuery:
    """
    Build a find query returning one page of books.

    Pages are 1-based. ``sort`` defaults to title ascending so consecutive
    pages never overlap; pass an empty list to page in natural order.
    """
    if page < 1:
        raise QuerySpecError(f"Page numbers start at 1, got {page}")
    if page_size < 1:
        raise QuerySpecError(f"Page size must be positive, got {page_size}")

    sort_spec = PAGE_SORT if sort is None else list(sort)
    return MongoQuery(
        name=f"page_{page}",
        label=f"Pagination - Page {page} ({page_size} books)",
        collection=collection,
        type="find",
        filter={},
        sort=sort_spec or None,
        skip=(page - 1) * page_size,
        limit=page_size,
    )


def build_catalog(collection: str = COLLECTION_NAME) -> List[MongoQuery]:
    """Return the ordered list of bookstore queries."""

    def find(name: str, label: str, filter: Dict[str, Any], **kwargs: Any) -> MongoQuery:
        return MongoQuery(
            name=name, label=label, collection=collection, type="find", filter=filter, **kwargs
        )

    def aggregate(name: str, label: str, pipeline: List[Dict[str, Any]]) -> MongoQuery:
        return MongoQuery(
            name=name, label=label, collection=collection, type="aggregate", pipeline=pipeline
        )

    queries = [
        # Task 2: Basic CRUD Operations
        find("fiction_books", "1. Find all books in Fiction", {"genre": "Fiction"}),
        find(
            "published_after_2000",
            "2. Find books published after 2000",
            {"published_year": {"$gt": 2000}},
        ),
        find("orwell_books", "3. Find books by George Orwell", {"author": "George Orwell"}),
        MongoQuery(
            name="update_1984_price",
            label='4. Update price of "1984" to 15.99',
            collection=collection,
            type="update",
            filter={"title": "1984"},
            update={"$set": {"price": 15.99}},
        ),
        MongoQuery(
            name="delete_moby_dick",
            label='5. Delete book "Moby Dick"',
            collection=collection,
            type="delete",
            filter={"title": "Moby Dick"},
        ),
        # Task 3: Advanced Queries
        find(
            "in_stock_after_2010",
            "Books in stock and published after 2010",
            {"in_stock": True, "published_year": {"$gt": 2010}},
        ),
        find(
            "title_author_price",
            "Projection (title, author, price)",
            {},
            projection={"_id": 0, "title": 1, "author": 1, "price": 1},
        ),
        find("price_ascending", "Sort by price ascending", {}, sort=[("price", 1)]),
        find("price_descending", "Sort by price descending", {}, sort=[("price", -1)]),
        page_query(1, collection=collection),
        page_query(2, collection=collection),
        # Task 4: Aggregation Pipelines
        aggregate("average_price_by_genre", "Average price by genre", average_price_by_genre_pipeline()),
        aggregate("top_author", "Author with the most books", top_author_pipeline()),
        aggregate("books_by_decade", "Books grouped by decade", books_by_decade_pipeline()),
        # Task 5: Indexing
        MongoQuery(
            name="index_title",
            label="Creating index on title",
            collection=collection,
            type="create_index",
            keys=[("title", 1)],
        ),
        MongoQuery(
            name="index_author_year",
            label="Creating compound index on author & published_year",
            collection=collection,
            type="create_index",
            keys=[("author", 1), ("published_year", -1)],
        ),
        MongoQuery(
            name="explain_1984",
            label='Explain plan for finding "1984"',
            collection=collection,
            type="explain",
            filter={"title": "1984"},
            verbosity="executionStats",
        ),
    ]
    return [query.validate() for query in queries]


def select_queries(queries: Iterable[MongoQuery], names: Iterable[str]) -> List[MongoQuery]:
    """
    Keep only the named queries, preserving catalog order.

    Raises:
        QuerySpecError: If a name does not match any query or no name is given
    """
    queries = list(queries)
    wanted = [name.strip() for name in names if name.strip()]
    if not wanted:
        raise QuerySpecError("No query names given")
    known = {query.name for query in queries}
    unknown = [name for name in wanted if name not in known]
    if unknown:
        raise QuerySpecError(
            f"Unknown query name(s): {', '.join(unknown)}. "
            f"Available: {', '.join(query.name for query in queries)}"
        )
    wanted_set = set(wanted)
    return [query for query in queries if query.name in wanted_set]
