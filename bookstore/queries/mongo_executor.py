"""
MongoDB query execution module.

This module executes query descriptors (find, aggregate, update, delete,
index creation and explain) against a MongoDB database. A whole sequence
runs inside one client connection; the first failing step stops the
sequence and the connection is closed on every exit path.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from bookstore.data.config import display_uri
from bookstore.queries.query_parser import MongoQuery

logger = logging.getLogger(__name__)

SERVER_SELECTION_TIMEOUT_MS = 5000

ResultHandler = Callable[[MongoQuery, Any], None]
StatusHandler = Callable[[str], None]


class MongoConnectionError(Exception):
    """Raised when MongoDB connection fails."""

    pass


class QueryExecutionError(Exception):
    """Raised when query execution fails."""

    pass


class QueryRunner:
    """
    Executes query descriptors against an already open database handle.

    The runner does not own the connection: whoever opened the client is
    responsible for closing it.

    Args:
        database: Database handle the descriptors' collections live in
        timeout_ms: ``maxTimeMS`` applied to reads; ``None`` or 0 disables it
    """

    def __init__(self, database: Database, timeout_ms: Optional[int] = 30000):
        self.database = database
        self.timeout_ms = timeout_ms or None

    def run(self, query: MongoQuery) -> Any:
        """
        Execute a single descriptor and return its result.

        Returns:
            A list of documents for find/aggregate, an acknowledgment dict
            for update/delete/create_index, the explain document for explain

        Raises:
            QueryExecutionError: If the type is unsupported or the driver fails
        """
        handler = getattr(self, f"_run_{query.type}", None)
        if handler is None:
            raise QueryExecutionError(f"Unsupported query type: {query.type}")

        try:
            result = handler(query)
        except PyMongoError as e:
            raise QueryExecutionError(
                f"Failed to execute query '{query.name}' on '{query.collection}': {e}"
            )

        if isinstance(result, list):
            logger.info(
                f"Query '{query.name}' on '{query.collection}': "
                f"{len(result)} documents returned"
            )
        else:
            logger.info(f"Query '{query.name}' on '{query.collection}': {query.type} completed")
            logger.debug(f"Query '{query.name}' result: {result}")
        return result

    def run_all(
        self,
        queries: Iterable[MongoQuery],
        on_result: Optional[ResultHandler] = None,
    ) -> Dict[str, Any]:
        """
        Execute descriptors strictly in order.

        ``on_result`` is called after each step, before the next one starts.
        An exception from any step propagates immediately, so later steps
        never run.
        """
        results: Dict[str, Any] = {}
        for query in queries:
            logger.info(
                f"Executing query '{query.name}' "
                f"(type={query.type}, collection={query.collection})"
            )
            result = self.run(query)
            results[query.name] = result
            if on_result is not None:
                on_result(query, result)
        return results

    # ---------------------- HANDLERS ----------------------

    def _run_find(self, query: MongoQuery) -> List[Dict[str, Any]]:
        cursor = self.database[query.collection].find(
            filter=query.filter, projection=query.projection
        )
        if self.timeout_ms:
            cursor = cursor.max_time_ms(self.timeout_ms)
        if query.sort:
            cursor = cursor.sort(query.sort)
        if query.skip:
            cursor = cursor.skip(query.skip)
        if query.limit:
            cursor = cursor.limit(query.limit)
        return list(cursor)

    def _run_aggregate(self, query: MongoQuery) -> List[Dict[str, Any]]:
        kwargs = {"maxTimeMS": self.timeout_ms} if self.timeout_ms else {}
        cursor = self.database[query.collection].aggregate(query.pipeline, **kwargs)
        return list(cursor)

    def _run_update(self, query: MongoQuery) -> Dict[str, Any]:
        result = self.database[query.collection].update_one(query.filter, query.update)
        return {
            "matched_count": result.matched_count,
            "modified_count": result.modified_count,
            "acknowledged": result.acknowledged,
        }

    def _run_delete(self, query: MongoQuery) -> Dict[str, Any]:
        result = self.database[query.collection].delete_one(query.filter)
        return {
            "deleted_count": result.deleted_count,
            "acknowledged": result.acknowledged,
        }

    def _run_create_index(self, query: MongoQuery) -> Dict[str, Any]:
        index_name = self.database[query.collection].create_index(query.keys)
        return {"index_name": index_name}

    def _run_explain(self, query: MongoQuery) -> Dict[str, Any]:
        find_command: Dict[str, Any] = {"find": query.collection, "filter": query.filter}
        if query.projection:
            find_command["projection"] = query.projection
        if query.sort:
            find_command["sort"] = dict(query.sort)
        if query.skip:
            find_command["skip"] = query.skip
        if query.limit:
            find_command["limit"] = query.limit
        if self.timeout_ms:
            find_command["maxTimeMS"] = self.timeout_ms
        return self.database.command("explain", find_command, verbosity=query.verbosity)


def run_mongo_query(
    query: MongoQuery,
    client: MongoClient,
    database_name: str,
    timeout_ms: int = 30000,
) -> Any:
    """
    Execute a single MongoDB query.

    Args:
        query: MongoQuery specification
        client: Active MongoClient instance
        database_name: Database name
        timeout_ms: Query timeout in milliseconds

    Returns:
        The step result (see :meth:`QueryRunner.run`)

    Raises:
        QueryExecutionError: If query execution fails

    Example:
        >>> from pymongo import MongoClient
        >>> client = MongoClient("mongodb://localhost:27017/")
        >>> query = MongoQuery(name="test", collection="books", type="find", filter={})
        >>> results = run_mongo_query(query, client, "plp_bookstore")
    """
    return QueryRunner(client[database_name], timeout_ms=timeout_ms).run(query)


def run_mongo_queries(
    queries: List[MongoQuery],
    mongo_uri: str,
    database_name: str,
    timeout_s: int = 30,
    on_result: Optional[ResultHandler] = None,
    server_selection_timeout_ms: int = SERVER_SELECTION_TIMEOUT_MS,
    on_status: Optional[StatusHandler] = None,
) -> Dict[str, Any]:
    """
    Execute multiple MongoDB queries sequentially over one connection.

    Args:
        queries: List of MongoQuery specifications
        mongo_uri: MongoDB connection URI
        database_name: Database name
        timeout_s: Query timeout in seconds
        on_result: Called with each query and its result as soon as it completes
        server_selection_timeout_ms: How long to wait for a reachable server
        on_status: Receives the "Connected" and "Connection closed" messages;
            defaults to the module logger

    Returns:
        Dictionary mapping query name to its result, in execution order

    Raises:
        MongoConnectionError: If connection fails
        QueryExecutionError: If any query fails; later queries are not run
    """
    uri_display = display_uri(mongo_uri)
    notify = on_status or logger.info

    try:
        client = MongoClient(mongo_uri, serverSelectionTimeoutMS=server_selection_timeout_ms)
    except PyMongoError as e:
        raise MongoConnectionError(f"Invalid MongoDB connection string for {uri_display}: {e}")

    try:
        with client:
            try:
                # Test connection
                client.admin.command("ping")
            except PyMongoError as e:
                raise MongoConnectionError(f"Failed to connect to MongoDB at {uri_display}: {e}")
            notify(f"Connected to MongoDB: {uri_display} (database={database_name})")

            runner = QueryRunner(client[database_name], timeout_ms=timeout_s * 1000)
            return runner.run_all(queries, on_result=on_result)
    finally:
        notify("Connection closed")
