"""
Read-only access to the product's MongoDB database
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from pymongo import AsyncMongoClient
from pymongo.errors import ConfigurationError as MongoConfigurationError
from pymongo.errors import ConnectionFailure, PyMongoError

from .exceptions import DataSourceError, QueryError, TransportError

logger = logging.getLogger(__name__)

USERS = "users"
WEBSITES = "websites"
COMMENTS = "comments"
GUESTS = "guests"
PENDING_SIGNUPS = "pendingsignups"


def translate_error(error: PyMongoError) -> DataSourceError:
    """Map a driver exception onto transport vs query failure"""
    code = getattr(error, "code", None)
    if isinstance(error, (ConnectionFailure, MongoConfigurationError)):
        return TransportError(str(error), code)
    return QueryError(str(error), code)


class RecordStore:
    """Counting and listing over the collections of one database"""

    def __init__(self, db):
        self.db = db

    async def count(self, collection: str, predicate: Optional[Dict[str, Any]] = None) -> int:
        try:
            return await self.db[collection].count_documents(predicate or {})
        except PyMongoError as e:
            raise translate_error(e) from e

    async def find(
        self,
        collection: str,
        predicate: Optional[Dict[str, Any]] = None,
        projection: Optional[Sequence[str]] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self.db[collection].find(predicate or {}, projection)
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list()
        except PyMongoError as e:
            raise translate_error(e) from e

    async def collection_names(self) -> List[str]:
        try:
            return await self.db.list_collection_names()
        except PyMongoError as e:
            raise translate_error(e) from e


@asynccontextmanager
async def connect(uri: str, database: str) -> AsyncIterator[RecordStore]:
    """Open a client for the duration of one report; always closed on exit"""
    try:
        client = AsyncMongoClient(uri)
    except PyMongoError as e:
        raise translate_error(e) from e
    try:
        logger.debug("Connecting to MongoDB database %s", database)
        try:
            await client.aconnect()
        except PyMongoError as e:
            raise translate_error(e) from e
        yield RecordStore(client[database])
    finally:
        await client.close()
        logger.debug("MongoDB connection closed")
