"""MongoDB DAO module."""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from pymongo import ASCENDING, GEOSPHERE, MongoClient, ReplaceOne
from pymongo.errors import ExecutionTimeout, NetworkTimeout, PyMongoError, ServerSelectionTimeoutError

from stacsearch.commons.daos.docdb_dao_base import DocumentDBDAO, flatten_collection_properties
from stacsearch.commons.errors import BackendError, BackendTimeoutError
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.configs import (
    BACKEND_TIMEOUT_MS,
    MONGO_COLLECTIONS_COLLECTION,
    MONGO_CREATE_INDEX,
    MONGO_DB,
    MONGO_HOST,
    MONGO_ITEMS_COLLECTION,
    MONGO_PORT,
    MONGO_URI,
)

_TIMEOUT_ERRORS = (ExecutionTimeout, NetworkTimeout, ServerSelectionTimeoutError)
_NO_ID = {"_id": 0}


class MongoDBDAO(DocumentDBDAO):
    """MongoDB implementation of the search backend.

    Items live in one collection with a ``2dsphere`` index on ``geometry``.
    Temporal properties are expected in the canonical UTC form produced by
    :func:`stacsearch.commons.utils.to_rfc3339`.
    """

    def __init__(self, create_indices: bool = MONGO_CREATE_INDEX):
        self.logger = StacLogger()
        if MONGO_URI is not None:
            self._client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=BACKEND_TIMEOUT_MS)
        else:
            self._client = MongoClient(MONGO_HOST, MONGO_PORT, serverSelectionTimeoutMS=BACKEND_TIMEOUT_MS)
        self._db = self._client[MONGO_DB]
        self._items = self._db[MONGO_ITEMS_COLLECTION]
        self._collections = self._db[MONGO_COLLECTIONS_COLLECTION]
        if create_indices:
            self._create_indices()

    def _create_indices(self):
        try:
            self._items.create_index([("geometry", GEOSPHERE)])
            self._items.create_index([("id", ASCENDING)])
            self._items.create_index([("collection", ASCENDING)])
            self._items.create_index([("properties.datetime", ASCENDING), ("id", ASCENDING)])
            self._collections.create_index([("id", ASCENDING)], unique=True)
        except PyMongoError as e:
            self.logger.error("Could not create MongoDB indices; searches may be slow or fail.")
            self.logger.exception(e)

    def _translate(self, e: Exception) -> BackendError:
        self.logger.exception(e)
        if isinstance(e, _TIMEOUT_ERRORS):
            return BackendTimeoutError()
        return BackendError()

    def search(self, filter, sort, offset, limit) -> Tuple[List[Dict[str, Any]], int]:
        """Run a windowed find plus a match count.

        ``matched`` is exact (``count_documents``) for filtered searches. For
        an empty filter the collection metadata count is used, which can lag
        behind concurrent writes.
        """
        try:
            cursor = (
                self._items.find(filter, projection=_NO_ID)
                .sort(sort)
                .skip(offset)
                .limit(limit)
                .max_time_ms(BACKEND_TIMEOUT_MS)
            )
            items = list(cursor)
            if filter:
                matched = self._items.count_documents(filter, maxTimeMS=BACKEND_TIMEOUT_MS)
            else:
                matched = self._items.estimated_document_count(maxTimeMS=BACKEND_TIMEOUT_MS)
        except PyMongoError as e:
            raise self._translate(e) from e
        return items, matched

    def get_item(self, collection_id: str, item_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self._items.find_one({"collection": collection_id, "id": item_id}, projection=_NO_ID)
        except PyMongoError as e:
            raise self._translate(e) from e

    def get_collection(self, collection_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self._collections.find_one({"id": collection_id}, projection=_NO_ID)
        except PyMongoError as e:
            raise self._translate(e) from e

    def list_collections(self) -> List[Dict[str, Any]]:
        try:
            return list(self._collections.find({}, projection=_NO_ID).sort([("id", ASCENDING)]))
        except PyMongoError as e:
            raise self._translate(e) from e

    def load(self, items: Iterable[Dict[str, Any]] = (), collections: Iterable[Dict[str, Any]] = ()):
        """Upsert collections, then items with their collection properties flattened in.

        Items already stored are not re-flattened when their collection
        changes; reload them to pick up new collection properties.
        """
        try:
            for collection in collections:
                self._collections.replace_one({"id": collection["id"]}, dict(collection), upsert=True)
            items = list(items)
            collection_ids = list({item.get("collection") for item in items})
            by_id = {c["id"]: c for c in self._collections.find({"id": {"$in": collection_ids}}, projection=_NO_ID)}
            requests = [
                ReplaceOne(
                    {"collection": item.get("collection"), "id": item.get("id")},
                    flatten_collection_properties(dict(item), by_id.get(item.get("collection"))),
                    upsert=True,
                )
                for item in items
            ]
            if requests:
                self._items.bulk_write(requests, ordered=False)
        except PyMongoError as e:
            raise self._translate(e) from e

    def close(self):
        """Close the Mongo client."""
        try:
            self._client.close()
        finally:
            super().close()
