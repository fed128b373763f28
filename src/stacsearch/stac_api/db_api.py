"""DB API module."""

from typing import Any, Dict, List, Optional

from stacsearch.commons.daos.docdb_dao_base import DocumentDBDAO
from stacsearch.commons.errors import NotFoundError
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.search.engine import SearchEngine
from stacsearch.search.hooks import SearchHooks
from stacsearch.search.pagination import decorate_item
from stacsearch.stac_api.catalog import decorate_collection


class StacDBAPI(object):
    """Read-only catalog facade over the configured document DAO."""

    def __init__(self, dao: Optional[DocumentDBDAO] = None, hooks: Optional[SearchHooks] = None):
        self.logger = StacLogger()
        self._explicit_dao = dao
        self._hooks = hooks

    @property
    def dao(self) -> DocumentDBDAO:
        """Return the injected DAO, or the process-wide singleton."""
        if self._explicit_dao is not None:
            return self._explicit_dao
        return DocumentDBDAO.get_instance()

    def close(self):
        """Close DB resources for the active DAO instance."""
        self.dao.close()

    def search_items(
        self,
        params: Optional[Dict[str, Any]],
        method: str = "GET",
        collection_id: Optional[str] = None,
        endpoint: str = "",
    ) -> Dict[str, Any]:
        """Search items, optionally scoped to one collection.

        Parameters
        ----------
        params : dict
            GET query parameters or POST body.
        method : str
            Transport the client used.
        collection_id : str, optional
            Scope from ``/collections/{collection_id}/items``.
        endpoint : str
            Public base URL for links.

        Returns
        -------
        dict
            A GeoJSON FeatureCollection with ``context`` and ``links``.

        Raises
        ------
        NotFoundError
            When the scoped collection does not exist.
        """
        if collection_id is not None and self.dao.get_collection(collection_id) is None:
            raise NotFoundError(f"collection {collection_id}")
        engine = SearchEngine(self.dao, hooks=self._hooks)
        return engine.search(params, method=method, collection_id=collection_id, endpoint=endpoint)

    def get_item(self, collection_id: str, item_id: str, endpoint: str = "") -> Dict[str, Any]:
        """Get one item with navigation links.

        Raises
        ------
        NotFoundError
            When the item does not exist in that collection.
        """
        item = self.dao.get_item(collection_id, item_id)
        if item is None:
            self.logger.debug(f"Item {item_id} not found in collection {collection_id}.")
            raise NotFoundError(f"item {collection_id}/{item_id}")
        return decorate_item(item, endpoint)

    def get_collection(self, collection_id: str, endpoint: str = "") -> Dict[str, Any]:
        """Get one collection with navigation links."""
        collection = self.dao.get_collection(collection_id)
        if collection is None:
            raise NotFoundError(f"collection {collection_id}")
        return decorate_collection(collection, endpoint)

    def list_collections(self, endpoint: str = "") -> Dict[str, Any]:
        """List every collection."""
        collections: List[Dict[str, Any]] = [decorate_collection(c, endpoint) for c in self.dao.list_collections()]
        base = endpoint.rstrip("/")
        return {
            "collections": collections,
            "links": [
                {"rel": "self", "href": f"{base}/collections", "type": "application/json"},
                {"rel": "root", "href": f"{base}/", "type": "application/json"},
            ],
            "context": {"returned": len(collections), "matched": len(collections)},
        }
