"""Document database DAO base module.

Every backend answers the same contract: given a MongoDB-style filter
document, a list of ``(field, direction)`` sort keys, an offset and a limit,
return the ordered window of items and the total match count.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

from stacsearch.configs import DB_BACKEND


def flatten_collection_properties(item: Dict[str, Any], collection: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return ``item`` with its collection's ``properties`` merged under its own.

    Item values win over collection values. ``item`` is returned unchanged
    when the collection carries no properties.
    """
    inherited = (collection or {}).get("properties")
    if not isinstance(inherited, dict) or not inherited:
        return item
    own = item.get("properties")
    return dict(item, properties={**inherited, **(own if isinstance(own, dict) else {})})


class DocumentDBDAO(ABC):
    """Abstract DAO shared by every request for the lifetime of the process.

    Use :meth:`get_instance` to obtain it; it is built once and reused.
    """

    _instance: "DocumentDBDAO" = None
    _lock = threading.Lock()

    @staticmethod
    def get_instance(*args, **kwargs) -> "DocumentDBDAO":
        """Return the process-wide DAO, creating it on first call.

        The concrete class is chosen by the ``db.backend`` setting.
        """
        with DocumentDBDAO._lock:
            if DocumentDBDAO._instance is None:
                if DB_BACKEND == "mongodb":
                    from stacsearch.commons.daos.mongodb_dao import MongoDBDAO

                    DocumentDBDAO._instance = MongoDBDAO(*args, **kwargs)
                elif DB_BACKEND == "memory":
                    from stacsearch.commons.daos.memory_dao import InMemoryDAO

                    DocumentDBDAO._instance = InMemoryDAO(*args, **kwargs)
                else:
                    raise NotImplementedError(f"Unsupported DB backend: {DB_BACKEND}")
            return DocumentDBDAO._instance

    @abstractmethod
    def search(
        self,
        filter: Dict[str, Any],
        sort: List[Tuple[str, int]],
        offset: int,
        limit: int,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Return ``(items, matched)`` for the window ``[offset, offset + limit)``."""
        raise NotImplementedError

    @abstractmethod
    def get_item(self, collection_id: str, item_id: str) -> Optional[Dict[str, Any]]:
        """Return one item of a collection, or ``None``."""
        raise NotImplementedError

    @abstractmethod
    def get_collection(self, collection_id: str) -> Optional[Dict[str, Any]]:
        """Return a collection document, or ``None``."""
        raise NotImplementedError

    @abstractmethod
    def list_collections(self) -> List[Dict[str, Any]]:
        """Return every collection document."""
        raise NotImplementedError

    @abstractmethod
    def load(self, items: Iterable[Dict[str, Any]] = (), collections: Iterable[Dict[str, Any]] = ()):
        """Insert or replace catalog records.

        Items are keyed by ``(collection, id)`` and stored with their
        collection's properties flattened in.
        """
        raise NotImplementedError

    def close(self):
        """Release backend resources and forget the shared instance."""
        with DocumentDBDAO._lock:
            if DocumentDBDAO._instance is self:
                DocumentDBDAO._instance = None
