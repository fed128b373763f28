"""Search engine: request normalization through response assembly."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from stacsearch.commons.daos.docdb_dao_base import DocumentDBDAO
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.configs import SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT
from stacsearch.search.field_projection import project
from stacsearch.search.filter_compiler import compile_filter
from stacsearch.search.hooks import SearchHooks
from stacsearch.search.pagination import build_links, decorate_item, fetch_page
from stacsearch.search.request_normalizer import normalize_request
from stacsearch.search.response_assembler import assemble
from stacsearch.search.sort_compiler import compile_sort


class SearchEngine(object):
    """Compile, execute and shape one search request at a time.

    Holds no per-request state; one instance can serve concurrent requests.
    """

    def __init__(
        self,
        dao: DocumentDBDAO,
        hooks: Optional[SearchHooks] = None,
        default_limit: int = SEARCH_DEFAULT_LIMIT,
        max_limit: int = SEARCH_MAX_LIMIT,
        sortable_fields: Optional[List[str]] = None,
    ):
        self.logger = StacLogger()
        self.dao = dao
        self.hooks = hooks or SearchHooks()
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.sortable_fields = sortable_fields

    def search(
        self,
        params: Optional[Dict[str, Any]],
        method: str = "GET",
        collection_id: Optional[str] = None,
        endpoint: str = "",
    ) -> Dict[str, Any]:
        """Run a search and return a FeatureCollection dict.

        Parameters
        ----------
        params : dict
            Raw GET query parameters or POST body.
        method : str
            ``GET`` or ``POST``.
        collection_id : str, optional
            Collection scope from the request path.
        endpoint : str
            Public base URL used for links.

        Raises
        ------
        ValidationError, BackendError, HookError
        """
        envelope = self.hooks.before({"method": method, "params": dict(params or {}), "collection_id": collection_id})

        request = normalize_request(
            envelope.get("params"),
            method=envelope.get("method", method),
            collection_id=envelope.get("collection_id", collection_id),
            default_limit=self.default_limit,
            max_limit=self.max_limit,
        )
        query_filter = compile_filter(request)
        sort = compile_sort(request, self.sortable_fields)
        self.logger.debug(f"Compiled search filter={query_filter} sort={sort}")

        page = fetch_page(self.dao, query_filter, sort, request)
        links = build_links(request, page, endpoint)
        features = [project(decorate_item(item, endpoint), request.fields) for item in page.items]
        response = assemble(page, features, links, limit=request.limit, page_number=request.page)
        return self.hooks.after(response)
