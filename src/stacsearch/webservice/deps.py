"""Dependency providers for the webservice."""

from functools import lru_cache

from stacsearch.search.hooks import SearchHooks
from stacsearch.stac_api.db_api import StacDBAPI


@lru_cache(maxsize=1)
def get_search_hooks() -> SearchHooks:
    """Load the configured hooks once; a failed load is retried on the next request."""
    return SearchHooks.from_settings()


def get_db_api() -> StacDBAPI:
    """Return the catalog facade over the shared DAO."""
    return StacDBAPI(hooks=get_search_hooks())
