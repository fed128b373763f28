"""Sort compiler."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from stacsearch.commons.errors import ValidationError
from stacsearch.configs import SEARCH_SORTABLE_FIELDS
from stacsearch.search.fields import to_backend_field
from stacsearch.search.models import ASCENDING, DESCENDING, SearchRequest

TIE_BREAK_FIELD = "id"
DEFAULT_SORT: List[Tuple[str, int]] = [("properties.datetime", DESCENDING), (TIE_BREAK_FIELD, ASCENDING)]


def compile_sort(request: SearchRequest, sortable_fields: Optional[Iterable[str]] = None) -> List[Tuple[str, int]]:
    """Return backend sort keys, always ending in a total order.

    Without ``sort`` the default is datetime descending then id ascending.
    A requested sort gets ``id`` ascending appended unless ``id`` is already
    one of its keys.

    ``sortable_fields`` (default: the ``search.sortable_fields`` setting)
    lists the paths a client may sort on; when empty every property path is
    accepted and documents missing it sort as null.
    """
    if not request.sort:
        return list(DEFAULT_SORT)

    if sortable_fields is None:
        sortable_fields = SEARCH_SORTABLE_FIELDS
    allowed = {to_backend_field(path) for path in sortable_fields}
    if allowed:
        allowed.add(TIE_BREAK_FIELD)

    compiled: List[Tuple[str, int]] = []
    seen = set()
    for sort_field in request.sort:
        field = to_backend_field(sort_field.field, error_field="sort")
        if allowed and field not in allowed:
            raise ValidationError("sort", f"unknown sort field '{sort_field.field}'.")
        if field in seen:
            continue
        seen.add(field)
        compiled.append((field, DESCENDING if sort_field.direction == "desc" else ASCENDING))

    if TIE_BREAK_FIELD not in seen:
        compiled.append((TIE_BREAK_FIELD, ASCENDING))
    return compiled
