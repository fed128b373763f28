"""Search request compilation and result shaping."""

from stacsearch.search.engine import SearchEngine
from stacsearch.search.field_projection import project
from stacsearch.search.filter_compiler import QueryOperator, compile_filter
from stacsearch.search.models import DatetimeFilter, FieldsSpec, ResultPage, SearchRequest, SortField
from stacsearch.search.request_normalizer import normalize_request
from stacsearch.search.sort_compiler import compile_sort

__all__ = [
    "DatetimeFilter",
    "FieldsSpec",
    "QueryOperator",
    "ResultPage",
    "SearchEngine",
    "SearchRequest",
    "SortField",
    "compile_filter",
    "compile_sort",
    "normalize_request",
    "project",
]
