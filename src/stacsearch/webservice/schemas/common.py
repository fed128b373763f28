"""Shared request/response schemas for webservice endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchBody(BaseModel):
    """POST search payload.

    Fields are untyped: structured values may also arrive as JSON strings.
    The search engine validates them and reports failures as 400 responses
    naming the offending field.
    """

    model_config = ConfigDict(extra="allow")

    collections: Optional[Any] = Field(default=None, description="Collection ids (list or comma separated).")
    ids: Optional[Any] = Field(default=None, description="Item ids (list or comma separated).")
    bbox: Optional[Any] = Field(default=None, description="4 or 6 numbers: west, south, [min z], east, north, [max z].")
    intersects: Optional[Any] = Field(default=None, description="GeoJSON geometry, or its JSON string.")
    datetime: Optional[Any] = Field(default=None, description="RFC 3339 instant or 'start/end' interval.")
    query: Optional[Any] = Field(default=None, description="Property -> {operator: value}.")
    sort: Optional[Any] = Field(default=None, description="List of {field, direction}.")
    fields: Optional[Any] = Field(default=None, description="{include: [...], exclude: [...]}.")
    limit: Optional[Any] = Field(default=None, description="Page size.")
    page: Optional[Any] = Field(default=None, description="1-based page number.")


class SearchContext(BaseModel):
    """Paging metadata of a search response."""

    page: int
    limit: int
    matched: int
    returned: int


class SearchResponse(BaseModel):
    """GeoJSON FeatureCollection envelope for item searches."""

    model_config = ConfigDict(extra="allow")

    type: str = "FeatureCollection"
    features: List[Dict[str, Any]]
    numberMatched: int
    numberReturned: int
    context: SearchContext
    links: List[Dict[str, Any]]


class CollectionsResponse(BaseModel):
    """Collection list envelope."""

    collections: List[Dict[str, Any]]
    links: List[Dict[str, Any]]
    context: Dict[str, int]


class ErrorResponse(BaseModel):
    """Error response envelope."""

    detail: str
    field: Optional[str] = None
