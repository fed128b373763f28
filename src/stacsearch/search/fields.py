"""Mapping of client-facing property paths onto backend document fields."""

from stacsearch.commons.errors import ValidationError

TOP_LEVEL_FIELDS = ("id", "collection")
PROPERTIES_PREFIX = "properties."
RESERVED_ROOTS = ("geometry", "bbox", "assets", "links", "type", "stac_version", "stac_extensions")


def to_backend_field(path: str, error_field: str = "field") -> str:
    """Map a client path to the backend's flattened document field.

    ``id`` and ``collection`` are stored top-level, ``properties.*`` is kept
    as is, and every other bare name (including extension namespaces such as
    ``eo:cloud_cover``) lives under ``properties``.
    """
    if not isinstance(path, str) or not path.strip():
        raise ValidationError(error_field, "field path must be a non-empty string.")
    path = path.strip()
    if path.startswith("$") or ".." in path or path.endswith("."):
        raise ValidationError(error_field, f"unsupported field path '{path}'.")
    if path in TOP_LEVEL_FIELDS:
        return path
    if path.startswith(PROPERTIES_PREFIX):
        return path
    root = path.split(".", 1)[0]
    if root in RESERVED_ROOTS or root == "properties":
        raise ValidationError(error_field, f"unsupported field path '{path}'.")
    return PROPERTIES_PREFIX + path
