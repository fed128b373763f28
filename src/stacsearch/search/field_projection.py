"""Field projection engine.

Applies ``fields.include`` / ``fields.exclude`` to a record after retrieval.
Paths are dotted (``properties.eo:cloud_cover``) and are parsed into a
segment tree, so overlapping paths resolve by structure rather than by string
prefix matching:

1. Mandatory top-level fields are kept unless named exactly in ``exclude``.
2. With a non-empty ``include`` only included paths (and their descendants)
   plus the mandatory fields survive; ``exclude`` is applied afterwards and
   wins for the same path or any path below it.
3. With an empty ``include`` everything survives except excluded paths.
4. ``fields is None`` returns the record untouched.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from stacsearch.search.models import MANDATORY_FIELDS, FieldsSpec


class _Missing:
    def __repr__(self):
        return "<missing>"


_MISSING = _Missing()


class PathTree:
    """Trie of dotted path segments. A terminal node covers its whole subtree."""

    __slots__ = ("children", "terminal")

    def __init__(self):
        self.children: Dict[str, "PathTree"] = {}
        self.terminal = False

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> "PathTree":
        root = cls()
        for path in paths:
            root.add(path)
        return root

    def add(self, path: str) -> None:
        segments = [s for s in path.split(".") if s]
        if not segments:
            return
        node = self
        for segment in segments:
            if node.terminal:
                return
            node = node.children.setdefault(segment, PathTree())
        node.terminal = True
        node.children.clear()

    def __bool__(self) -> bool:
        return bool(self.children) or self.terminal

    def __repr__(self):
        return f"PathTree(terminal={self.terminal}, children={list(self.children)})"


def _select(value: Any, node: PathTree) -> Any:
    """Keep only the parts of ``value`` reachable through ``node``.

    Returns ``_MISSING`` when nothing under ``node`` exists in ``value``.
    """
    if node.terminal:
        return value
    if not isinstance(value, dict):
        return _MISSING
    selected = {}
    for key, child in node.children.items():
        if key not in value:
            continue
        kept = _select(value[key], child)
        if kept is not _MISSING:
            selected[key] = kept
    return selected if selected else _MISSING


def _drop(value: Any, node: PathTree) -> Any:
    """Remove every path covered by ``node`` from ``value``."""
    if not isinstance(value, dict):
        return value
    result = {}
    for key, item in value.items():
        child = node.children.get(key)
        if child is None:
            result[key] = item
        elif child.terminal:
            continue
        else:
            result[key] = _drop(item, child)
    return result


def project(record: Dict[str, Any], fields: Optional[FieldsSpec]) -> Dict[str, Any]:
    """Return ``record`` shaped by ``fields``."""
    if fields is None:
        return record

    include = [p for p in fields.include if p]
    exclude = [p for p in fields.exclude if p]

    if include:
        include_tree = PathTree.from_paths(include)
        for mandatory in MANDATORY_FIELDS:
            include_tree.add(mandatory)
        selected = _select(record, include_tree)
        result = selected if isinstance(selected, dict) else {}
    else:
        result = dict(record)

    if exclude:
        result = _drop(result, PathTree.from_paths(exclude))
    return result
