"""Optional pre/post search hooks.

A hook is a callable configured by dotted path (``package.module:function``).
The pre-hook receives and returns the inbound envelope
``{"method", "params", "collection_id"}``; the post-hook receives and returns
the outbound FeatureCollection. Any failure becomes a generic
:class:`~stacsearch.commons.errors.HookError`; details are only logged.
"""

from __future__ import annotations

import importlib
from typing import Any, Callable, Dict, Optional

from stacsearch.commons.errors import HookError
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.configs import POST_HOOK, PRE_HOOK

Hook = Callable[[Dict[str, Any]], Dict[str, Any]]


def load_hook(path: Optional[str]) -> Optional[Hook]:
    """Import the callable at ``module:attribute`` (or ``module.attribute``)."""
    if not path:
        return None
    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, _, attr = path.rpartition(".")
    try:
        hook = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError, ValueError) as e:
        StacLogger().error(f"Failed to load hook '{path}'.")
        StacLogger().exception(e)
        raise HookError() from e
    if not callable(hook):
        StacLogger().error(f"Configured hook '{path}' is not callable.")
        raise HookError()
    return hook


class SearchHooks(object):
    """Pass-through request/response transforms around the search pipeline."""

    def __init__(self, pre_hook: Optional[Hook] = None, post_hook: Optional[Hook] = None):
        self.pre_hook = pre_hook
        self.post_hook = post_hook

    @classmethod
    def from_settings(cls) -> "SearchHooks":
        return cls(pre_hook=load_hook(PRE_HOOK), post_hook=load_hook(POST_HOOK))

    @staticmethod
    def _invoke(name: str, hook: Hook, envelope: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = hook(envelope)
        except Exception as e:
            StacLogger().error(f"{name} failed.")
            StacLogger().exception(e)
            raise HookError() from e
        if not isinstance(result, dict):
            StacLogger().error(f"{name} returned {type(result).__name__}, expected a dict.")
            raise HookError()
        return result

    def before(self, envelope: Dict[str, Any]) -> Dict[str, Any]:
        if self.pre_hook is None:
            return envelope
        result = self._invoke("Pre-hook", self.pre_hook, envelope)
        if not isinstance(result.get("params", {}), dict):
            StacLogger().error("Pre-hook returned an envelope without a 'params' object.")
            raise HookError()
        return result

    def after(self, response: Dict[str, Any]) -> Dict[str, Any]:
        if self.post_hook is None:
            return response
        return self._invoke("Post-hook", self.post_hook, response)
