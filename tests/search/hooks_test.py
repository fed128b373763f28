import json
import os
import unittest

from stacsearch.commons.errors import HookError
from stacsearch.search.hooks import SearchHooks, load_hook


def add_marker(response):
    response["marker"] = True
    return response


class HooksTest(unittest.TestCase):
    def test_load_hook_by_colon_and_dotted_path(self):
        assert load_hook("json:dumps") is json.dumps
        assert load_hook("os.path.join") is os.path.join
        assert load_hook(None) is None
        assert load_hook("") is None

    def test_load_hook_failures(self):
        for path in ("no_such_module_xyz:hook", "os.path:no_such_attr", "os:sep"):
            with self.assertRaises(HookError):
                load_hook(path)

    def test_no_hooks_pass_through(self):
        hooks = SearchHooks()
        envelope = {"method": "GET", "params": {}, "collection_id": None}
        assert hooks.before(envelope) is envelope
        assert hooks.after({"a": 1}) == {"a": 1}

    def test_hooks_transform(self):
        hooks = SearchHooks(pre_hook=lambda e: dict(e, method="POST"), post_hook=add_marker)
        assert hooks.before({"method": "GET", "params": {}})["method"] == "POST"
        assert hooks.after({})["marker"] is True

    def test_hook_failures_are_generic(self):
        def explode(_):
            raise RuntimeError("internal detail")

        with self.assertRaises(HookError) as ctx:
            SearchHooks(pre_hook=explode).before({"params": {}})
        assert str(ctx.exception) == "Internal Server Error"

        with self.assertRaises(HookError):
            SearchHooks(post_hook=lambda r: None).after({})
        with self.assertRaises(HookError):
            SearchHooks(pre_hook=lambda e: {"params": "x"}).before({"params": {}})
