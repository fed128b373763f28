import unittest
from pathlib import Path

from stacsearch.commons.daos.memory_dao import InMemoryDAO
from stacsearch.commons.errors import ValidationError
from stacsearch.search.engine import SearchEngine
from stacsearch.search.hooks import SearchHooks

CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "catalog.json"
ENDPOINT = "http://localhost:5000"


class SearchEngineTest(unittest.TestCase):
    def setUp(self):
        self.engine = SearchEngine(InMemoryDAO(fixtures_path=str(CATALOG_PATH)))

    def test_three_matches_paged_by_two(self):
        params = {"collections": ["landsat-8-l1"], "limit": 2}
        first = self.engine.search(dict(params, page=1), method="POST", endpoint=ENDPOINT)
        assert first["context"] == {"page": 1, "limit": 2, "matched": 3, "returned": 2}
        assert "next" in [link["rel"] for link in first["links"]]

        second = self.engine.search(dict(params, page=2), method="POST", endpoint=ENDPOINT)
        assert second["numberReturned"] == 1
        assert "next" not in [link["rel"] for link in second["links"]]

        seen = [f["id"] for f in first["features"] + second["features"]]
        assert len(set(seen)) == 3

    def test_scope_conflict_is_empty(self):
        rs = self.engine.search({"collections": "collection2"}, collection_id="landsat-8-l1", endpoint=ENDPOINT)
        assert rs["features"] == []
        assert rs["context"]["matched"] == 0

    def test_links_built_before_projection(self):
        rs = self.engine.search(
            {"fields": {"include": ["properties.eo:cloud_cover"]}, "limit": 1}, method="POST", endpoint=ENDPOINT
        )
        next_link = [link for link in rs["links"] if link["rel"] == "next"][0]
        assert next_link["body"]["fields"] == {"include": ["properties.eo:cloud_cover"], "exclude": []}
        assert set(rs["features"][0]["properties"]) == {"eo:cloud_cover"}
        assert [link["rel"] for link in rs["features"][0]["links"]] == ["self", "parent", "collection", "root"]
        assert self.engine.dao.get_item("collection2", "collection2_item")["links"] == []

    def test_validation_error_stops_pipeline(self):
        with self.assertRaises(ValidationError) as ctx:
            self.engine.search({"query": {"eo:cloud_cover": {"between": [1, 2]}}}, method="POST")
        assert ctx.exception.field == "query.eo:cloud_cover.between"

    def test_pre_hook_rewrites_params(self):
        def only_collection2(envelope):
            envelope["params"]["collections"] = ["collection2"]
            return envelope

        engine = SearchEngine(self.engine.dao, hooks=SearchHooks(pre_hook=only_collection2))
        rs = engine.search({}, endpoint=ENDPOINT)
        assert {f["collection"] for f in rs["features"]} == {"collection2"}

    def test_limits_are_configurable(self):
        engine = SearchEngine(self.engine.dao, default_limit=1, max_limit=2)
        assert engine.search({})["context"]["limit"] == 1
        assert engine.search({"limit": 50})["context"]["limit"] == 2

    def test_sort_on_missing_property_orders_by_id(self):
        rs = self.engine.search({"sort": "not_in_any_item"}, endpoint=ENDPOINT)
        ids = [f["id"] for f in rs["features"]]
        assert ids == sorted(ids)

        engine = SearchEngine(self.engine.dao, sortable_fields=["eo:cloud_cover"])
        with self.assertRaises(ValidationError):
            engine.search({"sort": "not_in_any_item"})
