import unittest

from stacsearch.commons.errors import ValidationError
from stacsearch.search.fields import to_backend_field
from stacsearch.search.filter_compiler import compile_bbox, compile_filter, compile_query_predicates
from stacsearch.search.request_normalizer import normalize_request


def _box(west, south, east, north):
    return {
        "geometry": {
            "$geoIntersects": {
                "$geometry": {
                    "type": "Polygon",
                    "coordinates": [[[west, south], [east, south], [east, north], [west, north], [west, south]]],
                    "crs": {"type": "name", "properties": {"name": "urn:x-mongodb:crs:strictwinding:EPSG:4326"}},
                }
            }
        }
    }


class FieldMappingTest(unittest.TestCase):
    def test_field_paths(self):
        assert to_backend_field("id") == "id"
        assert to_backend_field("collection") == "collection"
        assert to_backend_field("eo:cloud_cover") == "properties.eo:cloud_cover"
        assert to_backend_field("properties.datetime") == "properties.datetime"
        assert to_backend_field("view.sun_elevation") == "properties.view.sun_elevation"

    def test_rejected_paths(self):
        for path in ("", "geometry", "assets.B1.href", "properties", "$where", "a..b", "a."):
            with self.assertRaises(ValidationError):
                to_backend_field(path, error_field="sort")


class FilterCompilerTest(unittest.TestCase):
    def test_empty_request_compiles_to_empty_filter(self):
        assert compile_filter(normalize_request({})) == {}

    def test_single_clause_is_not_wrapped(self):
        assert compile_filter(normalize_request({"ids": "a,b"})) == {"id": {"$in": ["a", "b"]}}

    def test_all_dimensions_are_anded(self):
        request = normalize_request(
            {
                "collections": ["c1"],
                "ids": ["i1"],
                "bbox": [0, 0, 1, 1],
                "datetime": "2015-01-01T00:00:00Z",
                "query": {"eo:cloud_cover": {"lt": 10}},
            },
            method="POST",
        )
        compiled = compile_filter(request)
        assert list(compiled) == ["$and"]
        clauses = compiled["$and"]
        assert clauses[0] == {"id": {"$in": ["i1"]}}
        assert clauses[1] == {"collection": {"$in": ["c1"]}}
        assert clauses[2] == _box(0.0, 0.0, 1.0, 1.0)
        assert clauses[3]["$or"][0] == {"properties.datetime": "2015-01-01T00:00:00.000000Z"}
        assert clauses[4] == {"properties.eo:cloud_cover": {"$lt": 10}}

    def test_scope_mismatch_compiles_to_empty_membership(self):
        request = normalize_request({"collections": "c2"}, collection_id="c1")
        assert compile_filter(request) == {"collection": {"$in": []}}

    def test_intersects_wins_over_bbox(self):
        point = {"type": "Point", "coordinates": [5, 5]}
        request = normalize_request({"bbox": [0, 0, 1, 1], "intersects": point}, method="POST")
        assert compile_filter(request) == {"geometry": {"$geoIntersects": {"$geometry": point}}}

    def test_bbox_3d_uses_horizontal_extent(self):
        assert compile_bbox([0, 1, -5, 2, 3, 50]) == _box(0, 1, 2, 3)

    def test_bbox_across_antimeridian_is_split(self):
        assert compile_bbox([170, -10, -170, 10]) == {"$or": [_box(170, -10, 180.0, 10), _box(-180.0, -10, -170, 10)]}

    def test_world_bbox_is_split_into_quarters(self):
        assert compile_bbox([-180, -90, 180, 90]) == {
            "$or": [_box(-180, -90, -90, 90), _box(-90, -90, 0, 90), _box(0, -90, 90, 90), _box(90, -90, 180, 90)]
        }

    def test_wide_bbox_keeps_the_requested_side(self):
        compiled = compile_bbox([-170, -10, 170, 10])
        assert compiled == {
            "$or": [_box(-170, -10, -80, 10), _box(-80, -10, 10, 10), _box(10, -10, 100, 10), _box(100, -10, 170, 10)]
        }
        for clause in compiled["$or"]:
            ring = clause["geometry"]["$geoIntersects"]["$geometry"]["coordinates"][0]
            west, east = ring[0][0], ring[1][0]
            assert -170 <= west < east <= 170
            assert east - west <= 90

    def test_datetime_interval_covers_extents(self):
        request = normalize_request({"datetime": "2015-01-01T00:00:00Z/.."})
        assert compile_filter(request) == {
            "$or": [
                {"properties.datetime": {"$gte": "2015-01-01T00:00:00.000000Z"}},
                {"properties.end_datetime": {"$gte": "2015-01-01T00:00:00.000000Z"}},
            ]
        }

    def test_query_operators(self):
        clauses = compile_query_predicates(
            {
                "platform": {"startsWith": "landsat", "neq": "landsat-7"},
                "landsat:wrs_path": {"in": ["10", "11"]},
                "title": {"contains": "a.b", "endsWith": "x"},
                "eo:cloud_cover": {"gte": 0, "lte": 50},
                "id": {"eq": "abc"},
            }
        )
        assert {"properties.platform": {"$regex": "^landsat"}} in clauses
        assert {"properties.platform": {"$ne": "landsat-7"}} in clauses
        assert {"properties.landsat:wrs_path": {"$in": ["10", "11"]}} in clauses
        assert {"properties.title": {"$regex": "a\\.b"}} in clauses
        assert {"properties.title": {"$regex": "x$"}} in clauses
        assert {"properties.eo:cloud_cover": {"$gte": 0}} in clauses
        assert {"properties.eo:cloud_cover": {"$lte": 50}} in clauses
        assert {"id": {"$eq": "abc"}} in clauses
        assert len(clauses) == 8

    def test_query_operator_errors_name_the_field(self):
        cases = {
            "like": 1,
            "in": "10",
            "lt": True,
            "startsWith": 5,
            "eq": {"nested": 1},
        }
        for op, value in cases.items():
            with self.assertRaises(ValidationError) as ctx:
                compile_query_predicates({"eo:cloud_cover": {op: value}})
            assert ctx.exception.field == f"query.eo:cloud_cover.{op}"

    def test_query_on_reserved_path_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            compile_query_predicates({"geometry": {"eq": 1}})
        assert ctx.exception.field == "query.geometry"
