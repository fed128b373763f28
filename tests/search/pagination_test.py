import unittest
from urllib.parse import parse_qs, urlsplit

import orjson

from stacsearch.commons.daos.memory_dao import InMemoryDAO
from stacsearch.commons.errors import BackendError, BackendTimeoutError
from stacsearch.search.models import ResultPage
from stacsearch.search.pagination import build_links, canonical_params, encode_query_string, fetch_page
from stacsearch.search.request_normalizer import normalize_request

ENDPOINT = "https://stac.example.com/"


class StubDAO(InMemoryDAO):
    def __init__(self, result=None, error=None):
        super().__init__(items=[], collections=[])
        self.result = result
        self.error = error

    def search(self, filter, sort, offset, limit):
        if self.error is not None:
            raise self.error
        return self.result


def _items(n):
    return [{"id": f"item-{i}"} for i in range(n)]


class FetchPageTest(unittest.TestCase):
    def test_window_and_counts(self):
        dao = InMemoryDAO(items=[{"id": f"item-{i}", "collection": "c"} for i in range(3)], collections=[])
        request = normalize_request({"limit": 2, "page": 2})
        page = fetch_page(dao, {}, [("id", 1)], request)
        assert [i["id"] for i in page.items] == ["item-2"]
        assert page.matched == 3
        assert page.offset == 2
        assert not page.has_next

    def test_backend_errors_become_generic(self):
        request = normalize_request({})
        with self.assertRaises(BackendError) as ctx:
            fetch_page(StubDAO(error=RuntimeError("connection string leaked")), {}, [], request)
        assert "leaked" not in str(ctx.exception)

        with self.assertRaises(BackendTimeoutError):
            fetch_page(StubDAO(error=BackendTimeoutError()), {}, [], request)

    def test_malformed_backend_answers(self):
        request = normalize_request({})
        for result in (None, ([{"id": "a"}], "many"), (["not-a-doc"], 1)):
            with self.assertRaises(BackendError):
                fetch_page(StubDAO(result=result), {}, [], request)

    def test_overlong_answer_trimmed_and_count_raised(self):
        request = normalize_request({"limit": 2})
        page = fetch_page(StubDAO(result=(_items(3), 1)), {}, [], request)
        assert page.returned == 2
        assert page.matched == 2
        assert not page.has_next


class LinksTest(unittest.TestCase):
    def test_get_links_reencode_full_state(self):
        request = normalize_request(
            {
                "collections": "c1,c2",
                "bbox": "-10,-5,10.5,5",
                "datetime": "2015-01-01T00:00:00Z/..",
                "query": '{"eo:cloud_cover": {"lt": 10}}',
                "sort": "-eo:cloud_cover",
                "fields": "id,-geometry",
                "limit": "2",
                "page": "2",
            }
        )
        page = ResultPage(items=_items(2), matched=10, offset=2)
        links = {link["rel"]: link for link in build_links(request, page, ENDPOINT)}
        assert set(links) == {"self", "root", "prev", "next"}
        assert links["root"]["href"] == "https://stac.example.com/"
        assert links["self"]["href"].startswith("https://stac.example.com/search?collections=c1%2Cc2")

        parts = urlsplit(links["next"]["href"])
        assert parts.path == "/search"
        qs = {k: v[0] for k, v in parse_qs(parts.query).items()}
        assert qs["page"] == "3"
        assert qs["limit"] == "2"
        assert qs["collections"] == "c1,c2"
        assert qs["bbox"] == "-10,-5,10.5,5"
        assert qs["datetime"] == "2015-01-01T00:00:00Z/.."
        assert orjson.loads(qs["query"]) == {"eo:cloud_cover": {"lt": 10}}
        assert orjson.loads(qs["sort"]) == [{"field": "eo:cloud_cover", "direction": "desc"}]
        assert orjson.loads(qs["fields"]) == {"include": ["id"], "exclude": ["geometry"]}

        prev_qs = parse_qs(urlsplit(links["prev"]["href"]).query)
        assert prev_qs["page"] == ["1"]

    def test_post_links_carry_body(self):
        body = {"ids": ["a", "b"], "limit": 1}
        request = normalize_request(body, method="POST")
        page = ResultPage(items=_items(1), matched=2, offset=0)
        links = {link["rel"]: link for link in build_links(request, page, ENDPOINT)}
        assert links["self"]["method"] == "POST"
        assert links["self"]["body"] == body
        assert links["next"] == {
            "rel": "next",
            "href": "https://stac.example.com/search",
            "type": "application/geo+json",
            "method": "POST",
            "body": {"ids": ["a", "b"], "limit": 1, "page": 2},
            "merge": False,
        }

    def test_no_next_on_last_page(self):
        request = normalize_request({"limit": 2})
        page = ResultPage(items=_items(2), matched=2, offset=0)
        rels = [link["rel"] for link in build_links(request, page, ENDPOINT)]
        assert rels == ["self", "root"]

    def test_scoped_links(self):
        request = normalize_request({"limit": 1}, collection_id="c1")
        page = ResultPage(items=_items(1), matched=3, offset=0)
        links = {link["rel"]: link for link in build_links(request, page, ENDPOINT)}
        assert links["collection"]["href"] == "https://stac.example.com/collections/c1"
        assert links["next"]["href"] == "https://stac.example.com/collections/c1/items?limit=1&page=2"

    def test_canonical_params_and_encoding(self):
        request = normalize_request({"ids": "a", "bbox": "0,0,1,1"})
        params = canonical_params(request, 1)
        assert params == {"ids": ["a"], "bbox": [0.0, 0.0, 1.0, 1.0], "limit": 10, "page": 1}
        assert encode_query_string(params) == "ids=a&bbox=0%2C0%2C1%2C1&limit=10&page=1"
