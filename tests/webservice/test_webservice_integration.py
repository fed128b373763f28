"""Integration test for the search routes backed by a real MongoDB."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

import orjson
import pytest
from fastapi.testclient import TestClient

from stacsearch.commons.daos.docdb_dao_base import DocumentDBDAO
from stacsearch.commons.errors import BackendError
from stacsearch.commons.utils import to_rfc3339
from stacsearch.configs import DB_BACKEND
from stacsearch.webservice.main import create_app

pytestmark = pytest.mark.skipif(DB_BACKEND != "mongodb", reason="MongoDB backend is not configured")

CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "catalog.json"


def _canonical(item: dict) -> dict:
    props = item["properties"]
    for key in ("datetime", "start_datetime", "end_datetime"):
        if props.get(key) is not None:
            props[key] = to_rfc3339(props[key])
    return item


@pytest.fixture
def seeded_dao():
    dao = DocumentDBDAO.get_instance()
    suffix = uuid4().hex[:8]
    catalog = orjson.loads(CATALOG_PATH.read_bytes())
    collections = [dict(c, id=f"{c['id']}-{suffix}") for c in catalog["collections"]]
    items = [_canonical(dict(i, collection=f"{i['collection']}-{suffix}")) for i in catalog["items"]]
    try:
        dao.load(items=items, collections=collections)
    except BackendError:
        dao.close()
        pytest.skip("MongoDB is not reachable.")
    yield dao, suffix
    dao._items.delete_many({"collection": {"$regex": f"-{suffix}$"}})
    dao._collections.delete_many({"id": {"$regex": f"-{suffix}$"}})
    dao.close()


def test_search_end_to_end_with_mongodb(seeded_dao):
    _, suffix = seeded_dao
    landsat = f"landsat-8-l1-{suffix}"
    client = TestClient(create_app())

    rs = client.post("/search", json={"collections": [landsat], "limit": 2})
    assert rs.status_code == 200
    body = rs.json()
    assert body["context"]["matched"] == 3
    assert [f["id"] for f in body["features"]] == ["LC80120102015100LGN00", "LC80100102015082LGN00"]
    assert "_id" not in body["features"][0]

    next_link = {link["rel"]: link for link in body["links"]}["next"]
    rs = client.post("/search", json=next_link["body"])
    assert [f["id"] for f in rs.json()["features"]] == ["LC80100102015050LGN00"]

    rs = client.post(
        "/search",
        json={"collections": [landsat], "query": {"landsat:wrs_path": {"in": ["10", "11", "13"]}}},
    )
    assert sorted(f["id"] for f in rs.json()["features"]) == ["LC80100102015050LGN00", "LC80100102015082LGN00"]

    rs = client.get(f"/collections/{landsat}/items", params={"bbox": "-51,73,-50,74"})
    assert rs.json()["context"]["matched"] == 2

    rs = client.get(f"/collections/{landsat}/items/LC80100102015082LGN00")
    assert rs.status_code == 200


def test_wide_bboxes_and_collection_properties_with_mongodb(seeded_dao):
    dao, suffix = seeded_dao
    client = TestClient(create_app())

    rs = client.get("/search", params={"bbox": "-180,-90,180,90", "collections": f"landsat-8-l1-{suffix}"})
    assert rs.status_code == 200
    assert rs.json()["context"]["matched"] == 3

    rs = client.get("/search", params={"bbox": "-170,-10,169,10", "collections": f"collection2-{suffix}"})
    assert rs.status_code == 200
    assert rs.json()["context"]["matched"] == 0

    props = f"props-{suffix}"
    dao.load(
        items=[{"id": "a", "collection": props, "type": "Feature", "geometry": None, "properties": {"datetime": None}}],
        collections=[{"id": props, "properties": {"platform": "platform2"}}],
    )
    rs = client.post("/search", json={"collections": [props], "query": {"platform": {"eq": "platform2"}}})
    assert [f["id"] for f in rs.json()["features"]] == ["a"]
    assert rs.json()["features"][0]["properties"]["platform"] == "platform2"
