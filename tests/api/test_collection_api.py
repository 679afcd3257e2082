"""Tests for the collection and document endpoints."""
import json
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError


def _create_tasks(client, headers):
    response = client.post("/collections", json={"collectionName": "tasks"}, headers=headers)
    assert response.status_code == 200
    return response


def test_health_check(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_end_to_end_tasks_scenario(client, tenant_headers):
    response = _create_tasks(client, tenant_headers)
    assert response.json()["collection_name"] == "org1_tasks"

    for document in ({"title": "A", "done": False}, {"title": "B", "done": None}):
        response = client.post("/collections/tasks/documents", json=document, headers=tenant_headers)
        assert response.status_code == 200
        assert ObjectId.is_valid(response.json()["id"])

    schema = client.get("/collections/tasks/schema", headers=tenant_headers).json()
    assert schema["documents_sampled"] == 2
    assert schema["fields"]["title"]["types"] == ["string"]
    assert schema["fields"]["title"]["nullable"] is False
    assert schema["fields"]["done"]["types"] == ["boolean", "null"]
    assert schema["fields"]["done"]["nullable"] is True
    assert schema["fields"]["done"]["examples"] == [False]

    page = client.get("/collections/tasks/documents", params={"page": 1, "limit": 1}, headers=tenant_headers).json()
    assert len(page["data"]) == 1
    assert page["pagination"]["total"] == 2
    assert page["pagination"]["pages"] == 2
    # newest first by default
    assert page["data"][0]["title"] == "B"


def test_missing_tenant_header(client):
    response = client.get("/collections")

    assert response.status_code == 401
    assert response.json() == {"error": "Organization ID required", "kind": "missing_tenant"}


def test_invalid_collection_name(client, tenant_headers):
    response = client.post("/collections", json={"collectionName": "my tasks"}, headers=tenant_headers)

    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_name"


@pytest.mark.parametrize("body", [{}, {"collectionName": None}, {"collectionName": ""}, {"collectionName": 123}])
def test_missing_or_non_string_collection_name(client, tenant_headers, body):
    response = client.post("/collections", json=body, headers=tenant_headers)

    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_name"


def test_duplicate_collection(client, tenant_headers):
    _create_tasks(client, tenant_headers)

    response = client.post("/collections", json={"collectionName": "tasks"}, headers=tenant_headers)

    assert response.status_code == 409
    assert response.json()["kind"] == "duplicate"


def test_list_collections_is_tenant_scoped(client, tenant_headers):
    _create_tasks(client, tenant_headers)
    client.post("/collections", json={"collectionName": "tasks", "initialData": [{"x": 1}]}, headers={"X-Org-Id": "org2"})

    body = client.get("/collections", headers=tenant_headers).json()

    assert [c["name"] for c in body["collections"]] == ["tasks"]
    assert body["collections"][0]["full_name"] == "org1_tasks"
    assert body["collections"][0]["count"] == 0
    assert body["metadata"] == {"org_id": "org1", "collections": ["tasks"]}

    other = client.get("/collections", headers={"X-Org-Id": "org2"}).json()
    assert other["collections"][0]["count"] == 1


def test_list_collections_with_schema(client, tenant_headers):
    client.post("/collections", json={"collectionName": "tasks", "initialData": [{"title": "A"}]}, headers=tenant_headers)

    body = client.get("/collections", params={"include_schema": "true"}, headers=tenant_headers).json()

    assert body["collections"][0]["schema"]["title"]["types"] == ["string"]


def test_delete_collection_is_idempotent(client, tenant_headers):
    _create_tasks(client, tenant_headers)

    assert client.delete("/collections/tasks", headers=tenant_headers).status_code == 200
    assert client.delete("/collections/tasks", headers=tenant_headers).status_code == 200


def test_document_crud(client, tenant_headers):
    _create_tasks(client, tenant_headers)
    doc_id = client.post("/collections/tasks/documents", json={"title": "A"}, headers=tenant_headers).json()["id"]

    response = client.get(f"/collections/tasks/documents/{doc_id}", headers=tenant_headers)
    assert response.json()["document"] == {"_id": doc_id, "title": "A"}

    response = client.put(f"/collections/tasks/documents/{doc_id}", json={"_id": "x", "title": "B"}, headers=tenant_headers)
    assert response.status_code == 200
    assert response.json()["matched_count"] == 1
    assert client.get(f"/collections/tasks/documents/{doc_id}", headers=tenant_headers).json()["document"]["title"] == "B"

    response = client.delete(f"/collections/tasks/documents/{doc_id}", headers=tenant_headers)
    assert response.json()["deleted_count"] == 1


def test_single_document_not_found(client, tenant_headers):
    missing = str(ObjectId())

    assert client.get(f"/collections/tasks/documents/{missing}", headers=tenant_headers).status_code == 404
    assert client.put(f"/collections/tasks/documents/{missing}", json={"a": 1}, headers=tenant_headers).status_code == 404
    response = client.delete(f"/collections/tasks/documents/{missing}", headers=tenant_headers)
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


def test_other_tenant_cannot_read_document(client, tenant_headers):
    _create_tasks(client, tenant_headers)
    doc_id = client.post("/collections/tasks/documents", json={"title": "A"}, headers=tenant_headers).json()["id"]

    response = client.get(f"/collections/tasks/documents/{doc_id}", headers={"X-Org-Id": "org2"})

    assert response.status_code == 404


def test_bulk_update_and_delete(client, tenant_headers):
    client.post("/collections/tasks/import", json={"data": [
        {"title": "A", "done": False},
        {"title": "B", "done": False},
        {"title": "C", "done": True},
    ]}, headers=tenant_headers)

    response = client.put("/collections/tasks/documents", json={
        "bulk": True, "filter": {"done": False}, "update": {"done": True}
    }, headers=tenant_headers)
    assert response.json()["modified_count"] == 2

    response = client.delete(
        "/collections/tasks/documents",
        params={"bulk": "true", "filter": json.dumps({"title": "A"})},
        headers=tenant_headers
    )
    assert response.json()["deleted_count"] == 1


def test_bulk_paths_require_explicit_flag(client, tenant_headers):
    client.post("/collections/tasks/import", json={"data": [{"title": "A"}]}, headers=tenant_headers)

    response = client.put("/collections/tasks/documents", json={"filter": {"title": "A"}, "update": {"title": "B"}}, headers=tenant_headers)
    assert response.status_code == 400

    response = client.delete("/collections/tasks/documents", params={"filter": json.dumps({"title": "A"})}, headers=tenant_headers)
    assert response.status_code == 400

    response = client.delete("/collections/tasks/documents", params={"bulk": "true", "filter": "{oops"}, headers=tenant_headers)
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_payload"


def test_import(client, tenant_headers):
    response = client.post("/collections/tasks/import", json={"data": [{"title": "A"}, {"title": "B"}]}, headers=tenant_headers)

    body = response.json()
    assert body["inserted_count"] == 2
    assert len(body["inserted_ids"]) == 2

    assert client.post("/collections/tasks/import", json={"data": []}, headers=tenant_headers).status_code == 400


def test_page_with_malformed_filter_returns_everything(client, tenant_headers):
    client.post("/collections/tasks/import", json={"data": [{"title": "A"}, {"title": "B"}]}, headers=tenant_headers)

    response = client.get("/collections/tasks/documents", params={"filter": "{broken", "sort": "nope"}, headers=tenant_headers)

    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 2


def test_invalid_sort_direction_and_huge_page_fall_back(client, tenant_headers):
    client.post("/collections/tasks/import", json={"data": [{"title": "A"}, {"title": "B"}]}, headers=tenant_headers)

    response = client.get(
        "/collections/tasks/documents",
        params={"sort": json.dumps({"title": None}), "page": "99999999999999999999"},
        headers=tenant_headers
    )

    assert response.status_code == 200
    assert [d["title"] for d in response.json()["data"]] == ["B", "A"]
    assert response.json()["pagination"]["page"] == 1

    response = client.get("/collections/tasks/export", params={"sort": json.dumps({"title": None})}, headers=tenant_headers)
    assert response.status_code == 200


def test_table_data_uses_larger_default_page(client, tenant_headers):
    client.post("/collections/tasks/import", json={"data": [{"n": i} for i in range(30)]}, headers=tenant_headers)

    table = client.get("/collections/tasks/data", headers=tenant_headers).json()
    documents = client.get("/collections/tasks/documents", headers=tenant_headers).json()

    assert table["pagination"]["limit"] == 25
    assert len(table["data"]) == 25
    assert documents["pagination"]["limit"] == 20


def test_search_filters_page(client, tenant_headers):
    client.post("/collections/tasks/import", json={"data": [{"title": "buy milk"}, {"title": "walk dog"}]}, headers=tenant_headers)

    response = client.get("/collections/tasks/documents", params={"search": "milk", "filter": json.dumps({"title": "walk dog"})}, headers=tenant_headers)

    assert [d["title"] for d in response.json()["data"]] == ["buy milk"]


def test_aggregate(client, tenant_headers):
    client.post("/collections/tasks/import", json={"data": [{"done": True}, {"done": False}]}, headers=tenant_headers)

    response = client.post("/collections/tasks/aggregate", json={"pipeline": [{"$match": {"done": True}}, {"$count": "n"}]}, headers=tenant_headers)
    assert response.json() == {"results": [{"n": 1}], "count": 1}

    response = client.post("/collections/tasks/aggregate", json={"pipeline": [{"$lookup": {"from": "org2_tasks"}}]}, headers=tenant_headers)
    assert response.status_code == 400


def test_export_stream(client, tenant_headers):
    client.post("/collections/tasks/import", json={"data": [{"n": i} for i in range(3)]}, headers=tenant_headers)

    response = client.get("/collections/tasks/export", params={"batch_size": 2}, headers=tenant_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = [line[len("event: "):] for line in response.text.splitlines() if line.startswith("event: ")]
    assert events == ["metadata", "batch", "batch", "complete"]


def test_store_failure_maps_to_500(client, tenant_headers, fake_db):
    fake_db.list_collection_names = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

    response = client.get("/collections", headers=tenant_headers)

    assert response.status_code == 500
    assert response.json()["kind"] == "store_unavailable"


def test_client_closed_on_shutdown(app, mongodb_client):
    from fastapi.testclient import TestClient

    with TestClient(app):
        assert app.state.mongodb_client is mongodb_client

    assert mongodb_client.closed is True
