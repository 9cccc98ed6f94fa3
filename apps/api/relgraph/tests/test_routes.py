from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from relgraph.main import app


client = TestClient(app)
HEADERS = {"X-Tenant-Id": "tenant-1", "X-Actor-Id": "user-1"}


def _seed(make_contact) -> None:  # noqa: ANN001
    make_contact("tenant-1", "a", company="Acme", primary_email="a@acme.com", city="Austin", state="TX")
    make_contact("tenant-1", "b", company="Acme", primary_email="b@acme.com", city="Austin", state="TX")
    make_contact("tenant-1", "c", company="Globex")
    make_contact("tenant-2", "z", company="Acme")


def _create(contact_id: str, related_contact_id: str, **attrs) -> dict:
    payload = {"contact_id": contact_id, "related_contact_id": related_contact_id, "relationship_type": "COLLEAGUE"}
    payload.update(attrs)
    response = client.post("/v1/relationships", json=payload, headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


def test_health() -> None:
    response = client.get("/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] == "ok"


def test_relationship_routes_require_tenant_header(db, make_contact) -> None:
    _seed(make_contact)

    response = client.get("/v1/relationships/contact/a")

    assert response.status_code == 401


def test_create_relationship_and_domain_errors(db, make_contact) -> None:
    _seed(make_contact)
    edge = _create("a", "b", strength=0.7)

    assert edge["strength"] == 0.7
    assert edge["contact"]["id"] == "a"

    duplicate = client.post(
        "/v1/relationships",
        json={"contact_id": "b", "related_contact_id": "a", "relationship_type": "FRIEND"},
        headers=HEADERS,
    )
    assert duplicate.status_code == 409
    assert duplicate.json() == {"detail": "Relationship already exists"}

    self_loop = client.post(
        "/v1/relationships",
        json={"contact_id": "a", "related_contact_id": "a", "relationship_type": "FRIEND"},
        headers=HEADERS,
    )
    assert self_loop.status_code == 400

    cross_tenant = client.post(
        "/v1/relationships",
        json={"contact_id": "a", "related_contact_id": "z", "relationship_type": "FRIEND"},
        headers=HEADERS,
    )
    assert cross_tenant.status_code == 404

    bad_type = client.post(
        "/v1/relationships",
        json={"contact_id": "a", "related_contact_id": "c", "relationship_type": "NEMESIS"},
        headers=HEADERS,
    )
    assert bad_type.status_code == 422


def test_update_and_delete_relationship(db, make_contact) -> None:
    _seed(make_contact)
    edge = _create("a", "b")

    updated = client.put(f"/v1/relationships/{edge['id']}", json={"strength": 0.95}, headers=HEADERS)
    assert updated.status_code == 200
    assert updated.json()["strength"] == 0.95

    other_tenant = client.delete(f"/v1/relationships/{edge['id']}", headers={"X-Tenant-Id": "tenant-2"})
    assert other_tenant.status_code == 404

    deleted = client.delete(f"/v1/relationships/{edge['id']}", headers=HEADERS)
    assert deleted.status_code == 204
    assert client.get("/v1/relationships/contact/a", headers=HEADERS).json()["total_relationships"] == 0


def test_contact_relationships_with_analytics(db, make_contact) -> None:
    _seed(make_contact)
    _create("a", "b")
    _create("c", "a")
    client.get("/v1/relationships/analytics/network/a", headers=HEADERS)

    response = client.get("/v1/relationships/contact/a", params={"include_analytics": "true"}, headers=HEADERS)

    body = response.json()
    assert response.status_code == 200
    assert body["total_relationships"] == 2
    assert len(body["relationships"]) == 1
    assert len(body["related_to"]) == 1
    assert body["analytics"]["direct_connections"] == 2

    neighbors = client.get("/v1/relationships/contact/a/neighbors", headers=HEADERS).json()
    assert sorted(item["other_contact"]["id"] for item in neighbors["neighbors"]) == ["b", "c"]


def test_path_and_mutual_routes(db, make_contact) -> None:
    _seed(make_contact)
    _create("a", "b", strength=0.9)
    _create("b", "c", strength=0.4)

    path = client.get("/v1/relationships/path/a/c", headers=HEADERS).json()
    assert path["degrees"] == 2
    assert [contact["id"] for contact in path["path"]] == ["a", "b", "c"]

    mutual = client.get("/v1/relationships/mutual/a/c", headers=HEADERS).json()
    assert [contact["id"] for contact in mutual["mutual_connections"]] == ["b"]

    ranked = client.get("/v1/network/paths/a/c", params={"min_strength": 0.5}, headers=HEADERS).json()
    assert ranked["paths_found"] == 0
    assert ranked["search_params"]["max_degrees"] == 4

    to_self = client.get("/v1/network/paths/a/a", headers=HEADERS).json()
    assert to_self["paths_found"] == 1
    assert to_self["paths"][0]["path_length"] == 0

    missing = client.get("/v1/relationships/path/a/z", headers=HEADERS)
    assert missing.status_code == 404


def test_network_overview_routes(db, make_contact) -> None:
    _seed(make_contact)
    _create("a", "b", strength=0.9)

    graph = client.get("/v1/network/graph", headers=HEADERS).json()
    assert graph["stats"]["total_nodes"] == 3
    assert graph["stats"]["total_edges"] == 1
    assert graph["stats"]["network_density"] == pytest.approx(1 / 3)

    clusters = client.get("/v1/network/clusters", headers=HEADERS).json()
    assert clusters["total_clusters"] == 1
    assert clusters["largest_cluster"]["name"] == "Acme"
    assert clusters["largest_cluster"]["connections"] == 1
    assert clusters["largest_cluster"]["density"] == pytest.approx(1.0)
    assert clusters["largest_cluster"]["avg_strength"] == pytest.approx(0.9)

    client.post("/v1/admin/recompute_analytics", headers=HEADERS)
    influence = client.get("/v1/network/influence", headers=HEADERS).json()
    assert len(influence["influence_data"]) == 3


def test_discovery_review_flow(db, make_contact) -> None:
    _seed(make_contact)

    discovered = client.post("/v1/discovery/contacts/a", headers=HEADERS)
    assert discovered.status_code == 200
    assert discovered.json()["total_discovered"] == 1

    candidates = client.get("/v1/discovery/candidates", headers=HEADERS).json()
    assert candidates["pagination"]["total"] == 1
    candidate = candidates["potential_relationships"][0]
    assert candidate["related_contact_id"] == "b"
    assert candidate["evidence"][0]["type"] == "same_company"

    approved = client.post(f"/v1/discovery/candidates/{candidate['id']}/approve", headers=HEADERS)
    assert approved.status_code == 200
    assert approved.json()["source"] == "discovery_approved"

    again = client.post(f"/v1/discovery/candidates/{candidate['id']}/reject", headers=HEADERS)
    assert again.status_code == 409

    approved_list = client.get("/v1/discovery/candidates", params={"status": "APPROVED"}, headers=HEADERS).json()
    assert approved_list["potential_relationships"][0]["reviewed_by"] == "user-1"


def test_batch_discovery_routes(db, make_contact) -> None:
    _seed(make_contact)

    started = client.post("/v1/discovery/batch", headers=HEADERS)
    assert started.status_code == 202
    job_id = started.json()["job_id"]

    job = client.get(f"/v1/discovery/jobs/{job_id}", headers=HEADERS)
    assert job.status_code == 200
    assert job.json()["status"] == "COMPLETED"
    assert job.json()["processed_contacts"] == 3

    hidden = client.get(f"/v1/discovery/jobs/{job_id}", headers={"X-Tenant-Id": "tenant-2"})
    assert hidden.status_code == 404
