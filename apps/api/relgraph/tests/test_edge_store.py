from __future__ import annotations

import pytest
from sqlalchemy import select

from relgraph.core.errors import ConflictError, InvalidEdgeError, NotFoundError
from relgraph.db.pg.models import ContactRelationship
from relgraph.services.graph.edge_store import (
    create_edge,
    delete_edge,
    find_edge_between,
    get_relationships,
    neighbors_of,
    update_edge,
)


def _seed(make_contact, tenant_id: str = "tenant-1") -> None:
    for contact_id in ("a", "b", "c"):
        make_contact(tenant_id, contact_id)


def test_create_edge_applies_defaults_and_summaries(db, ctx, make_contact) -> None:
    _seed(make_contact)

    edge = create_edge(db, ctx, "a", "b", {"relationship_type": "COLLEAGUE"})

    assert edge["strength"] == 0.5
    assert edge["confidence"] == 0.8
    assert edge["source"] == "manual"
    assert edge["is_verified"] is True
    assert edge["contact"]["id"] == "a"
    assert edge["related_contact"]["id"] == "b"


def test_create_edge_rejects_self_loop(db, ctx, make_contact) -> None:
    _seed(make_contact)

    with pytest.raises(InvalidEdgeError):
        create_edge(db, ctx, "a", "a", {"relationship_type": "FRIEND"})


def test_reverse_duplicate_is_a_conflict(db, ctx, make_contact) -> None:
    _seed(make_contact)
    create_edge(db, ctx, "a", "b", {"relationship_type": "FRIEND"})

    with pytest.raises(ConflictError):
        create_edge(db, ctx, "b", "a", {"relationship_type": "COLLEAGUE"})

    edges = db.scalars(select(ContactRelationship)).all()
    assert len(edges) == 1
    assert find_edge_between(db, "tenant-1", "b", "a") is not None


def test_create_edge_requires_both_contacts_in_tenant(db, ctx, make_contact) -> None:
    _seed(make_contact)
    make_contact("tenant-2", "x")

    with pytest.raises(NotFoundError):
        create_edge(db, ctx, "a", "x", {"relationship_type": "FRIEND"})


def test_create_edge_rejects_out_of_range_strength(db, ctx, make_contact) -> None:
    _seed(make_contact)

    with pytest.raises(InvalidEdgeError):
        create_edge(db, ctx, "a", "b", {"relationship_type": "FRIEND", "strength": 1.5})


def test_update_edge_patches_attributes_and_refreshes_last_verified(db, ctx, make_contact) -> None:
    _seed(make_contact)
    edge = create_edge(db, ctx, "a", "b", {"relationship_type": "FRIEND"})

    updated = update_edge(db, ctx, edge["id"], {"strength": 0.9, "notes": "met at conference"})

    assert updated["strength"] == 0.9
    assert updated["notes"] == "met at conference"
    assert updated["relationship_type"] == "FRIEND"
    assert updated["last_verified"] is not None


def test_update_edge_from_other_tenant_is_not_found(db, ctx, other_ctx, make_contact) -> None:
    _seed(make_contact)
    edge = create_edge(db, ctx, "a", "b", {"relationship_type": "FRIEND"})

    with pytest.raises(NotFoundError):
        update_edge(db, other_ctx, edge["id"], {"strength": 0.1})


def test_delete_edge_removes_it(db, ctx, make_contact) -> None:
    _seed(make_contact)
    edge = create_edge(db, ctx, "a", "b", {"relationship_type": "FRIEND"})

    delete_edge(db, ctx, edge["id"])

    assert find_edge_between(db, "tenant-1", "a", "b") is None
    with pytest.raises(NotFoundError):
        delete_edge(db, ctx, edge["id"])


def test_get_relationships_splits_by_stored_direction(db, ctx, make_contact) -> None:
    _seed(make_contact)
    create_edge(db, ctx, "a", "b", {"relationship_type": "FRIEND", "strength": 0.4})
    create_edge(db, ctx, "c", "a", {"relationship_type": "MENTOR", "strength": 0.7})

    result = get_relationships(db, ctx, "a")

    assert [edge["related_contact_id"] for edge in result["relationships"]] == ["b"]
    assert [edge["contact_id"] for edge in result["related_to"]] == ["c"]
    assert result["total_relationships"] == 2
    assert result["analytics"] is None


def test_neighbors_of_reports_direction(db, ctx, make_contact) -> None:
    _seed(make_contact)
    create_edge(db, ctx, "a", "b", {"relationship_type": "FRIEND"})
    create_edge(db, ctx, "c", "a", {"relationship_type": "MENTOR"})

    neighbors = {item["other_contact"]["id"]: item["direction"] for item in neighbors_of(db, ctx, "a")}

    assert neighbors == {"b": "outgoing", "c": "incoming"}


def test_unique_pair_constraint_backs_up_the_precheck(db, ctx, make_contact, monkeypatch) -> None:
    _seed(make_contact)
    create_edge(db, ctx, "a", "b", {"relationship_type": "FRIEND"})
    monkeypatch.setattr("relgraph.services.graph.edge_store.find_edge_between", lambda *args: None)

    with pytest.raises(ConflictError):
        create_edge(db, ctx, "b", "a", {"relationship_type": "COLLEAGUE"})

    edges = db.scalars(select(ContactRelationship)).all()
    assert len(edges) == 1
    assert edges[0].relationship_type == "FRIEND"
