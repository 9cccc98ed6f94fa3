from __future__ import annotations

import pytest

from relgraph.db.pg.models import ContactCache
from relgraph.services.discovery.evidence import (
    analyze_relationship_evidence,
    calculate_confidence,
    clean_company_name,
    companies_related,
    infer_relationship_type,
    role_similarity,
    seniority_band,
)


def _contact(contact_id: str, **fields) -> ContactCache:
    fields.setdefault("tags_json", [])
    return ContactCache(contact_id=contact_id, tenant_id="tenant-1", **fields)


def _types(evidence: list[dict]) -> list[str]:
    return [item["type"] for item in evidence]


def test_same_company_domain_and_location_evidence() -> None:
    first = _contact("a", company="Acme", primary_email="a@acme.com", city="Austin", state="TX")
    second = _contact("b", company="acme", primary_email="b@acme.com", city="austin", state="tx")

    evidence = analyze_relationship_evidence(first, second)

    assert _types(evidence) == ["same_company", "same_email_domain", "same_location"]
    assert calculate_confidence(evidence) == pytest.approx((0.8 + 0.7 + 0.3) / 3)
    assert infer_relationship_type(evidence, first, second) == "COLLEAGUE"


def test_generic_email_domain_is_ignored() -> None:
    first = _contact("a", primary_email="a@gmail.com")
    second = _contact("b", primary_email="b@gmail.com")

    assert analyze_relationship_evidence(first, second) == []


def test_related_companies_between_buyer_and_seller_is_client() -> None:
    first = _contact("a", company="Acme", position="Procurement Manager")
    second = _contact("b", company="Acme Holdings", position="Sales Director")

    evidence = analyze_relationship_evidence(first, second)

    assert "related_companies" in _types(evidence)
    assert infer_relationship_type(evidence, first, second) == "CLIENT"


def test_same_state_only_is_weak() -> None:
    first = _contact("a", city="Austin", state="TX")
    second = _contact("b", city="Dallas", state="TX")

    evidence = analyze_relationship_evidence(first, second)

    assert _types(evidence) == ["same_state"]
    assert calculate_confidence(evidence) == pytest.approx(0.1)
    assert infer_relationship_type(evidence, first, second) == "PROSPECT"


def test_shared_tags_and_mutual_connections() -> None:
    first = _contact("a", tags_json=["Fintech", "Board"])
    second = _contact("b", tags_json=["board", "fintech", "golf"])

    evidence = analyze_relationship_evidence(first, second, mutual_connection_count=4)

    by_type = {item["type"]: item for item in evidence}
    assert by_type["shared_tags"]["score"] == pytest.approx(0.3)
    assert by_type["mutual_connections"]["score"] == pytest.approx(0.6)
    assert infer_relationship_type(evidence, first, second) == "ACQUAINTANCE"


def test_similar_roles_and_seniority() -> None:
    first = _contact("a", position="Senior Software Engineer")
    second = _contact("b", position="Senior Engineer")

    evidence = analyze_relationship_evidence(first, second)

    assert _types(evidence) == ["similar_roles", "same_seniority"]
    assert evidence[0]["score"] == pytest.approx(0.4)


def test_no_evidence_means_zero_confidence() -> None:
    assert calculate_confidence([]) == 0.0


def test_company_helpers() -> None:
    assert clean_company_name("Globex Corp.") == "globex"
    assert companies_related("Globex Corp", "Globex LLC")
    assert not companies_related("Globex", "")


def test_role_helpers() -> None:
    assert role_similarity("VP Sales", "vp sales") == 1.0
    assert role_similarity("Engineer", "") == 0.0
    assert seniority_band("Chief Financial Officer") == "executive"
    assert seniority_band("Marketing Coordinator") == "junior"
    assert seniority_band(None) is None
