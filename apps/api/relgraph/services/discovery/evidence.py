"""Attribute-overlap heuristics that propose candidate relationships.

Each signal is an evidence dict ``{type, score, summary, details}``. Scores
are in [0, 1]; the candidate confidence is their mean, so a weak extra
signal can pull a strong one down.
"""

from __future__ import annotations

import re
from typing import Any

from relgraph.db.pg.models import ContactCache

_COMPANY_SUFFIXES = ("inc", "corp", "corporation", "llc", "ltd", "limited")

_GENERIC_EMAIL_DOMAINS = {
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "aol.com",
    "icloud.com",
    "live.com",
    "msn.com",
    "comcast.net",
    "verizon.net",
}

_ROLE_KEYWORDS = (
    "director",
    "manager",
    "senior",
    "junior",
    "lead",
    "head",
    "chief",
    "engineer",
    "developer",
    "designer",
    "analyst",
    "consultant",
    "sales",
    "marketing",
    "product",
    "finance",
    "operations",
    "hr",
    "vp",
    "president",
    "ceo",
    "cto",
    "cfo",
    "cmo",
    "coo",
)

# Checked in order; the first band with a matching token wins.
_SENIORITY_BANDS = (
    ("executive", ("ceo", "cto", "cfo", "cmo", "coo", "chief", "president", "founder", "vp", "partner")),
    ("senior", ("director", "head", "lead", "principal", "senior")),
    ("mid", ("manager", "specialist", "consultant", "engineer", "analyst")),
    ("junior", ("junior", "associate", "assistant", "intern", "coordinator")),
)

_CLIENT_KEYWORDS = ("buyer", "procurement", "purchasing")
_VENDOR_KEYWORDS = ("sales", "account", "business development")


def _lower(value: str | None) -> str:
    return (value or "").strip().lower()


def _tokens(value: str) -> set[str]:
    return {token for token in re.split(r"[^a-z0-9]+", value.lower()) if token}


def clean_company_name(company: str) -> str:
    cleaned = company.lower().strip()
    for suffix in _COMPANY_SUFFIXES:
        cleaned = re.sub(rf"[\s,]*\b{suffix}\.?$", "", cleaned).strip()
    return cleaned


def companies_related(company_1: str, company_2: str) -> bool:
    c1 = company_1.lower().strip()
    c2 = company_2.lower().strip()
    if not c1 or not c2:
        return False
    if c1 in c2 or c2 in c1:
        return True
    return clean_company_name(c1) == clean_company_name(c2)


def email_domain(email: str | None) -> str:
    if not email or "@" not in email:
        return ""
    return email.rsplit("@", 1)[-1].strip().lower()


def is_generic_email_domain(domain: str) -> bool:
    return domain.lower() in _GENERIC_EMAIL_DOMAINS


def role_keywords(role: str) -> list[str]:
    tokens = _tokens(role)
    return [keyword for keyword in _ROLE_KEYWORDS if keyword in tokens]


def role_similarity(role_1: str, role_2: str) -> float:
    r1 = role_1.strip().lower()
    r2 = role_2.strip().lower()
    if not r1 or not r2:
        return 0.0
    if r1 == r2:
        return 1.0
    keywords_1 = role_keywords(r1)
    keywords_2 = role_keywords(r2)
    shared = [keyword for keyword in keywords_1 if keyword in keywords_2]
    return len(shared) / max(1, len(keywords_1), len(keywords_2))


def seniority_band(position: str | None) -> str | None:
    tokens = _tokens(position or "")
    if not tokens:
        return None
    for band, keywords in _SENIORITY_BANDS:
        if tokens.intersection(keywords):
            return band
    return None


def is_client_vendor_pair(position_1: str | None, position_2: str | None) -> bool:
    p1 = _lower(position_1)
    p2 = _lower(position_2)
    has_client = any(keyword in p1 or keyword in p2 for keyword in _CLIENT_KEYWORDS)
    has_vendor = any(keyword in p1 or keyword in p2 for keyword in _VENDOR_KEYWORDS)
    return has_client and has_vendor


def _shared_tags(tags_1: list | None, tags_2: list | None) -> list[str]:
    second = {str(tag).strip().lower() for tag in tags_2 or [] if str(tag).strip()}
    shared: list[str] = []
    for tag in tags_1 or []:
        cleaned = str(tag).strip()
        if cleaned and cleaned.lower() in second and cleaned.lower() not in {item.lower() for item in shared}:
            shared.append(cleaned)
    return shared


def _evidence(kind: str, score: float, summary: str, details: dict[str, Any]) -> dict[str, Any]:
    return {"type": kind, "score": round(score, 4), "summary": summary, "details": details}


def analyze_relationship_evidence(
    contact: ContactCache,
    candidate: ContactCache,
    mutual_connection_count: int = 0,
) -> list[dict[str, Any]]:
    evidence: list[dict[str, Any]] = []

    if contact.company and candidate.company:
        if _lower(contact.company) == _lower(candidate.company):
            evidence.append(
                _evidence("same_company", 0.8, f"shared company {contact.company}", {"company": contact.company})
            )
        elif companies_related(contact.company, candidate.company):
            evidence.append(
                _evidence(
                    "related_companies",
                    0.4,
                    f"related companies {contact.company} / {candidate.company}",
                    {"company1": contact.company, "company2": candidate.company},
                )
            )

    domain_1 = email_domain(contact.primary_email)
    domain_2 = email_domain(candidate.primary_email)
    if domain_1 and domain_1 == domain_2 and not is_generic_email_domain(domain_1):
        evidence.append(_evidence("same_email_domain", 0.7, f"shared email domain {domain_1}", {"domain": domain_1}))

    if contact.city and contact.state and candidate.city and candidate.state:
        if _lower(contact.city) == _lower(candidate.city) and _lower(contact.state) == _lower(candidate.state):
            evidence.append(
                _evidence(
                    "same_location",
                    0.3,
                    f"shared location {contact.city}, {contact.state}",
                    {"city": contact.city, "state": contact.state},
                )
            )
        elif _lower(contact.state) == _lower(candidate.state):
            evidence.append(_evidence("same_state", 0.1, f"shared state {contact.state}", {"state": contact.state}))

    if contact.position and candidate.position:
        similarity = role_similarity(contact.position, candidate.position)
        if similarity > 0.5:
            evidence.append(
                _evidence(
                    "similar_roles",
                    similarity * 0.4,
                    f"similar roles {contact.position} / {candidate.position}",
                    {"position1": contact.position, "position2": candidate.position, "similarity": similarity},
                )
            )
        band = seniority_band(contact.position)
        if band is not None and band == seniority_band(candidate.position):
            evidence.append(_evidence("same_seniority", 0.2, f"same seniority band {band}", {"band": band}))

    shared_tags = _shared_tags(contact.tags_json, candidate.tags_json)
    if shared_tags:
        evidence.append(
            _evidence(
                "shared_tags",
                min(0.5, 0.15 * len(shared_tags)),
                f"shared tags {', '.join(shared_tags)}",
                {"tags": shared_tags},
            )
        )

    if contact.linkedin_url and candidate.linkedin_url:
        evidence.append(
            _evidence(
                "both_on_linkedin",
                0.1,
                "both have LinkedIn profiles",
                {"linkedin1": contact.linkedin_url, "linkedin2": candidate.linkedin_url},
            )
        )

    if mutual_connection_count > 0:
        evidence.append(
            _evidence(
                "mutual_connections",
                min(0.6, mutual_connection_count * 0.2),
                f"{mutual_connection_count} mutual connection(s)",
                {"count": mutual_connection_count},
            )
        )

    return evidence


def calculate_confidence(evidence: list[dict[str, Any]]) -> float:
    if not evidence:
        return 0.0
    total = sum(float(item["score"]) for item in evidence)
    return min(1.0, total / max(1, len(evidence)))


def infer_relationship_type(evidence: list[dict[str, Any]], contact: ContactCache, candidate: ContactCache) -> str:
    for item in evidence:
        kind = item["type"]
        if kind == "same_company":
            return "COLLEAGUE"
        if kind == "related_companies":
            if is_client_vendor_pair(contact.position, candidate.position):
                return "CLIENT"
            return "PARTNER"
        if kind == "same_email_domain":
            return "COLLEAGUE"
        if kind == "mutual_connections":
            return "ACQUAINTANCE" if item["details"].get("count", 0) >= 3 else "PROSPECT"
        if kind == "similar_roles":
            return "ACQUAINTANCE"
    return "PROSPECT"
