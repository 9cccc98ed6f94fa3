from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

RelationshipType = Literal[
    "COLLEAGUE",
    "CLIENT",
    "VENDOR",
    "PARTNER",
    "INVESTOR",
    "MENTOR",
    "MENTEE",
    "FRIEND",
    "FAMILY",
    "ACQUAINTANCE",
    "PROSPECT",
    "COMPETITOR",
    "INTRODUCED_BY",
    "MUTUAL_FRIEND",
]
CandidateStatus = Literal["PENDING", "APPROVED", "REJECTED"]
ContactStatus = Literal["ACTIVE", "INACTIVE"]


class ContactRow(BaseModel):
    contact_id: str
    first_name: str | None = None
    last_name: str | None = None
    primary_email: str | None = None
    company: str | None = None
    position: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    tags: list[str] = Field(default_factory=list)
    linkedin_url: str | None = None
    status: ContactStatus = "ACTIVE"
    tier: str | None = None
    priority_score: float | None = None
    opportunity_score: float | None = None
    strategic_value: float | None = None
    engagement_score: float | None = None


class ContactsSyncRequest(BaseModel):
    rows: list[ContactRow] = Field(default_factory=list)


class ContactsSyncResponse(BaseModel):
    upserted: int
    skipped: int


class ContactSummary(BaseModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    position: str | None = None
    email: str | None = None
    linkedin_url: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None


class RelationshipCreate(BaseModel):
    contact_id: str
    related_contact_id: str
    relationship_type: RelationshipType
    strength: float | None = Field(default=None, ge=0.0, le=1.0)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    notes: str | None = None
    source: str | None = None
    is_mutual: bool | None = None
    is_verified: bool | None = None


class RelationshipUpdate(BaseModel):
    relationship_type: RelationshipType | None = None
    strength: float | None = Field(default=None, ge=0.0, le=1.0)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    notes: str | None = None
    source: str | None = None
    is_mutual: bool | None = None
    is_verified: bool | None = None


class RelationshipOut(BaseModel):
    id: str
    contact_id: str
    related_contact_id: str
    relationship_type: str
    strength: float
    confidence: float
    is_mutual: bool
    is_verified: bool
    source: str
    notes: str | None = None
    discovered_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_verified: datetime | None = None
    contact: ContactSummary | None = None
    related_contact: ContactSummary | None = None


class NetworkAnalyticsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    contact_id: str
    total_connections: int
    direct_connections: int
    mutual_connections: int
    verified_connections: int
    network_reach: int
    influence_score: float
    industry_diversity: float
    geographic_spread: float
    seniority_spread: float
    last_calculated: datetime


class ContactRelationshipsResponse(BaseModel):
    relationships: list[RelationshipOut]
    related_to: list[RelationshipOut]
    analytics: NetworkAnalyticsOut | None = None
    total_relationships: int


class NeighborOut(BaseModel):
    edge: RelationshipOut
    direction: Literal["outgoing", "incoming"]
    other_contact: ContactSummary | None = None


class NeighborsResponse(BaseModel):
    contact_id: str
    neighbors: list[NeighborOut]


class ContactRef(BaseModel):
    id: str
    name: str


class MutualConnectionsResponse(BaseModel):
    contact1: ContactRef
    contact2: ContactRef
    mutual_connections: list[ContactSummary]
    total_mutual_connections: int


class PathResponse(BaseModel):
    path: list[ContactSummary]
    degrees: int
    path_exists: bool


class RankedPath(BaseModel):
    path: list[ContactSummary]
    path_length: int
    strength: float
    total_weight: float
    relationship_types: list[str]


class PathsResponse(BaseModel):
    from_contact: ContactSummary
    to_contact: ContactSummary
    paths: list[RankedPath]
    paths_found: int
    search_params: dict[str, Any]


class EvidenceItem(BaseModel):
    type: str
    score: float
    summary: str
    details: dict[str, Any] = Field(default_factory=dict)


class Discovery(BaseModel):
    contact_id: str
    related_contact_id: str
    relationship_type: str
    confidence: float
    evidence: list[EvidenceItem]
    source: str


class DiscoveryResponse(BaseModel):
    discoveries: list[Discovery]
    total_discovered: int
    high_confidence: int
    persisted: int


class CandidateOut(BaseModel):
    id: str
    contact_id: str
    related_contact_id: str
    relationship_type: str
    confidence: float
    evidence: list[EvidenceItem]
    source: str
    status: CandidateStatus
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    contact: ContactSummary | None = None
    related_contact: ContactSummary | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class CandidateListResponse(BaseModel):
    potential_relationships: list[CandidateOut]
    pagination: Pagination


class BatchDiscoveryResponse(BaseModel):
    job_id: str
    status: str
    message: str


class DiscoveryJobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    job_id: str
    tenant_id: str
    requested_by: str | None = None
    status: str
    total_contacts: int
    processed_contacts: int
    failed_contacts: int
    candidates_persisted: int
    item_results_json: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None
    started_at: datetime
    finished_at: datetime | None = None


class NetworkGraphResponse(BaseModel):
    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]
    stats: dict[str, Any]
    metadata: dict[str, Any]


class ClustersResponse(BaseModel):
    clusters: list[dict[str, Any]]
    total_clusters: int
    largest_cluster: dict[str, Any] | None = None
    avg_cluster_size: float


class InfluenceResponse(BaseModel):
    influence_data: list[dict[str, Any]]
    metrics: dict[str, Any]
