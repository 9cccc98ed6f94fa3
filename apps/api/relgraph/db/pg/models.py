from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from relgraph.db.pg.base import Base

RELATIONSHIP_TYPES = (
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
)

CANDIDATE_PENDING = "PENDING"
CANDIDATE_APPROVED = "APPROVED"
CANDIDATE_REJECTED = "REJECTED"

JOB_RUNNING = "RUNNING"
JOB_COMPLETED = "COMPLETED"
JOB_FAILED = "FAILED"


def unordered_pair(contact_id: str, related_contact_id: str) -> tuple[str, str]:
    return (contact_id, related_contact_id) if contact_id <= related_contact_id else (related_contact_id, contact_id)


class ContactCache(Base):
    """Read-only mirror of the tenant's contacts owned by the contact store."""

    __tablename__ = "contact_cache"

    contact_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    primary_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    country: Mapped[str | None] = mapped_column(String(128), nullable=True)
    tags_json: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    linkedin_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="ACTIVE")
    tier: Mapped[str | None] = mapped_column(String(16), nullable=True)
    priority_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    opportunity_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    strategic_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    engagement_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ContactRelationship(Base):
    __tablename__ = "contact_relationships"
    __table_args__ = (
        # Edges are stored directionally but are unique per unordered pair.
        UniqueConstraint("tenant_id", "pair_low", "pair_high", name="uq_contact_relationships_pair"),
        CheckConstraint("contact_id <> related_contact_id", name="ck_contact_relationships_no_self_loop"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    contact_id: Mapped[str] = mapped_column(String(128), ForeignKey("contact_cache.contact_id"), nullable=False)
    related_contact_id: Mapped[str] = mapped_column(String(128), ForeignKey("contact_cache.contact_id"), nullable=False)
    pair_low: Mapped[str] = mapped_column(String(128), nullable=False)
    pair_high: Mapped[str] = mapped_column(String(128), nullable=False)
    relationship_type: Mapped[str] = mapped_column(String(32), nullable=False)
    strength: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.8)
    is_mutual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    source: Mapped[str] = mapped_column(String(64), nullable=False, default="manual")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    discovered_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    last_verified: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PotentialRelationship(Base):
    __tablename__ = "potential_relationships"
    __table_args__ = (
        UniqueConstraint("tenant_id", "pair_low", "pair_high", name="uq_potential_relationships_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    contact_id: Mapped[str] = mapped_column(String(128), ForeignKey("contact_cache.contact_id"), nullable=False)
    related_contact_id: Mapped[str] = mapped_column(String(128), ForeignKey("contact_cache.contact_id"), nullable=False)
    pair_low: Mapped[str] = mapped_column(String(128), nullable=False)
    pair_high: Mapped[str] = mapped_column(String(128), nullable=False)
    relationship_type: Mapped[str] = mapped_column(String(32), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    evidence_json: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    source: Mapped[str] = mapped_column(String(64), nullable=False, default="auto_discovery")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=CANDIDATE_PENDING)
    reviewed_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class NetworkAnalytics(Base):
    __tablename__ = "network_analytics"

    contact_id: Mapped[str] = mapped_column(String(128), ForeignKey("contact_cache.contact_id"), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    total_connections: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    direct_connections: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mutual_connections: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    verified_connections: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    network_reach: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    influence_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    industry_diversity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    geographic_spread: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    seniority_spread: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    last_calculated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DiscoveryJob(Base):
    __tablename__ = "discovery_jobs"

    job_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    requested_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=JOB_RUNNING)
    total_contacts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_contacts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_contacts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    candidates_persisted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item_results_json: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


Index("ix_contact_cache_tenant", ContactCache.tenant_id)
Index("ix_contact_relationships_contact", ContactRelationship.contact_id)
Index("ix_contact_relationships_related", ContactRelationship.related_contact_id)
Index("ix_contact_relationships_tenant", ContactRelationship.tenant_id)
Index("ix_potential_relationships_tenant_status", PotentialRelationship.tenant_id, PotentialRelationship.status)
Index("ix_discovery_jobs_tenant", DiscoveryJob.tenant_id)
