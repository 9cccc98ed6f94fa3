"""initial schema

Revision ID: 20261016_0001
Revises:
Create Date: 2026-10-16
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261016_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "contact_cache",
        sa.Column("contact_id", sa.String(length=128), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=True),
        sa.Column("last_name", sa.String(length=128), nullable=True),
        sa.Column("primary_email", sa.String(length=320), nullable=True),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("position", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("state", sa.String(length=128), nullable=True),
        sa.Column("country", sa.String(length=128), nullable=True),
        sa.Column("tags_json", sa.JSON(), nullable=False),
        sa.Column("linkedin_url", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("tier", sa.String(length=16), nullable=True),
        sa.Column("priority_score", sa.Float(), nullable=True),
        sa.Column("opportunity_score", sa.Float(), nullable=True),
        sa.Column("strategic_value", sa.Float(), nullable=True),
        sa.Column("engagement_score", sa.Float(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("contact_id"),
    )
    op.create_index("ix_contact_cache_tenant", "contact_cache", ["tenant_id"])

    op.create_table(
        "contact_relationships",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("contact_id", sa.String(length=128), nullable=False),
        sa.Column("related_contact_id", sa.String(length=128), nullable=False),
        sa.Column("pair_low", sa.String(length=128), nullable=False),
        sa.Column("pair_high", sa.String(length=128), nullable=False),
        sa.Column("relationship_type", sa.String(length=32), nullable=False),
        sa.Column("strength", sa.Float(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("is_mutual", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("discovered_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("last_verified", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["contact_id"], ["contact_cache.contact_id"]),
        sa.ForeignKeyConstraint(["related_contact_id"], ["contact_cache.contact_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "pair_low", "pair_high", name="uq_contact_relationships_pair"),
        sa.CheckConstraint("contact_id <> related_contact_id", name="ck_contact_relationships_no_self_loop"),
    )
    op.create_index("ix_contact_relationships_contact", "contact_relationships", ["contact_id"])
    op.create_index("ix_contact_relationships_related", "contact_relationships", ["related_contact_id"])
    op.create_index("ix_contact_relationships_tenant", "contact_relationships", ["tenant_id"])

    op.create_table(
        "potential_relationships",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("contact_id", sa.String(length=128), nullable=False),
        sa.Column("related_contact_id", sa.String(length=128), nullable=False),
        sa.Column("pair_low", sa.String(length=128), nullable=False),
        sa.Column("pair_high", sa.String(length=128), nullable=False),
        sa.Column("relationship_type", sa.String(length=32), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("evidence_json", sa.JSON(), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("reviewed_by", sa.String(length=64), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["contact_id"], ["contact_cache.contact_id"]),
        sa.ForeignKeyConstraint(["related_contact_id"], ["contact_cache.contact_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "pair_low", "pair_high", name="uq_potential_relationships_pair"),
    )
    op.create_index(
        "ix_potential_relationships_tenant_status",
        "potential_relationships",
        ["tenant_id", "status"],
    )

    op.create_table(
        "network_analytics",
        sa.Column("contact_id", sa.String(length=128), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("total_connections", sa.Integer(), nullable=False),
        sa.Column("direct_connections", sa.Integer(), nullable=False),
        sa.Column("mutual_connections", sa.Integer(), nullable=False),
        sa.Column("verified_connections", sa.Integer(), nullable=False),
        sa.Column("network_reach", sa.Integer(), nullable=False),
        sa.Column("influence_score", sa.Float(), nullable=False),
        sa.Column("industry_diversity", sa.Float(), nullable=False),
        sa.Column("geographic_spread", sa.Float(), nullable=False),
        sa.Column("seniority_spread", sa.Float(), nullable=False),
        sa.Column("last_calculated", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["contact_id"], ["contact_cache.contact_id"]),
        sa.PrimaryKeyConstraint("contact_id"),
    )

    op.create_table(
        "discovery_jobs",
        sa.Column("job_id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("requested_by", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("total_contacts", sa.Integer(), nullable=False),
        sa.Column("processed_contacts", sa.Integer(), nullable=False),
        sa.Column("failed_contacts", sa.Integer(), nullable=False),
        sa.Column("candidates_persisted", sa.Integer(), nullable=False),
        sa.Column("item_results_json", sa.JSON(), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("job_id"),
    )
    op.create_index("ix_discovery_jobs_tenant", "discovery_jobs", ["tenant_id"])


def downgrade() -> None:
    op.drop_index("ix_discovery_jobs_tenant", table_name="discovery_jobs")
    op.drop_table("discovery_jobs")
    op.drop_table("network_analytics")
    op.drop_index("ix_potential_relationships_tenant_status", table_name="potential_relationships")
    op.drop_table("potential_relationships")
    op.drop_index("ix_contact_relationships_tenant", table_name="contact_relationships")
    op.drop_index("ix_contact_relationships_related", table_name="contact_relationships")
    op.drop_index("ix_contact_relationships_contact", table_name="contact_relationships")
    op.drop_table("contact_relationships")
    op.drop_index("ix_contact_cache_tenant", table_name="contact_cache")
    op.drop_table("contact_cache")
