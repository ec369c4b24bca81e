"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import Column, DateTime, Index, MetaData, String, Table, UniqueConstraint

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# IDENTITIES TABLE (local backend)
# ============================================================================
identities_table = Table(
    "identities",
    metadata,
    Column("uid", String, primary_key=True),  # "<provider_id>:<external_id>"
    Column("provider_id", String(64), nullable=False),
    Column("external_id", String, nullable=False),
    Column("display_name", String, nullable=True),
    Column("avatar_url", String, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("provider_id", "external_id", name="uq_identities_provider_external"),
)

Index("ix_identities_provider_id", identities_table.c.provider_id)
