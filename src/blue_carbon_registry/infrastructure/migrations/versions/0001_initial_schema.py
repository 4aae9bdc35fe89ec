"""Initial registry schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

JSON_VARIANT = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create the five registry tables."""

    # ========================================================================
    # USERS
    # ========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("organization", sa.String(length=200), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column(
            "wallet_address",
            sa.String(length=42),
            nullable=True,
            comment="EVM wallet address used as transfer target",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "role IN ('COMMUNITY', 'VERIFIER', 'ADMIN', 'OBSERVER')",
            name="ck_user_valid_role",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("wallet_address"),
    )

    # ========================================================================
    # PROJECTS
    # ========================================================================
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "submitter_id",
            sa.Uuid(),
            nullable=False,
            comment="Owning user; immutable after creation",
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("ecosystem_type", sa.String(length=20), nullable=False),
        sa.Column("location", sa.String(length=500), nullable=False),
        sa.Column(
            "estimated_carbon_capture",
            sa.Integer(),
            nullable=False,
            comment="Estimated capture in tons CO2",
        ),
        sa.Column("area_size", sa.Integer(), nullable=False, comment="Hectares"),
        sa.Column("coordinates", JSON_VARIANT, nullable=True, comment="GeoJSON geometry"),
        sa.Column("geo_json_hash", sa.String(length=128), nullable=True),
        sa.Column(
            "status",
            sa.String(length=20),
            nullable=False,
            comment="Current lifecycle state (guarded by ProjectStateMachine)",
        ),
        sa.Column("verifier_id", sa.Uuid(), nullable=True),
        sa.Column("verification_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_notes", sa.Text(), nullable=True),
        sa.Column("submission_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "status IN ('PENDING', 'VERIFIED', 'REJECTED', 'CREDITS_ISSUED')",
            name="ck_project_valid_status",
        ),
        sa.CheckConstraint(
            "ecosystem_type IN ('MANGROVE', 'SEAGRASS', 'SALT_MARSH', 'OTHER')",
            name="ck_project_valid_ecosystem",
        ),
        sa.CheckConstraint(
            "estimated_carbon_capture > 0 AND area_size > 0",
            name="ck_project_positive_measures",
        ),
        sa.ForeignKeyConstraint(["submitter_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["verifier_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_project_status", "projects", ["status"])
    op.create_index("idx_project_submitter", "projects", ["submitter_id"])
    op.create_index("idx_project_ecosystem", "projects", ["ecosystem_type"])
    op.create_index("idx_project_submitted_at", "projects", ["submission_timestamp"])

    # ========================================================================
    # EVIDENCE FILES
    # ========================================================================
    op.create_table(
        "evidence_files",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column(
            "ref",
            sa.String(length=128),
            nullable=False,
            comment="Content address in the evidence store",
        ),
        sa.Column(
            "position",
            sa.Integer(),
            nullable=False,
            comment="Order of attachment within the project",
        ),
        sa.Column("original_name", sa.String(length=255), nullable=True),
        sa.Column("upload_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_evidence_project", "evidence_files", ["project_id"])

    # ========================================================================
    # CARBON CREDITS
    # ========================================================================
    op.create_table(
        "carbon_credits",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "project_id",
            sa.Uuid(),
            nullable=False,
            comment="At most one credit batch per project",
        ),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("carbon_amount", sa.Integer(), nullable=False, comment="Tons CO2"),
        sa.Column("vintage_year", sa.Integer(), nullable=False),
        sa.Column("certification_standard", sa.String(length=50), nullable=False),
        sa.Column(
            "token_id",
            sa.String(length=78),
            nullable=True,
            comment="Token id reported by the chain client",
        ),
        sa.Column(
            "metadata_ref",
            sa.String(length=128),
            nullable=True,
            comment="Evidence-store reference of the metadata JSON",
        ),
        sa.Column(
            "status",
            sa.String(length=20),
            nullable=False,
            comment="Current lifecycle state (guarded by CreditStateMachine)",
        ),
        sa.Column("issuance_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("retirement_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retirement_reason", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'TRANSFERRED', 'RETIRED')",
            name="ck_credit_valid_status",
        ),
        sa.CheckConstraint("carbon_amount > 0", name="ck_credit_positive_amount"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id"),
    )
    op.create_index("idx_credit_status", "carbon_credits", ["status"])
    op.create_index("idx_credit_owner", "carbon_credits", ["owner_id"])

    # ========================================================================
    # CREDIT TRANSACTIONS (append-only ledger)
    # ========================================================================
    op.create_table(
        "credit_transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("credit_id", sa.Uuid(), nullable=False),
        sa.Column("from_address", sa.String(length=42), nullable=True),
        sa.Column("to_address", sa.String(length=42), nullable=False),
        sa.Column("transaction_hash", sa.String(length=66), nullable=False),
        sa.Column("transaction_type", sa.String(length=10), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "transaction_type IN ('MINT', 'TRANSFER', 'RETIRE')",
            name="ck_tx_valid_type",
        ),
        sa.ForeignKeyConstraint(["credit_id"], ["carbon_credits.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_tx_credit", "credit_transactions", ["credit_id"])
    op.create_index("idx_tx_type", "credit_transactions", ["transaction_type"])
    op.create_index("idx_tx_timestamp", "credit_transactions", ["timestamp"])


def downgrade() -> None:
    """Drop the registry tables in dependency order."""
    op.drop_table("credit_transactions")
    op.drop_table("carbon_credits")
    op.drop_table("evidence_files")
    op.drop_table("projects")
    op.drop_table("users")
