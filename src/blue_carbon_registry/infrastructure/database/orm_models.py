"""SQLAlchemy 2.0 ORM models for the Blue Carbon Registry.

Five tables:
    1. users               — Registered principals (identity collaborator).
    2. projects            — Restoration projects moving through verification.
    3. evidence_files      — Content-addressed evidence attached to a project.
    4. carbon_credits      — At most one credit batch per verified project.
    5. credit_transactions — Append-only ledger of MINT/TRANSFER/RETIRE entries.

Design decisions:
    - UUIDs as primary keys.
    - Integer tons for carbon amounts (no fractional credits).
    - CHECK constraints on status and ecosystem values at DB level.
    - ``version`` columns drive SQLAlchemy optimistic concurrency on the two
      mutable lifecycle tables.
    - UNIQUE(carbon_credits.project_id) backs the one-mint-per-project rule.
    - credit_transactions is append-only: no UPDATE or DELETE at the
      application level.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    event,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONVariant = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# Helper: auto-set updated_at on flush
# ---------------------------------------------------------------------------
def _set_updated_at(mapper, connection, target):  # noqa: ANN001
    """SQLAlchemy event listener that updates `updated_at` before flush."""
    if hasattr(target, "updated_at"):
        target.updated_at = _utcnow()


# ---------------------------------------------------------------------------
# 1. users
# ---------------------------------------------------------------------------
class User(Base):
    """A registered participant: community submitter, verifier, admin or observer."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    organization: Mapped[str | None] = mapped_column(String(200), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="COMMUNITY")
    wallet_address: Mapped[str | None] = mapped_column(
        String(42),
        nullable=True,
        unique=True,
        comment="EVM wallet address used as transfer target",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('COMMUNITY', 'VERIFIER', 'ADMIN', 'OBSERVER')",
            name="ck_user_valid_role",
        ),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role}>"


# ---------------------------------------------------------------------------
# 2. projects
# ---------------------------------------------------------------------------
class Project(Base):
    """A blue carbon restoration project submitted for verification."""

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    submitter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        comment="Owning user; immutable after creation",
    )

    # --- Descriptive attributes (mutable while PENDING) ---
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    ecosystem_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    estimated_carbon_capture: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Estimated capture in tons CO2"
    )
    area_size: Mapped[int] = mapped_column(Integer, nullable=False, comment="Hectares")
    coordinates: Mapped[dict | None] = mapped_column(
        JSONVariant, nullable=True, default=None, comment="GeoJSON geometry"
    )
    geo_json_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # --- Status (Enum-guarded) ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="PENDING",
        comment="Current lifecycle state (guarded by ProjectStateMachine)",
    )

    # --- Verification stamp (set once) ---
    verifier_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True, default=None
    )
    verification_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    verification_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Timestamps / concurrency ---
    submission_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # --- Relationships ---
    evidence_files: Mapped[list[EvidenceFile]] = relationship(
        "EvidenceFile",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="EvidenceFile.position.asc()",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'VERIFIED', 'REJECTED', 'CREDITS_ISSUED')",
            name="ck_project_valid_status",
        ),
        CheckConstraint(
            "ecosystem_type IN ('MANGROVE', 'SEAGRASS', 'SALT_MARSH', 'OTHER')",
            name="ck_project_valid_ecosystem",
        ),
        CheckConstraint(
            "estimated_carbon_capture > 0 AND area_size > 0",
            name="ck_project_positive_measures",
        ),
        Index("idx_project_status", "status"),
        Index("idx_project_submitter", "submitter_id"),
        Index("idx_project_ecosystem", "ecosystem_type"),
        Index("idx_project_submitted_at", "submission_timestamp"),
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} status={self.status} name={self.name!r}>"


# ---------------------------------------------------------------------------
# 3. evidence_files
# ---------------------------------------------------------------------------
class EvidenceFile(Base):
    """A content-addressed evidence reference attached to a project."""

    __tablename__ = "evidence_files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    ref: Mapped[str] = mapped_column(
        String(128), nullable=False, comment="Content address in the evidence store"
    )
    position: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Order of attachment within the project"
    )
    original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    upload_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    project: Mapped[Project] = relationship("Project", back_populates="evidence_files")

    __table_args__ = (Index("idx_evidence_project", "project_id"),)

    def __repr__(self) -> str:
        return f"<EvidenceFile project={self.project_id} ref={self.ref}>"


# ---------------------------------------------------------------------------
# 4. carbon_credits
# ---------------------------------------------------------------------------
class CarbonCredit(Base):
    """A batch of carbon credits minted for a verified project."""

    __tablename__ = "carbon_credits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id"),
        nullable=False,
        unique=True,
        comment="At most one credit batch per project",
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)

    carbon_amount: Mapped[int] = mapped_column(Integer, nullable=False, comment="Tons CO2")
    vintage_year: Mapped[int] = mapped_column(Integer, nullable=False)
    certification_standard: Mapped[str] = mapped_column(
        String(50), nullable=False, default="VCS"
    )
    token_id: Mapped[str | None] = mapped_column(
        String(78), nullable=True, comment="Token id reported by the chain client"
    )
    metadata_ref: Mapped[str | None] = mapped_column(
        String(128), nullable=True, comment="Evidence-store reference of the metadata JSON"
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="ACTIVE",
        comment="Current lifecycle state (guarded by CreditStateMachine)",
    )
    issuance_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    retirement_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    retirement_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    transactions: Mapped[list[CreditTransaction]] = relationship(
        "CreditTransaction",
        back_populates="credit",
        order_by="CreditTransaction.timestamp.asc()",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'TRANSFERRED', 'RETIRED')",
            name="ck_credit_valid_status",
        ),
        CheckConstraint("carbon_amount > 0", name="ck_credit_positive_amount"),
        Index("idx_credit_status", "status"),
        Index("idx_credit_owner", "owner_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<CarbonCredit id={self.id} status={self.status} "
            f"amount={self.carbon_amount}t>"
        )


# ---------------------------------------------------------------------------
# 5. credit_transactions (Append-Only Ledger)
# ---------------------------------------------------------------------------
class CreditTransaction(Base):
    """Immutable ledger record of a MINT, TRANSFER or RETIRE operation.

    This table is APPEND-ONLY. No UPDATE or DELETE operations are permitted
    at the application level.
    """

    __tablename__ = "credit_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    credit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("carbon_credits.id"), nullable=False
    )
    from_address: Mapped[str | None] = mapped_column(String(42), nullable=True)
    to_address: Mapped[str] = mapped_column(String(42), nullable=False)
    transaction_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    credit: Mapped[CarbonCredit] = relationship("CarbonCredit", back_populates="transactions")

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('MINT', 'TRANSFER', 'RETIRE')",
            name="ck_tx_valid_type",
        ),
        Index("idx_tx_credit", "credit_id"),
        Index("idx_tx_type", "transaction_type"),
        Index("idx_tx_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<CreditTransaction credit={self.credit_id} "
            f"type={self.transaction_type} hash={self.transaction_hash}>"
        )


# ---------------------------------------------------------------------------
# Register the auto-update listener for updated_at
# ---------------------------------------------------------------------------
for _model in (User, Project, CarbonCredit):
    event.listen(_model, "before_update", _set_updated_at)
