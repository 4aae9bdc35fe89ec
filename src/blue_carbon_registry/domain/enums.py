"""Domain enumerations for the Blue Carbon Registry.

These enums define the canonical states and types used throughout the system.
They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class ProjectStatus(enum.StrEnum):
    """Lifecycle states of a restoration project.

    Transitions are enforced by ProjectStateMachine.
    See domain/state_machine.py for the transition table.
    """

    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    CREDITS_ISSUED = "CREDITS_ISSUED"


class CreditStatus(enum.StrEnum):
    """Lifecycle states of a carbon credit batch."""

    ACTIVE = "ACTIVE"
    TRANSFERRED = "TRANSFERRED"
    RETIRED = "RETIRED"


class TransactionType(enum.StrEnum):
    """Types of ledger entries recorded in the credit_transactions table.

    Every state-changing credit operation MUST produce exactly one entry.
    """

    MINT = "MINT"
    TRANSFER = "TRANSFER"
    RETIRE = "RETIRE"


class EcosystemType(enum.StrEnum):
    """Kinds of coastal ecosystem a project can restore."""

    MANGROVE = "MANGROVE"
    SEAGRASS = "SEAGRASS"
    SALT_MARSH = "SALT_MARSH"
    OTHER = "OTHER"


class UserRole(enum.StrEnum):
    """Roles carried by an authenticated principal."""

    COMMUNITY = "COMMUNITY"
    VERIFIER = "VERIFIER"
    ADMIN = "ADMIN"
    OBSERVER = "OBSERVER"


class Operation(enum.StrEnum):
    """Operations gated by the authorization policy (domain/policy.py)."""

    SUBMIT_PROJECT = "SUBMIT_PROJECT"
    UPDATE_PROJECT = "UPDATE_PROJECT"
    DELETE_PROJECT = "DELETE_PROJECT"
    ADD_EVIDENCE = "ADD_EVIDENCE"
    VERIFY_PROJECT = "VERIFY_PROJECT"
    REJECT_PROJECT = "REJECT_PROJECT"
    LIST_PENDING = "LIST_PENDING"
    MINT_CREDITS = "MINT_CREDITS"
    TRANSFER_CREDIT = "TRANSFER_CREDIT"
    RETIRE_CREDIT = "RETIRE_CREDIT"
    VIEW_ALL_TRANSACTIONS = "VIEW_ALL_TRANSACTIONS"
    LIST_USERS = "LIST_USERS"


# Projects visible in the public registry.
PUBLIC_PROJECT_STATUSES = (ProjectStatus.VERIFIED, ProjectStatus.CREDITS_ISSUED)

# Retired credits are sent here on chain.
BURN_ADDRESS = "0x0000000000000000000000000000000000000000"
