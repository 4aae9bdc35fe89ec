"""Domain layer — pure business logic with zero framework dependencies."""

from blue_carbon_registry.domain.enums import (
    BURN_ADDRESS,
    CreditStatus,
    EcosystemType,
    Operation,
    ProjectStatus,
    TransactionType,
    UserRole,
)
from blue_carbon_registry.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RegistryError,
    ValidationError,
)
from blue_carbon_registry.domain.policy import can_perform
from blue_carbon_registry.domain.ports import (
    ChainClient,
    ChainReceipt,
    EvidenceRef,
    EvidenceStore,
    Principal,
)
from blue_carbon_registry.domain.state_machine import (
    CreditStateMachine,
    ProjectStateMachine,
    validate_transition,
)

__all__ = [
    "BURN_ADDRESS",
    "CreditStatus",
    "EcosystemType",
    "Operation",
    "ProjectStatus",
    "TransactionType",
    "UserRole",
    "ConflictError",
    "ForbiddenError",
    "InvalidStateError",
    "NotFoundError",
    "RegistryError",
    "ValidationError",
    "can_perform",
    "ChainClient",
    "ChainReceipt",
    "EvidenceRef",
    "EvidenceStore",
    "Principal",
    "CreditStateMachine",
    "ProjectStateMachine",
    "validate_transition",
]
