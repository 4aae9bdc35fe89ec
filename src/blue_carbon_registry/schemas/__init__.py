"""Pydantic schemas for API request/response validation."""

from blue_carbon_registry.schemas.credit import (
    ChainStatusResponse,
    CreditResponse,
    MintCreditsRequest,
    RetireCreditRequest,
    TransactionResponse,
    TransferCreditRequest,
)
from blue_carbon_registry.schemas.project import (
    EvidenceAddRequest,
    EvidenceFileResponse,
    EvidenceResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectSubmitRequest,
    ProjectUpdate,
    RejectProjectRequest,
    VerifyProjectRequest,
)
from blue_carbon_registry.schemas.registry import (
    EcosystemStats,
    HealthResponse,
    Page,
    RegistryStats,
)
from blue_carbon_registry.schemas.user import UserCreate, UserResponse

__all__ = [
    "ChainStatusResponse",
    "CreditResponse",
    "MintCreditsRequest",
    "RetireCreditRequest",
    "TransactionResponse",
    "TransferCreditRequest",
    "EvidenceAddRequest",
    "EvidenceFileResponse",
    "EvidenceResponse",
    "ProjectCreate",
    "ProjectResponse",
    "ProjectSubmitRequest",
    "ProjectUpdate",
    "RejectProjectRequest",
    "VerifyProjectRequest",
    "EcosystemStats",
    "HealthResponse",
    "Page",
    "RegistryStats",
    "UserCreate",
    "UserResponse",
]
