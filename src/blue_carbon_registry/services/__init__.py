"""Application services — use case orchestration."""

from blue_carbon_registry.services.credit_service import CreditService
from blue_carbon_registry.services.evidence_service import EvidenceService
from blue_carbon_registry.services.project_service import ProjectService
from blue_carbon_registry.services.registry_service import RegistryService
from blue_carbon_registry.services.user_service import UserService, principal_for

__all__ = [
    "CreditService",
    "EvidenceService",
    "ProjectService",
    "RegistryService",
    "UserService",
    "principal_for",
]
