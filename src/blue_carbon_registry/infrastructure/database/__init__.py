"""Database infrastructure — engine, ORM models, and repositories."""

from blue_carbon_registry.infrastructure.database.engine import Database
from blue_carbon_registry.infrastructure.database.orm_models import (
    Base,
    CarbonCredit,
    CreditTransaction,
    EvidenceFile,
    Project,
    User,
)
from blue_carbon_registry.infrastructure.database.repositories import (
    CreditRepository,
    ProjectRepository,
    TransactionRepository,
    UserRepository,
)

__all__ = [
    "Base",
    "CarbonCredit",
    "CreditTransaction",
    "EvidenceFile",
    "Project",
    "User",
    "CreditRepository",
    "ProjectRepository",
    "TransactionRepository",
    "UserRepository",
    "Database",
]
