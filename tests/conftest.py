"""Shared test fixtures for the Blue Carbon Registry test suite.

Provides:
    - A fresh in-memory SQLite Database per test
    - Registered principals for every role
    - Projects and credits at each lifecycle stage
    - Async test support via pytest-asyncio
"""

from __future__ import annotations

import secrets
import uuid
from typing import TYPE_CHECKING, Any

import pytest
import pytest_asyncio

from blue_carbon_registry.config import Settings
from blue_carbon_registry.domain.enums import UserRole
from blue_carbon_registry.infrastructure.chain import SimulatedChainClient
from blue_carbon_registry.infrastructure.database.engine import Database
from blue_carbon_registry.services import (
    CreditService,
    ProjectService,
    UserService,
    principal_for,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from blue_carbon_registry.domain.ports import Principal

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


def new_wallet() -> str:
    return "0x" + secrets.token_hex(20)


# ---------------------------------------------------------------------------
# Infrastructure Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db() -> AsyncIterator[Database]:
    """A Database with all tables created, disposed after the test."""
    database = Database(SQLITE_URL)
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def chain() -> SimulatedChainClient:
    return SimulatedChainClient(network="test", chain_id=1337)


@pytest.fixture
def settings() -> Settings:
    """Settings independent of any local .env file."""
    return Settings(
        _env_file=None,
        database_url=SQLITE_URL,
        vintage_year_min=2000,
        vintage_year_max=2030,
        default_certification_standard="VCS",
    )


# ---------------------------------------------------------------------------
# Principal Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_principal(db: Database) -> Callable[..., Awaitable[Principal]]:
    """Factory registering a user and returning its Principal."""

    async def _make(role: UserRole = UserRole.COMMUNITY, wallet: bool = True) -> Principal:
        suffix = uuid.uuid4().hex[:8]
        async with db.session() as session:
            user = await UserService(session).register(
                email=f"{role.value.lower()}-{suffix}@example.org",
                name=f"{role.value.title()} {suffix}",
                role=role,
                wallet_address=new_wallet() if wallet else None,
            )
        return principal_for(user)

    return _make


@pytest_asyncio.fixture
async def community(make_principal: Callable[..., Awaitable[Principal]]) -> Principal:
    return await make_principal(UserRole.COMMUNITY)


@pytest_asyncio.fixture
async def other_community(make_principal: Callable[..., Awaitable[Principal]]) -> Principal:
    return await make_principal(UserRole.COMMUNITY)


@pytest_asyncio.fixture
async def verifier(make_principal: Callable[..., Awaitable[Principal]]) -> Principal:
    return await make_principal(UserRole.VERIFIER)


@pytest_asyncio.fixture
async def admin(make_principal: Callable[..., Awaitable[Principal]]) -> Principal:
    return await make_principal(UserRole.ADMIN)


@pytest_asyncio.fixture
async def observer(make_principal: Callable[..., Awaitable[Principal]]) -> Principal:
    return await make_principal(UserRole.OBSERVER)


# ---------------------------------------------------------------------------
# Lifecycle Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_attributes() -> dict[str, Any]:
    """Return a valid project submission dict."""
    return {
        "name": "Sundarbans Mangrove Revival",
        "description": "Replanting 120 hectares of degraded mangrove along tidal creeks.",
        "ecosystem_type": "MANGROVE",
        "location": "Sundarbans, West Bengal, India",
        "estimated_carbon_capture": 1200,
        "area_size": 120,
    }


@pytest_asyncio.fixture
async def pending_project(
    db: Database, community: Principal, project_attributes: dict[str, Any]
) -> str:
    """ID of a PENDING project submitted by ``community``."""
    async with db.session() as session:
        project = await ProjectService(session).submit(
            community, project_attributes, ["sha256-survey-2024"]
        )
    return str(project.id)


@pytest_asyncio.fixture
async def verified_project(db: Database, verifier: Principal, pending_project: str) -> str:
    """ID of a VERIFIED project submitted by ``community``."""
    async with db.session() as session:
        await ProjectService(session).verify(verifier, pending_project, "Field audit complete.")
    return pending_project


@pytest_asyncio.fixture
async def active_credit(
    db: Database,
    chain: SimulatedChainClient,
    settings: Settings,
    admin: Principal,
    community: Principal,
    verified_project: str,
) -> str:
    """ID of an ACTIVE 500t credit owned by ``community``."""
    async with db.session() as session:
        credit = await CreditService(session, chain, settings=settings).mint(
            admin,
            project_id=verified_project,
            carbon_amount=500,
            vintage_year=2024,
            recipient_address=community.wallet_address,
        )
    return str(credit.id)
