"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject the request's
database session, the acting principal, the chain client, the evidence
store and configuration. Collaborators live on ``app.state`` and are built
by the application lifespan.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from blue_carbon_registry.config import Settings, get_settings
from blue_carbon_registry.domain.ports import ChainClient, EvidenceStore, Principal
from blue_carbon_registry.services.user_service import UserService


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session bound to one transaction for the request."""
    async with request.app.state.db.session() as session:
        yield session


async def get_current_principal(
    x_user_id: str | None = Header(default=None),
    session: AsyncSession = Depends(get_db_session),
) -> Principal:
    """Resolve the acting user from the ``X-User-Id`` header."""
    return await UserService(session).resolve_principal(x_user_id)


def get_chain_client(request: Request) -> ChainClient:
    """Provide the configured chain client."""
    return request.app.state.chain_client


def get_evidence_store(request: Request) -> EvidenceStore:
    """Provide the configured evidence store."""
    return request.app.state.evidence_store


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()
