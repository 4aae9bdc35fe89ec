"""User registration REST API routes.

Routes:
    POST   /api/v1/users     — Register a user
    GET    /api/v1/users     — List users (admin)
    GET    /api/v1/users/me  — The acting user
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blue_carbon_registry.api.deps import get_current_principal, get_db_session
from blue_carbon_registry.domain.ports import Principal
from blue_carbon_registry.schemas.registry import Page
from blue_carbon_registry.schemas.user import UserCreate, UserResponse
from blue_carbon_registry.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=201,
    summary="Register a user",
)
async def register_user(
    request: UserCreate,
    session: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    """Register a user. Email and wallet address must be unused."""
    svc = UserService(session)
    user = await svc.register(
        email=request.email,
        name=request.name,
        organization=request.organization,
        role=request.role,
        wallet_address=request.wallet_address,
    )
    return UserResponse.model_validate(user)


@router.get(
    "",
    response_model=Page[UserResponse],
    summary="List users",
)
async def list_users(
    role: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Page[UserResponse]:
    """List registered users, newest first. Admin only."""
    users, total = await UserService(session).list_users(principal, role, page, limit)
    return Page[UserResponse](
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        limit=limit,
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the acting user",
)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await UserService(session).get_user(principal.id)
    return UserResponse.model_validate(user)
