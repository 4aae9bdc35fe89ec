"""User Service — registration and principal resolution.

Stands in for the identity collaborator: it owns the registered-user table
and turns a user id into the Principal consumed by the lifecycle services.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from blue_carbon_registry.domain.enums import Operation, UserRole
from blue_carbon_registry.domain.exceptions import (
    DuplicateIdentityError,
    ForbiddenError,
    UnauthenticatedError,
    UserNotFoundError,
    ValidationError,
)
from blue_carbon_registry.domain.policy import can_perform
from blue_carbon_registry.domain.ports import Principal
from blue_carbon_registry.infrastructure.database.orm_models import User
from blue_carbon_registry.infrastructure.database.repositories import UserRepository
from blue_carbon_registry.logging_config import get_logger
from blue_carbon_registry.schemas.user import UserCreate
from blue_carbon_registry.services.validation import (
    page_window,
    parse_enum,
    parse_id,
    validate_input,
)

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class UserService:
    """Manages registered users."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._user_repo = UserRepository(session)

    async def register(
        self,
        email: str,
        name: str,
        organization: str | None = None,
        role: UserRole | str = UserRole.COMMUNITY,
        wallet_address: str | None = None,
    ) -> User:
        """Register a user. Email and wallet address must be unique."""
        data = validate_input(
            UserCreate,
            {
                "email": email,
                "name": name,
                "organization": organization,
                "role": role,
                "wallet_address": wallet_address,
            },
        )
        if await self._user_repo.get_by_email(data.email) is not None:
            raise DuplicateIdentityError("email", data.email)
        if data.wallet_address and await self._user_repo.get_by_wallet(data.wallet_address):
            raise DuplicateIdentityError("wallet address", data.wallet_address)

        user = User(
            email=data.email,
            name=data.name,
            organization=data.organization,
            role=data.role.value,
            wallet_address=data.wallet_address,
        )
        user = await self._user_repo.create(user)

        logger.info("user.registered", user_id=str(user.id), role=user.role)
        return user

    async def get_user(self, user_id: uuid.UUID | str) -> User:
        """Get a user or raise."""
        user = await self._user_repo.get_by_id(parse_id(user_id, "user id"))
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    async def list_users(
        self,
        actor: Principal,
        role: UserRole | str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[User], int]:
        """List registered users. Admin only."""
        if not can_perform(actor, Operation.LIST_USERS):
            raise ForbiddenError(Operation.LIST_USERS.value, actor.id)
        offset, limit = page_window(page, limit)
        return await self._user_repo.list(
            role=parse_enum(UserRole, role, "role"), offset=offset, limit=limit
        )

    async def resolve_principal(self, user_id: uuid.UUID | str | None) -> Principal:
        """Turn a user id into a Principal.

        Raises:
            UnauthenticatedError: If the id is missing, malformed or unknown.
        """
        if not user_id:
            raise UnauthenticatedError()
        try:
            user = await self.get_user(user_id)
        except (ValidationError, UserNotFoundError) as exc:
            logger.warning("user.unresolved_principal", user_id=str(user_id))
            raise UnauthenticatedError("Unknown or malformed user id") from exc
        return principal_for(user)


def principal_for(user: User) -> Principal:
    """Build the Principal for a registered user."""
    return Principal(id=str(user.id), role=UserRole(user.role), wallet_address=user.wallet_address)
