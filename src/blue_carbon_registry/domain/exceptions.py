"""Domain exceptions for the Blue Carbon Registry.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.
Every error carries a stable machine-readable ``code``.
"""


class RegistryError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "REGISTRY_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Input Errors ---


class ValidationError(RegistryError):
    """Raised when input is malformed or outside its declared bounds."""

    def __init__(self, message: str, details: list | None = None) -> None:
        super().__init__(message=message, code="VALIDATION_ERROR")
        self.details = details or []


class InvalidFileTypeError(ValidationError):
    """Raised when an uploaded file's content type is not on the allowlist."""

    def __init__(self, content_type: str | None) -> None:
        super().__init__(f"File type not allowed: {content_type or 'unspecified'}")
        self.code = "INVALID_FILE_TYPE"
        self.content_type = content_type


class InvalidGeoJSONError(ValidationError):
    """Raised when submitted site boundaries are not a GeoJSON object."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid GeoJSON format: {reason}")
        self.code = "INVALID_GEOJSON"


class FileTooLargeError(RegistryError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(
            message=f"File too large, the limit is {limit_bytes} bytes",
            code="FILE_TOO_LARGE",
        )
        self.limit_bytes = limit_bytes


# --- Lookup Errors ---


class NotFoundError(RegistryError):
    """Base exception for a referenced entity that does not exist."""

    def __init__(self, message: str, code: str = "NOT_FOUND") -> None:
        super().__init__(message=message, code=code)


class ProjectNotFoundError(NotFoundError):
    """Raised when a project ID does not exist."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}", code="PROJECT_NOT_FOUND")
        self.project_id = project_id


class CreditNotFoundError(NotFoundError):
    """Raised when a carbon credit ID does not exist."""

    def __init__(self, credit_id: str) -> None:
        super().__init__(f"Carbon credit not found: {credit_id}", code="CREDIT_NOT_FOUND")
        self.credit_id = credit_id


class RecipientNotFoundError(NotFoundError):
    """Raised when no registered user owns the target wallet address."""

    def __init__(self, wallet_address: str) -> None:
        super().__init__(
            f"Recipient not found in system: {wallet_address}",
            code="RECIPIENT_NOT_FOUND",
        )
        self.wallet_address = wallet_address


class UserNotFoundError(NotFoundError):
    """Raised when a user ID does not exist."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}", code="USER_NOT_FOUND")
        self.user_id = user_id


# --- Authorization Errors ---


class UnauthenticatedError(RegistryError):
    """Raised when no valid principal accompanies a request."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message=message, code="UNAUTHENTICATED")


class ForbiddenError(RegistryError):
    """Raised when the principal is not allowed to perform an operation."""

    def __init__(self, operation: str, principal_id: str) -> None:
        super().__init__(
            message=f"Not authorized to perform {operation}",
            code="FORBIDDEN",
        )
        self.operation = operation
        self.principal_id = principal_id


# --- State Machine Errors ---


class InvalidStateError(RegistryError):
    """Raised when an operation is not legal in the entity's current state.

    Example: verify on a REJECTED project, transfer of a RETIRED credit.
    """

    def __init__(self, current_state: str, attempted: str) -> None:
        super().__init__(
            message=f"Operation '{attempted}' not allowed in state {current_state}",
            code="INVALID_STATE",
        )
        self.current_state = current_state
        self.attempted = attempted


# --- Conflict Errors ---


class ConflictError(RegistryError):
    """Base exception for uniqueness and concurrency violations."""

    def __init__(self, message: str, code: str = "CONFLICT") -> None:
        super().__init__(message=message, code=code)


class CreditsAlreadyIssuedError(ConflictError):
    """Raised when a second credit batch is minted for the same project."""

    def __init__(self, project_id: str) -> None:
        super().__init__(
            f"Credits already exist for project: {project_id}",
            code="CREDITS_EXIST",
        )
        self.project_id = project_id


class DuplicateIdentityError(ConflictError):
    """Raised when an email or wallet address is already registered."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(
            f"User with this {field} already exists: {value}",
            code="IDENTITY_EXISTS",
        )
        self.field = field


class ConcurrentModificationError(ConflictError):
    """Raised when a versioned row was changed by another transaction."""

    def __init__(self, entity: str) -> None:
        super().__init__(
            f"{entity} was modified concurrently, reload and try again",
            code="CONCURRENT_MODIFICATION",
        )


class DuplicateOperationError(ConflictError):
    """Raised when a duplicate idempotency key is detected."""

    def __init__(self, idempotency_key: str) -> None:
        super().__init__(
            f"Duplicate operation detected for key: {idempotency_key}",
            code="DUPLICATE_OPERATION",
        )


# --- Collaborator Errors ---


class ChainError(RegistryError):
    """Raised when the chain client fails to submit a transaction."""

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message=message, code="CHAIN_ERROR")
        self.tx_hash = tx_hash
