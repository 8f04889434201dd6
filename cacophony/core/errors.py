"""Error taxonomy shared by the stores, the authorization resolver and the transport."""


class CacophonyError(Exception):
    """Base class: a stable error kind with a user-visible message and HTTP status."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CacophonyError):
    """Malformed or out-of-range input (color channel outside [0, 255], empty post)."""

    status_code = 400
    default_message = "Bad request"


class AuthenticationError(CacophonyError):
    """Credential presentation failed. Never says which half was wrong."""

    status_code = 401
    default_message = "Invalid username or password."


class UnauthorizedError(CacophonyError):
    """Caller lacks standing: not logged in, not a member, not an admin, not self."""

    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(CacophonyError):
    """Target exists but is outside the addressed scope (e.g. role of another server)."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(CacophonyError):
    """Referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"


class ConflictError(CacophonyError):
    """Uniqueness violation, or a deletion blocked by existing references."""

    status_code = 409
    default_message = "Conflict"
