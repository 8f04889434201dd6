"""Token login, registration, refresh, and the caller-snapshot dependencies."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from cacophony.core.database import get_db
from cacophony.core.errors import AuthenticationError, NotFoundError
from cacophony.schemas.auth import LoginRequest, RegisterRequest, RegisterResponse, TokenResponse
from cacophony.schemas.credentials import CredentialSnapshot
from cacophony.schemas.user import UserCreate
from cacophony.services.authorization import require_authenticated
from cacophony.services.credentials import build_snapshot, issue_token, read_token
from cacophony.services.users import authenticate, create_user, touch_last_seen

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_snapshot(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CredentialSnapshot | None:
    """
    Dependency: the caller's credential snapshot, or None when no bearer token
    was sent. A token that fails verification is a 401, not an anonymous call.
    Stamps last_seen for every authenticated request.
    """
    if credentials is None:
        return None
    snapshot = read_token(credentials.credentials)
    try:
        touch_last_seen(db, snapshot.user_id)
    except NotFoundError as e:
        raise AuthenticationError("User not found") from e
    return snapshot


def require_snapshot(
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
) -> CredentialSnapshot:
    """Dependency: require a logged-in caller."""
    return require_authenticated(snapshot)


@router.post("/token", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a bearer token carrying
    the caller's memberships. Include it as: Authorization: Bearer <access_token>
    """
    user = authenticate(db, body.username, body.password)
    token = issue_token(build_snapshot(db, user.id))
    return TokenResponse(access_token=token)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> RegisterResponse:
    """Create an account and log it in."""
    user = create_user(
        db,
        UserCreate(username=body.username, password=body.password, picture_url=body.picture_url),
    )
    token = issue_token(build_snapshot(db, user.id))
    return RegisterResponse(access_token=token, user_id=user.id)


@router.get("/refresh", response_model=TokenResponse)
def refresh(
    snapshot: Annotated[CredentialSnapshot, Depends(require_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """Re-issue the token from current memberships and roles."""
    try:
        live = build_snapshot(db, snapshot.user_id)
    except NotFoundError as e:
        raise AuthenticationError("User not found") from e
    return TokenResponse(access_token=issue_token(live))
