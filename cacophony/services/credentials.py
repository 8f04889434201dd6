"""Issue and read credential snapshots carried in bearer tokens."""

import logging

import jwt
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from cacophony.core.errors import AuthenticationError, NotFoundError
from cacophony.core.security import create_access_token, decode_access_token
from cacophony.models import Membership, Role, User
from cacophony.schemas.credentials import (
    SNAPSHOT_VERSION,
    CredentialSnapshot,
    MembershipClaim,
)

logger = logging.getLogger(__name__)


def build_snapshot(db: Session, user_id: int) -> CredentialSnapshot:
    """Capture the user's current memberships and admin standing."""
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"no user with id {user_id}")
    rows = db.execute(
        select(Membership.id, Membership.server_id, Membership.role_id, Role.is_admin)
        .join(Role, Role.id == Membership.role_id)
        .where(Membership.user_id == user_id)
        .order_by(Membership.id)
    ).all()
    return CredentialSnapshot(
        user_id=user.id,
        username=user.username,
        is_site_admin=bool(user.is_site_admin),
        memberships=tuple(
            MembershipClaim(
                membership_id=membership_id,
                server_id=server_id,
                role_id=role_id,
                is_admin=bool(is_admin),
            )
            for membership_id, server_id, role_id, is_admin in rows
        ),
    )


def issue_token(snapshot: CredentialSnapshot) -> str:
    """Sign the snapshot as a JWT."""
    claims = snapshot.model_dump(mode="json", exclude={"user_id", "version"})
    claims["ver"] = snapshot.version
    return create_access_token(sub=snapshot.user_id, claims=claims)


def read_token(token: str) -> CredentialSnapshot:
    """
    Verify a bearer token and rebuild the snapshot it carries.
    Invalid, expired or unsupported tokens raise AuthenticationError.
    """
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as e:
        raise AuthenticationError("Invalid or expired token") from e
    if payload.get("ver") != SNAPSHOT_VERSION:
        logger.warning("Rejected token with snapshot version %r", payload.get("ver"))
        raise AuthenticationError("Unsupported token version")
    try:
        return CredentialSnapshot(
            version=payload["ver"],
            user_id=int(payload["sub"]),
            username=payload["username"],
            is_site_admin=payload.get("is_site_admin", False),
            memberships=payload.get("memberships", ()),
        )
    except (KeyError, TypeError, ValueError, PydanticValidationError) as e:
        raise AuthenticationError("Invalid token payload") from e
