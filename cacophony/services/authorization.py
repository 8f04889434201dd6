"""
Authorization resolver: decide whether a caller may act on a server scope.

Decisions are made from the credential snapshot alone. The snapshot is
trusted for the lifetime of the token: a membership removed or re-roled
after issuance still counts as the snapshot describes it until the caller
refreshes the token. Structural checks (is this room/role/membership on
that server?) belong to the stores and run before these checks.

Every check returns the capability that granted access and raises
UnauthorizedError otherwise.
"""

from enum import Enum

from cacophony.core.errors import UnauthorizedError
from cacophony.schemas.credentials import CredentialSnapshot, MembershipClaim


class Capability(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    SERVER_MEMBER = "server_member"
    SERVER_ADMIN = "server_admin"
    SITE_ADMIN = "site_admin"
    RESOURCE_OWNER = "resource_owner"


def resolve_capability(
    snapshot: CredentialSnapshot | None, server_id: int | None = None
) -> Capability:
    """Highest standing the caller holds for the server (or site-wide if None)."""
    if snapshot is None:
        return Capability.ANONYMOUS
    if snapshot.is_site_admin:
        return Capability.SITE_ADMIN
    if server_id is None:
        return Capability.AUTHENTICATED
    claim = snapshot.membership_for(server_id)
    if claim is None:
        return Capability.AUTHENTICATED
    return Capability.SERVER_ADMIN if claim.is_admin else Capability.SERVER_MEMBER


def require_authenticated(snapshot: CredentialSnapshot | None) -> CredentialSnapshot:
    if snapshot is None:
        raise UnauthorizedError("not logged in")
    return snapshot


def require_site_admin(snapshot: CredentialSnapshot | None) -> Capability:
    if not require_authenticated(snapshot).is_site_admin:
        raise UnauthorizedError("site admin only")
    return Capability.SITE_ADMIN


def require_self_or_site_admin(
    snapshot: CredentialSnapshot | None, user_id: int
) -> Capability:
    snapshot = require_authenticated(snapshot)
    if snapshot.is_site_admin:
        return Capability.SITE_ADMIN
    if snapshot.user_id == user_id:
        return Capability.RESOURCE_OWNER
    raise UnauthorizedError("not allowed to act on another user")


def require_member(snapshot: CredentialSnapshot | None, server_id: int) -> Capability:
    """Any member of the server, or a site admin."""
    require_authenticated(snapshot)
    capability = resolve_capability(snapshot, server_id)
    if capability is Capability.AUTHENTICATED:
        raise UnauthorizedError("not a member of this server")
    return capability


def require_server_admin(
    snapshot: CredentialSnapshot | None, server_id: int
) -> Capability:
    """A member whose role is an admin role, or a site admin."""
    capability = require_member(snapshot, server_id)
    if capability is Capability.SERVER_MEMBER:
        raise UnauthorizedError("unauthorized, not an admin")
    return capability


def require_admin_or_self(
    snapshot: CredentialSnapshot | None, server_id: int, membership_id: int
) -> Capability:
    """Server admin, site admin, or the member acting on their own membership."""
    capability = require_member(snapshot, server_id)
    if capability is not Capability.SERVER_MEMBER:
        return capability
    claim = snapshot.membership_for(server_id)
    if claim.membership_id == membership_id:
        return Capability.RESOURCE_OWNER
    raise UnauthorizedError("unauthorized, not an admin")


def author_claim(snapshot: CredentialSnapshot | None, server_id: int) -> MembershipClaim:
    """
    The membership the caller writes as on this server. Site admins get no
    bypass here: content is always attributed to a membership.
    """
    claim = require_authenticated(snapshot).membership_for(server_id)
    if claim is None:
        raise UnauthorizedError("not a member of this server")
    return claim
