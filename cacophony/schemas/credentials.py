"""Credential snapshot: the caller's identity and standing as of token issuance."""

from pydantic import BaseModel, Field

SNAPSHOT_VERSION = 1


class MembershipClaim(BaseModel):
    model_config = {"frozen": True}

    membership_id: int
    server_id: int
    role_id: int
    is_admin: bool


class CredentialSnapshot(BaseModel):
    """
    Immutable, signed-by-the-transport record of who the caller is.

    It reflects memberships at issuance, not at request time: a role change
    or removal after issuance is invisible until the caller refreshes the
    token. Authorization trusts it for the token's lifetime.
    """

    model_config = {"frozen": True}

    version: int = SNAPSHOT_VERSION
    user_id: int
    username: str
    is_site_admin: bool = False
    memberships: tuple[MembershipClaim, ...] = Field(default_factory=tuple)

    def membership_for(self, server_id: int) -> MembershipClaim | None:
        """Claim for the given server, if the caller was a member at issuance."""
        for claim in self.memberships:
            if claim.server_id == server_id:
                return claim
        return None
