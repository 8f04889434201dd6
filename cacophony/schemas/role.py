"""Request/response schemas for roles, colors and room-access grants."""

from pydantic import BaseModel, Field, field_validator

from cacophony.models.role import unpack_color


class Color(BaseModel):
    """RGB triple; each channel in [0, 255]. Packing to an integer happens in storage."""

    r: int = Field(..., ge=0, le=255)
    g: int = Field(..., ge=0, le=255)
    b: int = Field(..., ge=0, le=255)


WHITE = Color(r=255, g=255, b=255)


def _color_from_storage(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        r, g, b = unpack_color(value)
        return {"r": r, "g": g, "b": b}
    return value


class RoleCreate(BaseModel):
    """Body for creating a role on a server."""

    title: str = Field(..., min_length=1, max_length=255)
    color: Color = Field(default=WHITE)
    is_admin: bool = False


class RoleUpdate(BaseModel):
    """Partial role update; only fields present in the request are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    color: Color | None = None
    is_admin: bool | None = None


class RoleRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    title: str
    server_id: int
    color: Color
    is_admin: bool

    @field_validator("color", mode="before")
    @classmethod
    def unpack_stored_color(cls, v: object) -> object:
        return _color_from_storage(v)


class RoleMember(BaseModel):
    """Membership holding a role (as listed on the role detail)."""

    id: int
    nickname: str
    picture_url: str | None = None


class RoleAccess(BaseModel):
    """A room the role can use."""

    room_id: int
    name: str
    type: str
    is_moderator: bool


class RoleDetail(RoleRead):
    members: list[RoleMember] = Field(default_factory=list)
    access: list[RoleAccess] = Field(default_factory=list)


class AccessGrantCreate(BaseModel):
    is_moderator: bool = False


class ModeratorStatusUpdate(BaseModel):
    """Set is_moderator explicitly, or leave it null to toggle the current value."""

    is_moderator: bool | None = None


class AccessGrantRead(BaseModel):
    model_config = {"from_attributes": True}

    role_id: int
    room_id: int
    is_moderator: bool
