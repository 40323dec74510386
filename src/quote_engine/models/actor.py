"""Authenticated actor supplied by the gateway authorizer."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import ActorRole


class Actor(BaseModel):
    """The user performing an operation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    role: ActorRole
    name: str | None = None
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is ActorRole.ADMIN


class ActorSummary(BaseModel):
    """Display data for an actor in audit trails."""

    model_config = ConfigDict(strict=True)

    id: str
    name: str
    email: str | None = None
