"""Audit event model emitted for linking, pricing and status changes."""

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field

from .enums import ActorRole, EntityType


class AuditEvent(BaseModel):
    """A structured audit event for the audit log sink."""

    event_id: str
    action: str = Field(..., description="e.g. LINK_PACKAGE, RECALCULATE_PRICE")
    resource: EntityType
    resource_id: str
    actor_id: str
    actor_role: ActorRole
    details: dict[str, Any] = Field(default_factory=dict)
    success: bool
    error_message: str | None = None
    timestamp: dt.datetime
