"""Version history, comparison and audit trail models."""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .actor import ActorSummary
from .enums import ChangeType, EntityType


class VersionHistoryEntry(BaseModel):
    """Immutable snapshot of an entity's mutable fields at one version."""

    model_config = ConfigDict(frozen=True)

    entity_id: str
    entity_type: EntityType
    version: int = Field(..., ge=1)
    snapshot: dict[str, Any]
    actor_id: str
    timestamp: dt.datetime
    reason: str
    changed_fields: list[str] = Field(default_factory=list)


class LineChange(BaseModel):
    """One differing line of a long text field."""

    model_config = ConfigDict(frozen=True)

    line_number: int = Field(..., ge=1)
    old_line: str
    new_line: str
    change_type: ChangeType


class FieldChange(BaseModel):
    """A field that differs between two versions."""

    model_config = ConfigDict(frozen=True)

    field: str
    old_value: Any = None
    new_value: Any = None
    change_type: ChangeType
    line_changes: list[LineChange] | None = None


class AuditTrailEntry(BaseModel):
    """A history entry with the actor's display data."""

    version: int
    actor: ActorSummary
    timestamp: dt.datetime
    reason: str
    changed_fields: list[str]


class AuditTrail(BaseModel):
    """Summary of who changed an entity and when."""

    entity_id: str
    entity_type: EntityType
    total_versions: int
    first_created: dt.datetime
    last_modified: dt.datetime
    unique_modifiers: int
    recent_changes: list[AuditTrailEntry]
