"""Version history and audit service for packages and quotes.

Each committed mutation appends one entry holding a full snapshot of the
entity's mutable fields. Entries are written once with a conditional put
and never updated or deleted. Comparisons are pure functions over two
stored snapshots.

Items are keyed by entity_id (hash) and record_key (range), where
record_key is "<zero-padded version>#<timestamp>". Sorting by record_key
therefore orders entries by version, then by time, which also keeps
several entries of the same version (e.g. draft quote edits) apart.
"""

import datetime as dt
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Key

from quote_engine.models import (
    Actor,
    AuditTrail,
    AuditTrailEntry,
    EntityType,
    ErrorCode,
    FieldChange,
    QuoteEngineError,
    VersionHistoryEntry,
)
from quote_engine.utils.diff import changed_field_names, diff_snapshots
from quote_engine.utils.logging import get_logger

from .dynamodb import from_item, to_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .user_directory import UserDirectory

logger = get_logger(__name__)

INITIAL_VERSION_MARKER = "initial_version"


def _record_key(version: int, timestamp: dt.datetime) -> str:
    return f"{version:010d}#{timestamp.isoformat()}"


class VersionHistoryService:
    """Append-only version history with comparison and audit trails."""

    TABLE = "version-history"
    DEFAULT_LIMIT = 50
    AUDIT_TRAIL_LIMIT = 100
    RECENT_CHANGES = 10

    def __init__(self, db: "DynamoDBService", users: "UserDirectory") -> None:
        """Initialize version history service.

        Args:
            db: DynamoDB service instance
            users: Directory for actor display data
        """
        self.db = db
        self.users = users

    def record_version(
        self,
        entity_id: str,
        entity_type: EntityType,
        version: int,
        snapshot: dict[str, Any],
        actor: Actor,
        reason: str,
    ) -> VersionHistoryEntry:
        """Append a snapshot of an entity after a committed mutation.

        Args:
            entity_id: Package or quote ID
            entity_type: Kind of entity
            version: Entity version after the mutation
            snapshot: JSON-compatible mutable fields of the entity
            actor: User who made the change
            reason: Change description (e.g. "created", "recalculation")

        Returns:
            The stored VersionHistoryEntry

        Raises:
            QuoteEngineError: VERSION_CONFLICT if an identical key already exists
        """
        previous = self._latest_entry(entity_id)
        if previous is None:
            changed_fields = [INITIAL_VERSION_MARKER]
        else:
            changed_fields = changed_field_names(previous.snapshot, snapshot)

        entry = VersionHistoryEntry(
            entity_id=entity_id,
            entity_type=entity_type,
            version=version,
            snapshot=snapshot,
            actor_id=actor.id,
            timestamp=dt.datetime.now(dt.UTC),
            reason=reason,
            changed_fields=changed_fields,
        )

        item = to_item(entry)
        item["record_key"] = _record_key(entry.version, entry.timestamp)
        written = self.db.put_item(
            self.TABLE,
            item,
            condition_expression="attribute_not_exists(record_key)",
        )
        if not written:
            raise QuoteEngineError(
                ErrorCode.VERSION_CONFLICT,
                {"entity_id": entity_id, "version": version},
            )

        logger.info(
            "Recorded %s %s version %d (%s)",
            entity_type.value,
            entity_id,
            version,
            reason,
            extra={"entity_id": entity_id, "version": version},
        )
        return entry

    def get_history(
        self, entity_id: str, limit: int = DEFAULT_LIMIT
    ) -> list[VersionHistoryEntry]:
        """Get history entries for an entity, newest first.

        Args:
            entity_id: Package or quote ID
            limit: Maximum number of entries

        Returns:
            List of VersionHistoryEntry
        """
        items = self.db.query(
            self.TABLE,
            Key("entity_id").eq(entity_id),
            limit=limit,
            scan_index_forward=False,
        )
        return [from_item(VersionHistoryEntry, item) for item in items]

    def get_version(self, entity_id: str, version: int) -> VersionHistoryEntry:
        """Get the latest entry recorded for one version of an entity.

        Raises:
            QuoteEngineError: VERSION_NOT_FOUND
        """
        items = self.db.query(
            self.TABLE,
            Key("entity_id").eq(entity_id)
            & Key("record_key").begins_with(f"{version:010d}#"),
            limit=1,
            scan_index_forward=False,
        )
        if not items:
            raise QuoteEngineError(
                ErrorCode.VERSION_NOT_FOUND,
                {"entity_id": entity_id, "version": version},
            )
        return from_item(VersionHistoryEntry, items[0])

    def compare_versions(
        self, entity_id: str, version1: int, version2: int
    ) -> list[FieldChange]:
        """Field-level changes going from version1 to version2.

        Structured fields are compared by key; long text fields also
        carry line-by-line changes.

        Raises:
            QuoteEngineError: VERSION_NOT_FOUND if either version is missing
        """
        older = self.get_version(entity_id, version1)
        newer = self.get_version(entity_id, version2)
        return diff_snapshots(older.snapshot, newer.snapshot)

    def get_audit_trail(self, entity_id: str) -> AuditTrail:
        """Summarize who changed an entity and when.

        Raises:
            QuoteEngineError: VERSION_NOT_FOUND if the entity has no history
        """
        history = self.get_history(entity_id, self.AUDIT_TRAIL_LIMIT)
        if not history:
            raise QuoteEngineError(ErrorCode.VERSION_NOT_FOUND, {"entity_id": entity_id})

        actors = self.users.get_many({entry.actor_id for entry in history})
        recent = [
            AuditTrailEntry(
                version=entry.version,
                actor=actors[entry.actor_id],
                timestamp=entry.timestamp,
                reason=entry.reason,
                changed_fields=entry.changed_fields,
            )
            for entry in history[: self.RECENT_CHANGES]
        ]

        return AuditTrail(
            entity_id=entity_id,
            entity_type=history[0].entity_type,
            total_versions=len({entry.version for entry in history}),
            first_created=history[-1].timestamp,
            last_modified=history[0].timestamp,
            unique_modifiers=len(actors),
            recent_changes=recent,
        )

    def _latest_entry(self, entity_id: str) -> VersionHistoryEntry | None:
        history = self.get_history(entity_id, limit=1)
        return history[0] if history else None
