"""Audit log sink for linking, recalculation and status-change events.

Events are always written to the application log. They are also stored
in the audit-logs table unless AUDIT_LOG_ENABLED is "false". A failed
table write is logged and does not fail the business operation.
"""

import datetime as dt
import os
import uuid
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from quote_engine.models import Actor, AuditEvent, EntityType
from quote_engine.utils.logging import get_logger

from .dynamodb import from_item, to_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


class AuditLogger:
    """Emits structured audit events."""

    TABLE = "audit-logs"
    RESOURCE_INDEX = "resource_id-index"

    def __init__(self, db: "DynamoDBService", enabled: bool | None = None) -> None:
        """Initialize audit logger.

        Args:
            db: DynamoDB service instance
            enabled: Store events in the table. Defaults to AUDIT_LOG_ENABLED env var.
        """
        self.db = db
        if enabled is None:
            enabled = os.getenv("AUDIT_LOG_ENABLED", "true").lower() == "true"
        self.enabled = enabled

    def log_action(
        self,
        actor: Actor,
        action: str,
        resource: EntityType,
        resource_id: str,
        details: dict[str, Any] | None = None,
        success: bool = True,
        error_message: str | None = None,
    ) -> AuditEvent:
        """Record an audit event.

        Args:
            actor: User who performed the action
            action: Action name (e.g. "LINK_PACKAGE")
            resource: Kind of entity acted on
            resource_id: ID of the entity
            details: JSON-compatible context
            success: Whether the action succeeded
            error_message: Error description for failed actions

        Returns:
            The recorded AuditEvent
        """
        event = AuditEvent(
            event_id=str(uuid.uuid4()),
            action=action,
            resource=resource,
            resource_id=resource_id,
            actor_id=actor.id,
            actor_role=actor.role,
            details=details or {},
            success=success,
            error_message=error_message,
            timestamp=dt.datetime.now(dt.UTC),
        )

        message = f"Audit: {action} {resource.value}={resource_id} success={success}"
        context = {
            "audit_action": action,
            "resource_id": resource_id,
            "actor_id": actor.id,
            "success": success,
        }
        if success:
            logger.info(message, extra=context)
        else:
            logger.warning(f"{message} error={error_message}", extra=context)

        if self.enabled:
            try:
                self.db.put_item(self.TABLE, to_item(event))
            except ClientError:
                logger.exception(
                    "Failed to store audit event",
                    extra={"audit_action": action, "resource_id": resource_id},
                )

        return event

    def get_events(self, resource_id: str, limit: int = 50) -> list[AuditEvent]:
        """Get audit events for an entity, newest first.

        Args:
            resource_id: Entity ID
            limit: Maximum number of events

        Returns:
            List of AuditEvent
        """
        items = self.db.query(
            self.TABLE,
            Key("resource_id").eq(resource_id),
            index_name=self.RESOURCE_INDEX,
            limit=limit,
            scan_index_forward=False,
        )
        return [from_item(AuditEvent, item) for item in items]
