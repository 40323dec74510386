"""Lookup of actor display data for audit trails."""

from typing import TYPE_CHECKING

from quote_engine.models import ActorSummary

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

UNKNOWN_USER_NAME = "Unknown user"


class UserDirectory:
    """Reads user names and emails from the users table."""

    TABLE = "users"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize user directory.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def get_display(self, user_id: str) -> ActorSummary:
        """Get display data for a user, falling back to a placeholder.

        Args:
            user_id: User ID recorded on a history entry

        Returns:
            ActorSummary with name and email
        """
        item = self.db.get_item(self.TABLE, {"user_id": user_id})
        if not item:
            return ActorSummary(id=user_id, name=UNKNOWN_USER_NAME)
        return ActorSummary(
            id=user_id,
            name=str(item.get("name") or UNKNOWN_USER_NAME),
            email=str(item["email"]) if item.get("email") else None,
        )

    def get_many(self, user_ids: set[str]) -> dict[str, ActorSummary]:
        """Display data for several users, keyed by user ID."""
        return {user_id: self.get_display(user_id) for user_id in sorted(user_ids)}
