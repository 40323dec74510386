"""Unit tests for VersionHistoryService over mocked DynamoDB."""

from typing import Any

import pytest

from quote_engine.models import (
    Actor,
    ChangeType,
    EntityType,
    ErrorCode,
    QuoteEngineError,
)
from quote_engine.services.user_directory import UNKNOWN_USER_NAME
from quote_engine.services.version_history import INITIAL_VERSION_MARKER

ENTITY_ID = "PKG-HISTORY00001"


def _snapshot(**overrides: Any) -> dict[str, Any]:
    snapshot: dict[str, Any] = {
        "name": "Ski Weekend Andorra",
        "status": "draft",
        "sales_notes": "Great for stag groups\nLift passes extra",
        "duration_options": [2, 3, 4],
    }
    snapshot.update(overrides)
    return snapshot


@pytest.fixture
def recorded(history: Any, admin_actor: Actor, other_admin: Actor) -> Any:
    """Three versions by two admins."""
    history.record_version(
        ENTITY_ID, EntityType.PACKAGE, 1, _snapshot(), admin_actor, reason="created"
    )
    history.record_version(
        ENTITY_ID,
        EntityType.PACKAGE,
        2,
        _snapshot(status="active"),
        admin_actor,
        reason="activated",
    )
    history.record_version(
        ENTITY_ID,
        EntityType.PACKAGE,
        3,
        _snapshot(status="active", sales_notes="Great for stag groups\nLift passes included"),
        other_admin,
        reason="notes updated",
    )
    return history


class TestRecordVersion:
    """Tests for record_version()."""

    def test_first_entry_is_initial_version(self, history: Any, admin_actor: Actor) -> None:
        entry = history.record_version(
            ENTITY_ID, EntityType.PACKAGE, 1, _snapshot(), admin_actor, reason="created"
        )

        assert entry.changed_fields == [INITIAL_VERSION_MARKER]
        assert entry.actor_id == admin_actor.id

    def test_changed_fields_against_previous(self, recorded: Any) -> None:
        entries = recorded.get_history(ENTITY_ID)

        assert [entry.changed_fields for entry in entries] == [
            ["sales_notes"],
            ["status"],
            [INITIAL_VERSION_MARKER],
        ]


class TestGetHistory:
    def test_newest_first(self, recorded: Any) -> None:
        entries = recorded.get_history(ENTITY_ID)

        assert [entry.version for entry in entries] == [3, 2, 1]

    def test_limit(self, recorded: Any) -> None:
        assert [entry.version for entry in recorded.get_history(ENTITY_ID, limit=2)] == [3, 2]

    def test_unknown_entity_has_no_history(self, history: Any) -> None:
        assert history.get_history("PKG-NOTHING") == []

    def test_same_version_entries_kept_apart(self, history: Any, admin_actor: Actor) -> None:
        history.record_version(
            "QTE-DRAFT", EntityType.QUOTE, 1, {"hotel_name": "A"}, admin_actor, reason="created"
        )
        history.record_version(
            "QTE-DRAFT", EntityType.QUOTE, 1, {"hotel_name": "B"}, admin_actor, reason="updated"
        )

        entries = history.get_history("QTE-DRAFT")

        assert [entry.reason for entry in entries] == ["updated", "created"]
        assert history.get_version("QTE-DRAFT", 1).snapshot == {"hotel_name": "B"}


class TestGetVersion:
    def test_returns_snapshot(self, recorded: Any) -> None:
        entry = recorded.get_version(ENTITY_ID, 2)

        assert entry.version == 2
        assert entry.snapshot["status"] == "active"

    def test_missing_version(self, recorded: Any) -> None:
        with pytest.raises(QuoteEngineError) as exc_info:
            recorded.get_version(ENTITY_ID, 9)

        assert exc_info.value.code is ErrorCode.VERSION_NOT_FOUND


class TestCompareVersions:
    """Tests for compare_versions()."""

    def test_field_and_line_changes(self, recorded: Any) -> None:
        changes = recorded.compare_versions(ENTITY_ID, 1, 3)

        by_field = {change.field: change for change in changes}
        assert set(by_field) == {"status", "sales_notes"}
        assert by_field["status"].old_value == "draft"
        assert by_field["status"].new_value == "active"
        notes = by_field["sales_notes"]
        assert notes.line_changes is not None
        assert len(notes.line_changes) == 1
        assert notes.line_changes[0].line_number == 2
        assert notes.line_changes[0].change_type is ChangeType.MODIFIED

    def test_same_version_has_no_changes(self, recorded: Any) -> None:
        assert recorded.compare_versions(ENTITY_ID, 2, 2) == []

    def test_missing_version(self, recorded: Any) -> None:
        with pytest.raises(QuoteEngineError) as exc_info:
            recorded.compare_versions(ENTITY_ID, 1, 7)

        assert exc_info.value.code is ErrorCode.VERSION_NOT_FOUND


class TestAuditTrail:
    """Tests for get_audit_trail()."""

    def test_summary(self, recorded: Any, db: Any) -> None:
        db.put_item(
            "users",
            {"user_id": "user-admin-1", "name": "Ana Admin", "email": "ana@example.com"},
        )

        trail = recorded.get_audit_trail(ENTITY_ID)

        assert trail.entity_type is EntityType.PACKAGE
        assert trail.total_versions == 3
        assert trail.unique_modifiers == 2
        assert trail.first_created <= trail.last_modified
        assert [change.version for change in trail.recent_changes] == [3, 2, 1]

        actors = {change.actor.id: change.actor for change in trail.recent_changes}
        assert actors["user-admin-1"].name == "Ana Admin"
        assert actors["user-admin-1"].email == "ana@example.com"
        # Not in the users table
        assert actors["user-admin-2"].name == UNKNOWN_USER_NAME

    def test_no_history(self, history: Any) -> None:
        with pytest.raises(QuoteEngineError) as exc_info:
            history.get_audit_trail("PKG-NOTHING")

        assert exc_info.value.code is ErrorCode.VERSION_NOT_FOUND
