"""Unit tests for snapshot and line diffs."""

from quote_engine.models import ChangeType
from quote_engine.utils.diff import changed_field_names, diff_lines, diff_snapshots


class TestDiffLines:
    """Tests for the positional line diff."""

    def test_identical_texts(self) -> None:
        assert diff_lines("a\nb", "a\nb") == []

    def test_modified_line(self) -> None:
        changes = diff_lines("Breakfast\nLift passes", "Breakfast\nSki hire")

        assert len(changes) == 1
        assert changes[0].line_number == 2
        assert changes[0].old_line == "Lift passes"
        assert changes[0].new_line == "Ski hire"
        assert changes[0].change_type is ChangeType.MODIFIED

    def test_added_lines_are_padded(self) -> None:
        changes = diff_lines("one", "one\ntwo\nthree")

        assert [(c.line_number, c.change_type) for c in changes] == [
            (2, ChangeType.ADDED),
            (3, ChangeType.ADDED),
        ]
        assert changes[0].old_line == ""

    def test_removed_lines(self) -> None:
        changes = diff_lines("one\ntwo", "one")

        assert len(changes) == 1
        assert changes[0].change_type is ChangeType.REMOVED
        assert changes[0].new_line == ""

    def test_insertion_shifts_positions(self) -> None:
        """A zip diff reports every shifted line, not a minimal edit."""
        changes = diff_lines("a\nb", "x\na\nb")

        assert [c.change_type for c in changes] == [
            ChangeType.MODIFIED,
            ChangeType.MODIFIED,
            ChangeType.ADDED,
        ]

    def test_empty_old_text(self) -> None:
        changes = diff_lines("", "new line")

        assert len(changes) == 1
        assert changes[0].change_type is ChangeType.ADDED


class TestDiffSnapshots:
    """Tests for field-level snapshot diffs."""

    def test_scalar_change(self) -> None:
        changes = diff_snapshots({"total_price": 500}, {"total_price": 650})

        assert len(changes) == 1
        assert changes[0].field == "total_price"
        assert changes[0].old_value == 500
        assert changes[0].new_value == 650
        assert changes[0].change_type is ChangeType.MODIFIED
        assert changes[0].line_changes is None

    def test_added_and_removed_fields(self) -> None:
        changes = diff_snapshots({"a": 1, "b": None}, {"b": 2, "c": None})

        by_field = {c.field: c for c in changes}
        assert by_field["a"].change_type is ChangeType.REMOVED
        assert by_field["b"].change_type is ChangeType.ADDED
        assert "c" not in by_field

    def test_nested_fields_use_dotted_paths(self) -> None:
        old = {"linked_package": {"calculated_price": 800, "package_version": 1}}
        new = {"linked_package": {"calculated_price": 900, "package_version": 1}}

        changes = diff_snapshots(old, new)

        assert [c.field for c in changes] == ["linked_package.calculated_price"]

    def test_long_text_field_has_line_changes(self) -> None:
        changes = diff_snapshots(
            {"sales_notes": "Great for groups\nLift passes extra"},
            {"sales_notes": "Great for groups\nLift passes included"},
        )

        assert len(changes) == 1
        assert changes[0].line_changes is not None
        assert len(changes[0].line_changes) == 1
        assert changes[0].line_changes[0].line_number == 2

    def test_lists_compare_as_whole_values(self) -> None:
        changes = diff_snapshots({"duration_options": [2, 3]}, {"duration_options": [2, 3, 4]})

        assert len(changes) == 1
        assert changes[0].field == "duration_options"
        assert changes[0].change_type is ChangeType.MODIFIED

    def test_inputs_not_mutated(self) -> None:
        old = {"name": "A", "nested": {"x": 1}}
        new = {"name": "B", "nested": {"x": 2}}

        diff_snapshots(old, new)

        assert old == {"name": "A", "nested": {"x": 1}}
        assert new == {"name": "B", "nested": {"x": 2}}


class TestChangedFieldNames:
    def test_top_level_names_only(self) -> None:
        old = {"name": "A", "linked_package": {"x": 1}, "status": "draft"}
        new = {"name": "A", "linked_package": {"x": 2}, "status": "sent"}

        assert changed_field_names(old, new) == ["linked_package", "status"]
