"""Field-level and line-level diffs between two stored snapshots.

Both functions are pure: they only read their arguments.
"""

from typing import Any, Iterable

from quote_engine.models.enums import ChangeType
from quote_engine.models.history import FieldChange, LineChange

# Free-text fields compared line by line
LONG_TEXT_FIELDS: frozenset[str] = frozenset(
    {"sales_notes", "whats_included", "internal_notes", "activities_included"}
)


def diff_lines(old_text: str, new_text: str) -> list[LineChange]:
    """Compare two texts line by line at the same positions.

    The shorter side is padded with empty lines; this is a positional
    zip, not a minimal edit script.

    Args:
        old_text: Text of the older version
        new_text: Text of the newer version

    Returns:
        One LineChange per differing line, in line order
    """
    old_lines = old_text.split("\n") if old_text else []
    new_lines = new_text.split("\n") if new_text else []
    changes: list[LineChange] = []

    for index in range(max(len(old_lines), len(new_lines))):
        old_line = old_lines[index] if index < len(old_lines) else ""
        new_line = new_lines[index] if index < len(new_lines) else ""
        if old_line == new_line:
            continue

        if not old_line:
            change_type = ChangeType.ADDED
        elif not new_line:
            change_type = ChangeType.REMOVED
        else:
            change_type = ChangeType.MODIFIED

        changes.append(
            LineChange(
                line_number=index + 1,
                old_line=old_line,
                new_line=new_line,
                change_type=change_type,
            )
        )

    return changes


def _ordered_keys(old: dict[str, Any], new: dict[str, Any]) -> Iterable[str]:
    # Old keys first in their order, then keys only present in new
    yield from old
    yield from (key for key in new if key not in old)


def diff_snapshots(
    old: dict[str, Any],
    new: dict[str, Any],
    prefix: str = "",
) -> list[FieldChange]:
    """Diff two snapshots key by key.

    Nested mappings are compared recursively and reported with dotted
    paths (e.g. "linked_package.calculated_price"). Lists and scalars are
    compared as whole values. Long text fields also carry line changes.

    Args:
        old: Snapshot of the older version
        new: Snapshot of the newer version
        prefix: Dotted path of the enclosing field (used in recursion)

    Returns:
        List of FieldChange for every differing field
    """
    changes: list[FieldChange] = []

    for key in _ordered_keys(old, new):
        path = f"{prefix}{key}"
        old_value, new_value = old.get(key), new.get(key)

        # A missing key and an explicit None are the same state
        if old_value == new_value:
            continue

        if isinstance(old_value, dict) and isinstance(new_value, dict):
            changes.extend(diff_snapshots(old_value, new_value, prefix=f"{path}."))
            continue

        if old_value is None:
            change_type = ChangeType.ADDED
        elif new_value is None:
            change_type = ChangeType.REMOVED
        else:
            change_type = ChangeType.MODIFIED

        line_changes = None
        if key in LONG_TEXT_FIELDS and not prefix:
            line_changes = diff_lines(
                old_value if isinstance(old_value, str) else "",
                new_value if isinstance(new_value, str) else "",
            )

        changes.append(
            FieldChange(
                field=path,
                old_value=old_value,
                new_value=new_value,
                change_type=change_type,
                line_changes=line_changes,
            )
        )

    return changes


def changed_field_names(old: dict[str, Any], new: dict[str, Any]) -> list[str]:
    """Top-level field names whose values differ between two snapshots."""
    return [key for key in _ordered_keys(old, new) if old.get(key) != new.get(key)]
