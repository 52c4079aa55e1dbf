"""Attribute-level differences between two attribute maps."""

from collections.abc import Iterable, Mapping
from typing import Any

from version_trail.core.models import Change

_ABSENT = object()


def diff(before: Mapping[str, Any], after: Mapping[str, Any]) -> list[Change]:
    """Return the attributes whose values differ, sorted by attribute name.

    A key present on only one side counts as different; the missing side is
    reported as None. No attributes are filtered here; use ``without`` first.

    Args:
        before: Attribute map of the older state.
        after: Attribute map of the newer state.

    Returns:
        One Change per differing attribute, ascending by attribute name.
    """
    changes: list[Change] = []
    for attribute in sorted(before.keys() | after.keys()):
        old = before.get(attribute, _ABSENT)
        new = after.get(attribute, _ABSENT)
        if old is _ABSENT or new is _ABSENT or old != new:
            changes.append(
                Change(
                    attribute=attribute,
                    before=None if old is _ABSENT else old,
                    after=None if new is _ABSENT else new,
                )
            )
    return changes


def without(attributes: Mapping[str, Any], ignored: Iterable[str]) -> dict[str, Any]:
    """Copy of attributes with the ignored keys removed."""
    ignored_set = set(ignored)
    return {key: value for key, value in attributes.items() if key not in ignored_set}
