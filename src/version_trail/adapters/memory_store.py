"""Append-only in-memory version store.

Keeps each entity's versions sorted by (created_at, sequence_index). Writes
are append-only; there are no update or delete operations.

Suitable for tests and single-process hosts. Hosts that need durability and
transactional coupling with their own writes use SqlVersionStore.
"""

from __future__ import annotations

import bisect
from datetime import datetime

from version_trail.core.models import EntityRef, Version, ensure_utc
from version_trail.observability import get_logger

logger = get_logger(__name__)


class InMemoryVersionStore:
    """In-memory VersionStore.

    Assigns a store-wide increasing id and a per-entity 0-based
    sequence_index on append.
    """

    def __init__(self) -> None:
        # { EntityRef: list[Version] } sorted by (created_at, sequence_index)
        self._versions: dict[EntityRef, list[Version]] = {}
        self._next_id = 1

    def append(self, ref: EntityRef, version: Version) -> Version:
        """Store a version and return it with id and sequence_index assigned.

        Args:
            ref: The owning entity.
            version: The unsaved version.

        Returns:
            The stored Version.
        """
        versions = self._versions.setdefault(ref, [])
        stored = version.model_copy(
            update={
                "id": self._next_id,
                "item_type": ref.item_type,
                "item_id": ref.item_id,
                "sequence_index": len(versions),
            }
        )
        self._next_id += 1

        bisect.insort_right(versions, stored, key=Version.sort_key)

        logger.debug(
            "Version appended",
            item_type=ref.item_type,
            item_id=ref.item_id,
            version_id=stored.id,
            sequence_index=stored.sequence_index,
        )
        return stored

    def list(self, ref: EntityRef) -> list[Version]:
        return list(self._versions.get(ref, []))

    def first_after(self, ref: EntityRef, timestamp: datetime) -> Version | None:
        """Return the oldest version created strictly after timestamp."""
        versions = self._versions.get(ref, [])
        index = bisect.bisect_right(versions, ensure_utc(timestamp), key=lambda v: v.created_at)
        return versions[index] if index < len(versions) else None

    def last(self, ref: EntityRef) -> Version | None:
        versions = self._versions.get(ref)
        return versions[-1] if versions else None

    def count(self, ref: EntityRef) -> int:
        return len(self._versions.get(ref, []))
