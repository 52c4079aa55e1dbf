"""Point-in-time reconstruction and one-step history navigation.

Because a version stores how its entity looked *before* the change, the
state of an entity at time T is the snapshot of the first version created
after T. When no such version exists the live state is the answer.

Every call re-reads the ordered version list from the store; nothing is
cached between calls.
"""

from __future__ import annotations

from datetime import datetime

from version_trail.core.interfaces import SnapshotCodec, Trackable, VersionStore, entity_ref
from version_trail.core.models import EntityState, Version


def live_state(entity: Trackable) -> EntityState:
    """Wrap a live entity's current attributes in an EntityState."""
    ref = entity_ref(entity)
    return EntityState(item_type=ref.item_type, item_id=ref.item_id, attributes=dict(entity.attributes))


def is_live(subject: Trackable | EntityState) -> bool:
    """True for a live entity, False for a state reified from a version."""
    if isinstance(subject, EntityState):
        return subject.is_live
    return True


class Navigator:
    """Reconstructs entity states from a VersionStore.

    Args:
        store: Source of ordered versions.
        codec: Decoder for version snapshots.
    """

    def __init__(self, store: VersionStore, codec: SnapshotCodec) -> None:
        self._store = store
        self._codec = codec

    def reify(self, version: Version) -> EntityState:
        """Reconstruct the state a version captured.

        CREATE versions carry no snapshot and reify to an empty attribute map.
        """
        return EntityState(
            item_type=version.item_type,
            item_id=version.item_id,
            attributes=self._codec.decode(version.snapshot),
            origin=version,
        )

    def state_at(self, entity: Trackable, timestamp: datetime) -> EntityState:
        """Return the entity as it was at timestamp.

        Args:
            entity: The live entity.
            timestamp: Point in time. Naive datetimes are treated as UTC.

        Returns:
            A reified EntityState, or the live state when no version was
            created after timestamp.
        """
        version = self._store.first_after(entity_ref(entity), timestamp)
        if version is None:
            return live_state(entity)
        return self.reify(version)

    def previous(self, subject: Trackable | EntityState) -> EntityState | None:
        """Step one version back.

        For a live entity this is the state captured by its newest version.
        For a reified state it is the state captured by the version
        immediately preceding its origin. None at the start of history.
        """
        versions = self._store.list(entity_ref(subject))
        if not isinstance(subject, EntityState) or subject.origin is None:
            return self.reify(versions[-1]) if versions else None

        position = _position_of(versions, subject.origin)
        if position is None or position == 0:
            return None
        return self.reify(versions[position - 1])

    def next(self, subject: Trackable | EntityState) -> EntityState | None:
        """Step one version forward.

        None for a live entity (there is nothing after the present) and for a
        state reified from the newest version.
        """
        if not isinstance(subject, EntityState) or subject.origin is None:
            return None

        versions = self._store.list(entity_ref(subject))
        position = _position_of(versions, subject.origin)
        if position is None or position + 1 >= len(versions):
            return None
        return self.reify(versions[position + 1])


def _position_of(versions: list[Version], origin: Version) -> int | None:
    for position, version in enumerate(versions):
        if version.sequence_index == origin.sequence_index:
            return position
    return None
