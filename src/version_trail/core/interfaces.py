"""Abstract interfaces (Protocol classes) for the version history engine.

Defines the contracts between the history engine and its collaborators.
The engine depends on these protocols, never on concrete adapters, so hosts
can plug in their own persistence and entity types.

Protocols defined:
- Trackable      - an entity type that opts into versioning
- VersionStore   - ordered append/read access to an entity's versions
- ActorContext   - who is acting, plus request-scoped metadata
- SnapshotCodec  - attribute map <-> storable payload
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from version_trail.core.models import EntityRef, EntityState, Version


class Trackable(Protocol):
    """Entity contract for versioning.

    ``attributes`` returns the entity's current values, including values
    not yet committed when called from ``before_update``.
    """

    @property
    def item_type(self) -> str:
        """Registered entity type name."""
        ...

    @property
    def item_id(self) -> str | None:
        """Identifier, or None if the entity has none yet."""
        ...

    @property
    def persisted(self) -> bool:
        """True once the entity has been saved by the persistence layer."""
        ...

    @property
    def attributes(self) -> dict[str, Any]:
        """Current attribute map."""
        ...


class VersionStore(Protocol):
    """Persistence contract for Version records.

    Implementations own sequence_index and id assignment and must return
    versions ordered by (created_at, sequence_index) ascending.
    """

    def append(self, ref: EntityRef, version: Version) -> Version:
        """Persist a version and return the stored copy.

        Args:
            ref: The entity the version belongs to.
            version: The unsaved version (id and sequence_index unset).

        Returns:
            The stored Version with id and sequence_index assigned.
        """
        ...

    def list(self, ref: EntityRef) -> list[Version]:
        """Return all versions of an entity, oldest first."""
        ...

    def first_after(self, ref: EntityRef, timestamp: datetime) -> Version | None:
        """Return the oldest version with created_at strictly after timestamp."""
        ...

    def last(self, ref: EntityRef) -> Version | None:
        """Return the newest version of an entity, or None."""
        ...

    def count(self, ref: EntityRef) -> int:
        """Return the number of versions stored for an entity."""
        ...


class ActorContext(Protocol):
    """Source of the acting identity, request-scoped metadata and the global switch."""

    @property
    def enabled(self) -> bool:
        """Global recording switch."""
        ...

    def current_whodunnit(self) -> str | None:
        """Identifier of the actor performing the current mutation."""
        ...

    def ambient_metadata(self) -> dict[str, Any] | None:
        """Extra values to store on every version recorded in this context."""
        ...


class SnapshotCodec(Protocol):
    """Serializer for attribute maps."""

    def encode(self, attributes: dict[str, Any]) -> bytes:
        """Serialize an attribute map to a storable payload."""
        ...

    def decode(self, payload: bytes | None) -> dict[str, Any]:
        """Deserialize a payload. Absent, empty or malformed payloads yield {}."""
        ...


def entity_ref(subject: Trackable | EntityState) -> EntityRef:
    """Return the EntityRef of a live entity or a reconstructed state.

    Raises:
        ValueError: If the entity has no identifier yet.
    """
    if subject.item_id is None:
        raise ValueError(f"{subject.item_type} entity has no identity yet")
    return EntityRef(item_type=subject.item_type, item_id=str(subject.item_id))
