"""Audit trail construction.

Walks an entity's versions newest first, preceded by a synthetic "current"
version holding the live attributes, and emits one entry per adjacent pair.
An entity with N versions yields exactly N entries.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from version_trail.core.interfaces import SnapshotCodec, Trackable, VersionStore, entity_ref
from version_trail.core.models import AuditTrailEntry, Version, VersionEvent, utc_now
from version_trail.core.registry import TrackingConfig
from version_trail.history.diff import diff, without

DEFAULT_IGNORED_ATTRIBUTES: frozenset[str] = frozenset({"updated_at"})


class TrailBuilder:
    """Builds attribute-level audit trails.

    Subclasses may override ``transform_whodunnit`` to turn stored actor
    identifiers into domain objects. A per-type ``whodunnit_resolver`` on
    the TrackingConfig takes effect through the default implementation.

    Args:
        store: Source of ordered versions.
        codec: Snapshot codec, also used to encode the live attributes.
        clock: Fallback timestamp for the synthetic current version.
    """

    def __init__(
        self,
        store: VersionStore,
        codec: SnapshotCodec,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._codec = codec
        self._clock = clock

    def audit_trail(
        self,
        entity: Trackable,
        config: TrackingConfig | None = None,
        ignored_attributes: Iterable[str] | None = None,
    ) -> list[AuditTrailEntry]:
        """Return the entity's change history, newest change first.

        Args:
            entity: The live entity.
            config: The entity type's config, consulted for the whodunnit
                resolver.
            ignored_attributes: Attributes removed from both sides before
                diffing. Defaults to {"updated_at"}.

        Returns:
            One AuditTrailEntry per persisted version.
        """
        ignored = (
            DEFAULT_IGNORED_ATTRIBUTES if ignored_attributes is None else frozenset(ignored_attributes)
        )
        versions_desc = self._versions_including_current_desc(entity)

        trail: list[AuditTrailEntry] = []
        for newer, older in zip(versions_desc, versions_desc[1:]):
            attributes_after = without(self._codec.decode(newer.snapshot), ignored)
            attributes_before = without(self._codec.decode(older.snapshot), ignored)
            trail.append(
                AuditTrailEntry(
                    event=older.event,
                    changed_by=self.transform_whodunnit(older.whodunnit, config),
                    changed_at=older.created_at,
                    changes=diff(attributes_before, attributes_after),
                    index=older.sequence_index if older.sequence_index is not None else 0,
                )
            )
        return trail

    def transform_whodunnit(self, whodunnit: str | None, config: TrackingConfig | None = None) -> Any:
        """Resolve a stored whodunnit. Identity unless a resolver is configured."""
        if config is not None and config.whodunnit_resolver is not None:
            return config.whodunnit_resolver(whodunnit)
        return whodunnit

    def _versions_including_current_desc(self, entity: Trackable) -> list[Version]:
        ref = entity_ref(entity)
        attributes = dict(entity.attributes)
        updated_at = attributes.get("updated_at")
        current = Version(
            item_type=ref.item_type,
            item_id=ref.item_id,
            event=VersionEvent.UPDATE,
            snapshot=self._codec.encode(attributes),
            created_at=updated_at if isinstance(updated_at, datetime) else self._clock(),
        )
        versions = self._store.list(ref)
        versions.append(current)
        versions.reverse()
        return versions
