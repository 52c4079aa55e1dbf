"""Caller-facing facade over the history engine.

VersionTrail wires one registry, store and codec into a LifecycleController,
a Navigator and a TrailBuilder, and exposes the operations hosts use:

- lifecycle: after_create, before_update, after_destroy
- switches: enable(item_type), disable(item_type)
- reading: versions, is_live, originator, audit_trail, state_at,
  previous_version, next_version, reify
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from version_trail.core.interfaces import ActorContext, SnapshotCodec, Trackable, VersionStore, entity_ref
from version_trail.core.models import AuditTrailEntry, EntityState, Version, utc_now
from version_trail.core.registry import TrackingConfig, TrackingRegistry
from version_trail.history.codec import JsonSnapshotCodec, codec_from_settings
from version_trail.history.lifecycle import ChangeSet, LifecycleController
from version_trail.history.navigator import Navigator
from version_trail.history.navigator import is_live as _is_live
from version_trail.history.trail_builder import TrailBuilder
from version_trail.settings import Settings


class VersionTrail:
    """Version history for registered entity types.

    Args:
        store: Persistence for versions.
        registry: Per-type configuration. A new empty registry if omitted.
        codec: Snapshot codec. zlib-compressed JSON if omitted.
        clock: Source of timestamps for new versions.
        trail_builder: Optional TrailBuilder subclass instance overriding
            ``transform_whodunnit``.
        audit_trail_ignored_attributes: Default attributes removed before
            diffing audit trail entries.
    """

    def __init__(
        self,
        store: VersionStore,
        registry: TrackingRegistry | None = None,
        codec: SnapshotCodec | None = None,
        clock: Callable[[], datetime] = utc_now,
        trail_builder: TrailBuilder | None = None,
        audit_trail_ignored_attributes: Iterable[str] = ("updated_at",),
    ) -> None:
        self.store = store
        self.registry = registry if registry is not None else TrackingRegistry()
        self.codec = codec if codec is not None else JsonSnapshotCodec()
        self._lifecycle = LifecycleController(self.registry, store, self.codec, clock=clock)
        self._navigator = Navigator(store, self.codec)
        self._trail_builder = trail_builder or TrailBuilder(store, self.codec, clock=clock)
        self._ignored_default = frozenset(audit_trail_ignored_attributes)

    @classmethod
    def from_settings(
        cls,
        store: VersionStore,
        settings: Settings,
        registry: TrackingRegistry | None = None,
    ) -> VersionTrail:
        """Build a VersionTrail whose codec and trail defaults follow settings."""
        return cls(
            store,
            registry=registry,
            codec=codec_from_settings(settings),
            audit_trail_ignored_attributes=settings.audit_trail_ignored_attributes,
        )

    # ------------------------------------------------------------------
    # Registration and switches
    # ------------------------------------------------------------------

    def register(
        self,
        item_type: str,
        *,
        ignore: Iterable[str] = (),
        meta: dict[str, Any] | None = None,
        whodunnit_resolver: Callable[[str | None], Any] | None = None,
    ) -> TrackingConfig:
        return self.registry.register(
            item_type, ignore=ignore, meta=meta, whodunnit_resolver=whodunnit_resolver
        )

    def enable(self, item_type: str) -> TrackingConfig:
        return self.registry.enable(item_type)

    def disable(self, item_type: str) -> TrackingConfig:
        return self.registry.disable(item_type)

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    def after_create(self, entity: Trackable, context: ActorContext) -> Version | None:
        return self._lifecycle.after_create(entity, context)

    def before_update(
        self, entity: Trackable, changes: ChangeSet, context: ActorContext
    ) -> Version | None:
        return self._lifecycle.before_update(entity, changes, context)

    def after_destroy(self, entity: Trackable, context: ActorContext) -> Version | None:
        return self._lifecycle.after_destroy(entity, context)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def versions(self, entity: Trackable | EntityState) -> list[Version]:
        """All versions of the entity, oldest first."""
        return self.store.list(entity_ref(entity))

    def is_live(self, entity: Trackable | EntityState) -> bool:
        return _is_live(entity)

    def originator(self, entity: Trackable | EntityState) -> str | None:
        """Whodunnit of the entity's most recent version."""
        last = self.store.last(entity_ref(entity))
        return last.whodunnit if last is not None else None

    def audit_trail(
        self,
        entity: Trackable,
        ignored_attributes: Iterable[str] | None = None,
    ) -> list[AuditTrailEntry]:
        """Attribute-level change history, newest first.

        Args:
            entity: The live entity.
            ignored_attributes: Attributes left out of every diff. Defaults to
                the configured list ({"updated_at"}).
        """
        config = self.registry.config_for(entity.item_type)
        ignored = self._ignored_default if ignored_attributes is None else ignored_attributes
        return self._trail_builder.audit_trail(entity, config=config, ignored_attributes=ignored)

    def state_at(self, entity: Trackable, timestamp: datetime) -> EntityState:
        return self._navigator.state_at(entity, timestamp)

    def previous_version(self, subject: Trackable | EntityState) -> EntityState | None:
        return self._navigator.previous(subject)

    def next_version(self, subject: Trackable | EntityState) -> EntityState | None:
        return self._navigator.next(subject)

    def reify(self, version: Version) -> EntityState:
        return self._navigator.reify(version)
