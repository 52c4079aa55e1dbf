"""Lifecycle hooks that record versions.

The host mutation pipeline calls these hooks explicitly and synchronously:

- ``after_create``  once the entity has been inserted
- ``before_update`` before the update is committed, with the changed attributes
- ``after_destroy`` once the entity has been deleted

Recording happens only when the context's global switch and the entity
type's switch are both on. ``before_update`` appends through the store
inside the caller's unit of work, so with SqlVersionStore the UPDATE version
commits or rolls back together with the mutation.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from version_trail.core.interfaces import ActorContext, SnapshotCodec, Trackable, VersionStore, entity_ref
from version_trail.core.models import EntityState, Version, VersionEvent, utc_now
from version_trail.core.registry import TrackingConfig, TrackingRegistry
from version_trail.observability import get_logger

logger = get_logger(__name__)

# attribute -> (old value, new value)
ChangeSet = Mapping[str, tuple[Any, Any]]


class LifecycleController:
    """Decides whether and what to record on each entity mutation.

    Args:
        registry: Per-type configuration lookup.
        store: Destination of recorded versions.
        codec: Encoder for pre-change snapshots.
        clock: Source of created_at timestamps.
    """

    def __init__(
        self,
        registry: TrackingRegistry,
        store: VersionStore,
        codec: SnapshotCodec,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._registry = registry
        self._store = store
        self._codec = codec
        self._clock = clock

    def after_create(self, entity: Trackable, context: ActorContext) -> Version | None:
        """Record a CREATE version. Returns the stored version, or None if skipped."""
        config = self._registry.config_for(entity.item_type)
        if not self._switched_on(entity, config, context):
            return None

        return self._record(entity, config, context, VersionEvent.CREATE, snapshot=None)

    def before_update(
        self,
        entity: Trackable,
        changes: ChangeSet,
        context: ActorContext,
    ) -> Version | None:
        """Record an UPDATE version holding the pre-change attributes.

        Args:
            entity: The entity being updated; its attributes already hold the
                new, uncommitted values.
            changes: attribute -> (old, new) for every changed attribute.
            context: Actor identity, ambient metadata and the global switch.

        Returns:
            The stored version, or None when recording is switched off or only
            ignored attributes changed.
        """
        config = self._registry.config_for(entity.item_type)
        if not self._switched_on(entity, config, context):
            return None
        if not self._changed_and_we_care(changes, config):
            logger.debug(
                "Update touched only ignored attributes, no version recorded",
                item_type=entity.item_type,
                item_id=entity.item_id,
                changed=sorted(changes),
            )
            return None

        snapshot = self._codec.encode(self._item_before_change(entity, changes))
        return self._record(entity, config, context, VersionEvent.UPDATE, snapshot=snapshot)

    def after_destroy(self, entity: Trackable, context: ActorContext) -> Version | None:
        """Record a DESTROY version holding the full pre-destroy attributes.

        Destroying an entity that was never persisted records nothing.
        """
        config = self._registry.config_for(entity.item_type)
        if not self._switched_on(entity, config, context):
            return None
        if not entity.persisted:
            logger.debug(
                "Destroy of never-persisted entity, no version recorded",
                item_type=entity.item_type,
            )
            return None

        snapshot = self._codec.encode(self._item_before_change(entity, {}))
        return self._record(entity, config, context, VersionEvent.DESTROY, snapshot=snapshot)

    def merge_metadata(
        self,
        entity: Trackable,
        config: TrackingConfig,
        context: ActorContext,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """Overlay per-type metadata, then ambient context metadata, onto data.

        Callable providers are invoked with the entity. Ambient values win
        over provider values, which win over the base fields.
        """
        merged = dict(data)
        for key, provider in config.metadata_providers.items():
            merged[key] = provider(entity) if callable(provider) else provider
        merged.update(context.ambient_metadata() or {})
        return merged

    def _record(
        self,
        entity: Trackable,
        config: TrackingConfig,
        context: ActorContext,
        event: VersionEvent,
        snapshot: bytes | None,
    ) -> Version:
        ref = entity_ref(entity)
        merged = self.merge_metadata(
            entity, config, context, {"whodunnit": context.current_whodunnit()}
        )
        whodunnit = merged.pop("whodunnit")

        version = Version(
            item_type=ref.item_type,
            item_id=ref.item_id,
            event=event,
            snapshot=snapshot,
            whodunnit=None if whodunnit is None else str(whodunnit),
            metadata=merged,
            created_at=self._clock(),
        )
        stored = self._store.append(ref, version)

        logger.info(
            "Version recorded",
            item_type=ref.item_type,
            item_id=ref.item_id,
            version_event=event.value,
            sequence_index=stored.sequence_index,
            version_count=self._store.count(ref),
            whodunnit=stored.whodunnit,
        )
        return stored

    def _switched_on(self, entity: Trackable, config: TrackingConfig, context: ActorContext) -> bool:
        if isinstance(entity, EntityState) and not entity.is_live:
            # reified states are read-only with respect to versioning
            return False
        enabled = context.enabled
        if not (enabled and config.enabled):
            logger.debug(
                "Versioning switched off, no version recorded",
                item_type=config.item_type,
                global_enabled=enabled,
                type_enabled=config.enabled,
            )
            return False
        return True

    @staticmethod
    def _changed_and_we_care(changes: ChangeSet, config: TrackingConfig) -> bool:
        return bool(set(changes) - config.ignored_attributes)

    @staticmethod
    def _item_before_change(entity: Trackable, changes: ChangeSet) -> dict[str, Any]:
        previous = dict(entity.attributes)
        for attribute, (old, _new) in changes.items():
            previous[attribute] = old
        return previous
