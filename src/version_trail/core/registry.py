"""Per-type versioning configuration.

Each entity type opts into versioning once, at registration time, producing
an immutable TrackingConfig. Switching a type on or off swaps the stored
config for a new value; configs are never mutated in place.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from version_trail.errors import DuplicateRegistrationError, UnregisteredEntityError
from version_trail.observability import get_logger

logger = get_logger(__name__)


class TrackingConfig(BaseModel):
    """Immutable versioning configuration for one entity type.

    Attributes:
        item_type: The registered entity type name.
        ignored_attributes: Attributes whose changes alone never produce an
            UPDATE version.
        metadata_providers: Extra values stored on each version. A callable
            value is invoked with the entity; any other value is stored as is.
        enabled: Per-type switch, independent of the global switch.
        whodunnit_resolver: Optional hook turning a stored whodunnit into a
            richer domain object for audit trails.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    item_type: str = Field(..., min_length=1)
    ignored_attributes: frozenset[str] = Field(default_factory=frozenset)
    metadata_providers: Mapping[str, Any] = Field(default_factory=dict)
    enabled: bool = True
    whodunnit_resolver: Callable[[str | None], Any] | None = None


class TrackingRegistry:
    """Lookup of TrackingConfig by entity type."""

    def __init__(self) -> None:
        self._configs: dict[str, TrackingConfig] = {}

    def register(
        self,
        item_type: str,
        *,
        ignore: Iterable[str] = (),
        meta: Mapping[str, Any] | None = None,
        whodunnit_resolver: Callable[[str | None], Any] | None = None,
    ) -> TrackingConfig:
        """Opt an entity type into versioning.

        Args:
            item_type: Entity type name, as reported by Trackable.item_type.
            ignore: Attributes for which a change alone does not record a version.
            meta: Metadata providers, static values or callables taking the entity.
            whodunnit_resolver: Optional audit trail transform for whodunnit values.

        Returns:
            The created TrackingConfig.

        Raises:
            DuplicateRegistrationError: If item_type is already registered.
        """
        if item_type in self._configs:
            raise DuplicateRegistrationError(item_type)

        config = TrackingConfig(
            item_type=item_type,
            ignored_attributes=frozenset(str(name) for name in ignore),
            metadata_providers=dict(meta or {}),
            whodunnit_resolver=whodunnit_resolver,
        )
        self._configs[item_type] = config
        logger.info(
            "Registered entity type for versioning",
            item_type=item_type,
            ignored_attributes=sorted(config.ignored_attributes),
            metadata_keys=sorted(config.metadata_providers),
        )
        return config

    def config_for(self, item_type: str) -> TrackingConfig:
        """Return the config of a registered type.

        Raises:
            UnregisteredEntityError: If item_type was never registered.
        """
        try:
            return self._configs[item_type]
        except KeyError:
            raise UnregisteredEntityError(item_type) from None

    def is_registered(self, item_type: str) -> bool:
        return item_type in self._configs

    def enable(self, item_type: str) -> TrackingConfig:
        """Switch versioning on for a type."""
        return self._set_enabled(item_type, True)

    def disable(self, item_type: str) -> TrackingConfig:
        """Switch versioning off for a type."""
        return self._set_enabled(item_type, False)

    def _set_enabled(self, item_type: str, enabled: bool) -> TrackingConfig:
        config = self.config_for(item_type).model_copy(update={"enabled": enabled})
        self._configs[item_type] = config
        logger.info("Per-type versioning switched", item_type=item_type, enabled=enabled)
        return config
