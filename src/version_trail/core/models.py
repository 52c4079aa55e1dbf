"""Value objects for the version history engine.

Models:
- EntityRef        - polymorphic (item_type, item_id) reference to a tracked entity
- Version          - IMMUTABLE record of one create/update/destroy event
- Change           - one attribute-level difference between two snapshots
- AuditTrailEntry  - one transition in an entity's audit trail
- EntityState      - live or reified attribute map of an entity

A Version's snapshot holds the entity's state *before* the event it records.
CREATE versions therefore carry no snapshot, and UPDATE/DESTROY versions must.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware UTC datetime.

    Args:
        value: A datetime. If naive, it is treated as UTC.

    Returns:
        The same instant expressed in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


class VersionEvent(StrEnum):
    """Kind of mutation a Version records."""

    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"


class EntityRef(BaseModel):
    """Identity of a tracked entity.

    Attributes:
        item_type: Registered entity type name.
        item_id: Identifier of the entity within its type.
    """

    model_config = ConfigDict(frozen=True)

    item_type: str = Field(..., min_length=1, description="Registered entity type name")
    item_id: str = Field(..., min_length=1, description="Identifier of the entity within its type")


class Version(BaseModel):
    """Immutable record of one entity mutation.

    Attributes:
        id: Store-assigned identifier. None until appended.
        item_type: Type of the tracked entity.
        item_id: Identifier of the tracked entity.
        event: create, update or destroy.
        snapshot: Encoded attribute map as it was immediately before the
            event. None for CREATE events.
        whodunnit: Identifier of the actor responsible, if known.
        metadata: Extension values from per-type providers and the ambient
            context.
        created_at: When the version was recorded (UTC).
        sequence_index: 0-based position among the entity's versions.
            None until appended.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = Field(default=None, description="Store-assigned identifier")
    item_type: str = Field(..., description="Type of the tracked entity")
    item_id: str = Field(..., description="Identifier of the tracked entity")
    event: VersionEvent = Field(..., description="Kind of mutation recorded")
    snapshot: bytes | None = Field(
        default=None,
        description="Encoded pre-event attribute map. None for CREATE events.",
    )
    whodunnit: str | None = Field(default=None, description="Actor responsible for the change")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Extension values")
    created_at: datetime = Field(..., description="When the version was recorded (UTC)")
    sequence_index: int | None = Field(
        default=None, ge=0, description="Position among the entity's versions"
    )

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_snapshot_matches_event(self) -> Version:
        if self.event is VersionEvent.CREATE and self.snapshot is not None:
            raise ValueError("CREATE versions must not carry a snapshot")
        if self.event is not VersionEvent.CREATE and self.snapshot is None:
            raise ValueError(f"{self.event.value.upper()} versions must carry a snapshot")
        return self

    @property
    def ref(self) -> EntityRef:
        """Reference to the entity this version belongs to."""
        return EntityRef(item_type=self.item_type, item_id=self.item_id)

    def sort_key(self) -> tuple[datetime, int]:
        """Ordering key: created_at, then sequence_index as tie-break."""
        return (self.created_at, self.sequence_index if self.sequence_index is not None else -1)


class Change(BaseModel):
    """One attribute-level difference.

    A value of None on either side means the attribute was absent (or nil)
    on that side.
    """

    model_config = ConfigDict(frozen=True)

    attribute: str
    before: Any = None
    after: Any = None


class AuditTrailEntry(BaseModel):
    """One transition in an entity's history, newest first in a trail.

    Attributes:
        event: Event of the older version of the pair.
        changed_by: Whodunnit after the per-type transform hook.
        changed_at: created_at of the older version.
        changes: Attribute differences sorted by attribute name.
        index: sequence_index of the older version.
    """

    model_config = ConfigDict(frozen=True)

    event: VersionEvent
    changed_by: Any = None
    changed_at: datetime
    changes: list[Change] = Field(default_factory=list)
    index: int


class EntityState(BaseModel):
    """Attribute map of an entity, either live or reconstructed from history.

    ``origin`` is the origin marker: None for the live entity, otherwise the
    Version the state was reified from. Reified states never record versions.
    """

    model_config = ConfigDict(frozen=True)

    item_type: str
    item_id: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    origin: Version | None = None

    @property
    def is_live(self) -> bool:
        """True when this state is the entity's current representation."""
        return self.origin is None
