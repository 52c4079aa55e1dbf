"""Pydantic response schemas for the history API.

All API outputs use Pydantic models, never raw dicts. Snapshot payloads are
never returned as bytes; clients receive decoded attribute maps.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from version_trail.core.models import AuditTrailEntry, EntityState, Version


class VersionResponse(BaseModel):
    """Response schema for one version (snapshot omitted)."""

    id: int | None = Field(description="Store-assigned identifier")
    item_type: str = Field(description="Entity type")
    item_id: str = Field(description="Entity identifier")
    event: str = Field(description="create | update | destroy")
    whodunnit: str | None = Field(description="Actor responsible for the change")
    metadata: dict[str, Any] = Field(description="Extension values recorded with the version")
    created_at: datetime = Field(description="When the version was recorded (UTC)")
    sequence_index: int | None = Field(description="Position among the entity's versions")

    @classmethod
    def from_version(cls, version: Version) -> "VersionResponse":
        return cls(
            id=version.id,
            item_type=version.item_type,
            item_id=version.item_id,
            event=version.event.value,
            whodunnit=version.whodunnit,
            metadata=version.metadata,
            created_at=version.created_at,
            sequence_index=version.sequence_index,
        )


class VersionListResponse(BaseModel):
    """Ordered list of an entity's versions, oldest first."""

    item_type: str
    item_id: str
    versions: list[VersionResponse]
    total: int


class EntityStateResponse(BaseModel):
    """Live or reconstructed attribute map of an entity."""

    item_type: str = Field(description="Entity type")
    item_id: str = Field(description="Entity identifier")
    live: bool = Field(description="True for the current state, False for a reconstruction")
    attributes: dict[str, Any] = Field(description="Attribute map")
    version: VersionResponse | None = Field(
        default=None, description="Version the state was reconstructed from"
    )

    @classmethod
    def from_state(cls, state: EntityState) -> "EntityStateResponse":
        return cls(
            item_type=state.item_type,
            item_id=state.item_id,
            live=state.is_live,
            attributes=state.attributes,
            version=VersionResponse.from_version(state.origin) if state.origin is not None else None,
        )


class AuditTrailResponse(BaseModel):
    """Audit trail of an entity, newest change first."""

    item_type: str
    item_id: str
    entries: list[AuditTrailEntry]
    total: int


class OriginatorResponse(BaseModel):
    """Who put the entity into its current state."""

    item_type: str
    item_id: str
    whodunnit: str | None
