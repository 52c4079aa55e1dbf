"""Explicit per-mutation context.

A VersionContext replaces process-wide mutable state: the host builds one
per request (or per job) and passes it into every lifecycle call. It carries
the actor identity, request-scoped metadata and the global recording switch.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from version_trail.settings import Settings


class VersionContext(BaseModel):
    """Actor identity, ambient metadata and the global switch.

    Satisfies the ActorContext protocol.

    Attributes:
        whodunnit: Identifier of the acting user, job or system.
        metadata: Values merged into every version recorded under this
            context. They take precedence over per-type metadata providers.
        enabled: Global recording switch. When False no version is recorded
            regardless of per-type configuration.
    """

    model_config = ConfigDict(frozen=True)

    whodunnit: str | None = Field(default=None, description="Acting identity")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Ambient metadata")
    enabled: bool = Field(default=True, description="Global recording switch")

    @classmethod
    def system(cls) -> VersionContext:
        """Anonymous, enabled context."""
        return cls()

    @classmethod
    def from_settings(cls, settings: Settings, whodunnit: str | None = None) -> VersionContext:
        """Build a context whose global switch follows configuration."""
        return cls(whodunnit=whodunnit, enabled=settings.enabled)

    def with_actor(self, whodunnit: str | None) -> VersionContext:
        return self.model_copy(update={"whodunnit": whodunnit})

    def with_metadata(self, **values: Any) -> VersionContext:
        return self.model_copy(update={"metadata": {**self.metadata, **values}})

    def disabled(self) -> VersionContext:
        return self.model_copy(update={"enabled": False})

    def current_whodunnit(self) -> str | None:
        return self.whodunnit

    def ambient_metadata(self) -> dict[str, Any] | None:
        return dict(self.metadata) if self.metadata else None
