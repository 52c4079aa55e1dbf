"""Test fixtures for version-trail.

Provides:
- Widget: a minimal Trackable entity with explicit dirty tracking
- clock: a deterministic clock advancing one minute per call
- store: an empty InMemoryVersionStore
- trail: a VersionTrail over the store with "Widget" registered
- context: a VersionContext acting as "alice"
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from version_trail.adapters.memory_store import InMemoryVersionStore
from version_trail.core.context import VersionContext
from version_trail.history.service import VersionTrail

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


@dataclass
class Widget:
    """In-memory entity implementing the Trackable protocol."""

    id: str | None = None
    name: str = ""
    color: str = "red"
    updated_at: datetime | None = None
    persisted: bool = False
    item_type: str = field(default="Widget", init=False)

    @property
    def item_id(self) -> str | None:
        return self.id

    @property
    def attributes(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "updated_at": self.updated_at,
        }

    def apply(self, **values: Any) -> dict[str, tuple[Any, Any]]:
        """Assign new values and return the change set (old, new)."""
        changes: dict[str, tuple[Any, Any]] = {}
        for key, value in values.items():
            old = getattr(self, key)
            if old != value:
                changes[key] = (old, value)
            setattr(self, key, value)
        return changes


class StepClock:
    """Clock returning T0, T0+1min, T0+2min, ... on successive calls."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(minutes=1)) -> None:
        self.current = start - step
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def store() -> InMemoryVersionStore:
    return InMemoryVersionStore()


@pytest.fixture()
def trail(store: InMemoryVersionStore, clock: StepClock) -> VersionTrail:
    version_trail = VersionTrail(store, clock=clock)
    version_trail.register("Widget")
    return version_trail


@pytest.fixture()
def context() -> VersionContext:
    return VersionContext(whodunnit="alice")


@pytest.fixture()
def widget(trail: VersionTrail, context: VersionContext) -> Widget:
    """A persisted Widget named "A" with its CREATE version recorded."""
    entity = Widget(id="w-1", name="A", persisted=True)
    trail.after_create(entity, context)
    return entity
