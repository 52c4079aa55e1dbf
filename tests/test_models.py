"""Tests for value objects, the actor context and the tracking registry."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from version_trail.core.context import VersionContext
from version_trail.core.models import EntityState, Version, VersionEvent
from version_trail.core.registry import TrackingRegistry
from version_trail.errors import DuplicateRegistrationError, UnregisteredEntityError
from version_trail.settings import Settings

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def make_version(event: VersionEvent, snapshot: bytes | None) -> Version:
    return Version(item_type="Widget", item_id="w-1", event=event, snapshot=snapshot, created_at=NOW)


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------


def test_create_version_rejects_snapshot() -> None:
    with pytest.raises(ValidationError):
        make_version(VersionEvent.CREATE, b"payload")


@pytest.mark.parametrize("event", [VersionEvent.UPDATE, VersionEvent.DESTROY])
def test_update_and_destroy_versions_require_snapshot(event: VersionEvent) -> None:
    with pytest.raises(ValidationError):
        make_version(event, None)


def test_version_is_immutable() -> None:
    version = make_version(VersionEvent.CREATE, None)
    with pytest.raises(ValidationError):
        version.whodunnit = "mallory"  # type: ignore[misc]


def test_naive_created_at_is_treated_as_utc() -> None:
    version = Version(
        item_type="Widget",
        item_id="w-1",
        event=VersionEvent.CREATE,
        created_at=datetime(2024, 1, 1, 12, 0),
    )
    assert version.created_at == NOW
    assert version.created_at.tzinfo is not None


def test_event_values_are_lowercase() -> None:
    assert [e.value for e in VersionEvent] == ["create", "update", "destroy"]


def test_entity_state_origin_marks_reified_states() -> None:
    live = EntityState(item_type="Widget", item_id="w-1", attributes={"name": "A"})
    reified = EntityState(
        item_type="Widget",
        item_id="w-1",
        attributes={},
        origin=make_version(VersionEvent.CREATE, None),
    )
    assert live.is_live
    assert not reified.is_live


# ---------------------------------------------------------------------------
# VersionContext
# ---------------------------------------------------------------------------


def test_context_derivations_do_not_mutate() -> None:
    base = VersionContext(whodunnit="alice", metadata={"ip": "10.0.0.1"})

    derived = base.with_actor("bob").with_metadata(request_id="r-1").disabled()

    assert base.whodunnit == "alice"
    assert base.enabled is True
    assert derived.current_whodunnit() == "bob"
    assert derived.ambient_metadata() == {"ip": "10.0.0.1", "request_id": "r-1"}
    assert derived.enabled is False


def test_system_context_has_no_ambient_metadata() -> None:
    context = VersionContext.system()
    assert context.current_whodunnit() is None
    assert context.ambient_metadata() is None


def test_context_from_settings_follows_global_switch() -> None:
    context = VersionContext.from_settings(Settings(enabled=False), whodunnit="cron")
    assert context.enabled is False
    assert context.whodunnit == "cron"


# ---------------------------------------------------------------------------
# TrackingRegistry
# ---------------------------------------------------------------------------


def test_register_creates_immutable_config() -> None:
    registry = TrackingRegistry()

    config = registry.register("Widget", ignore=["updated_at"], meta={"source": "test"})

    assert config.ignored_attributes == frozenset({"updated_at"})
    assert config.metadata_providers == {"source": "test"}
    assert config.enabled is True
    with pytest.raises(ValidationError):
        config.enabled = False  # type: ignore[misc]


def test_register_twice_raises() -> None:
    registry = TrackingRegistry()
    registry.register("Widget")
    with pytest.raises(DuplicateRegistrationError):
        registry.register("Widget")


def test_unregistered_lookup_raises() -> None:
    with pytest.raises(UnregisteredEntityError) as exc_info:
        TrackingRegistry().config_for("Ghost")
    assert exc_info.value.item_type == "Ghost"


def test_disable_replaces_config_instead_of_mutating() -> None:
    registry = TrackingRegistry()
    registered = registry.register("Widget")

    disabled = registry.disable("Widget")

    assert registered.enabled is True
    assert disabled.enabled is False
    assert registry.config_for("Widget") is disabled
    assert registry.enable("Widget").enabled is True


def test_is_registered_reports_registration() -> None:
    registry = TrackingRegistry()
    registry.register("Widget")

    assert registry.is_registered("Widget")
    assert not registry.is_registered("Ghost")
