"""Tests for audit trail construction."""

from datetime import timedelta

from conftest import T0, StepClock, Widget
from version_trail.adapters.memory_store import InMemoryVersionStore
from version_trail.core.context import VersionContext
from version_trail.core.models import Change, VersionEvent
from version_trail.history.codec import JsonSnapshotCodec
from version_trail.history.diff import diff, without
from version_trail.history.service import VersionTrail
from version_trail.history.trail_builder import TrailBuilder


def test_single_update_yields_one_entry(trail: VersionTrail, context: VersionContext) -> None:
    widget = Widget(id="w-1", name="A", persisted=True)
    trail.after_create(widget, context.disabled())
    trail.before_update(widget, widget.apply(name="B"), context)

    entries = trail.audit_trail(widget)

    assert len(entries) == 1
    entry = entries[0]
    assert entry.event is VersionEvent.UPDATE
    assert entry.changed_by == "alice"
    assert entry.changed_at == T0
    assert entry.changes == [Change(attribute="name", before="A", after="B")]
    assert entry.index == 0


def test_one_entry_per_version_newest_first(trail: VersionTrail, context: VersionContext, widget: Widget) -> None:
    trail.before_update(widget, widget.apply(name="B"), context.with_actor("bob"))
    trail.before_update(widget, widget.apply(color="blue"), context.with_actor("carol"))

    entries = trail.audit_trail(widget)

    assert len(entries) == len(trail.versions(widget)) == 3
    assert [e.index for e in entries] == [2, 1, 0]
    assert [e.changed_by for e in entries] == ["carol", "bob", "alice"]
    assert [e.event for e in entries] == [VersionEvent.UPDATE, VersionEvent.UPDATE, VersionEvent.CREATE]
    assert entries[0].changes == [Change(attribute="color", before="red", after="blue")]
    assert entries[1].changes == [Change(attribute="name", before="A", after="B")]


def test_creation_entry_reports_every_attribute_as_new(
    trail: VersionTrail, widget: Widget
) -> None:
    (entry,) = trail.audit_trail(widget)

    assert entry.event is VersionEvent.CREATE
    assert [c.attribute for c in entry.changes] == ["color", "id", "name"]
    assert all(c.before is None for c in entry.changes)


def test_entries_match_independently_reconstructed_snapshots(
    trail: VersionTrail, context: VersionContext, widget: Widget
) -> None:
    trail.before_update(widget, widget.apply(name="B"), context)
    trail.before_update(widget, widget.apply(name="C", color="green"), context)
    ignored = {"updated_at"}

    versions = trail.versions(widget)
    states = [trail.reify(v).attributes for v in versions] + [widget.attributes]
    expected = [
        diff(without(states[i], ignored), without(states[i + 1], ignored))
        for i in reversed(range(len(versions)))
    ]

    assert [e.changes for e in trail.audit_trail(widget)] == expected


def test_updated_at_is_ignored_by_default(trail: VersionTrail, context: VersionContext, widget: Widget) -> None:
    trail.before_update(
        widget, widget.apply(name="B", updated_at=T0 + timedelta(hours=1)), context
    )

    newest = trail.audit_trail(widget)[0]

    assert [c.attribute for c in newest.changes] == ["name"]


def test_custom_ignored_attributes_replace_the_default(
    trail: VersionTrail, context: VersionContext, widget: Widget
) -> None:
    trail.before_update(
        widget, widget.apply(color="blue", updated_at=T0 + timedelta(hours=1)), context
    )

    newest = trail.audit_trail(widget, ignored_attributes=["color"])[0]

    assert [c.attribute for c in newest.changes] == ["updated_at"]


def test_no_versions_yields_empty_trail(trail: VersionTrail) -> None:
    assert trail.audit_trail(Widget(id="w-untracked", persisted=True)) == []


def test_whodunnit_resolver_transforms_changed_by(clock: StepClock, context: VersionContext) -> None:
    users = {"alice": {"id": "alice", "display_name": "Alice Liddell"}}
    trail = VersionTrail(InMemoryVersionStore(), clock=clock)
    trail.register("Widget", whodunnit_resolver=users.get)
    widget = Widget(id="w-1", name="A", persisted=True)
    trail.after_create(widget, context)

    (entry,) = trail.audit_trail(widget)

    assert entry.changed_by == {"id": "alice", "display_name": "Alice Liddell"}


def test_transform_whodunnit_can_be_overridden(clock: StepClock, context: VersionContext) -> None:
    class UpperCaseTrailBuilder(TrailBuilder):
        def transform_whodunnit(self, whodunnit, config=None):
            return whodunnit.upper() if whodunnit else whodunnit

    store = InMemoryVersionStore()
    codec = JsonSnapshotCodec()
    trail = VersionTrail(store, codec=codec, clock=clock, trail_builder=UpperCaseTrailBuilder(store, codec))
    trail.register("Widget")
    widget = Widget(id="w-1", name="A", persisted=True)
    trail.after_create(widget, context)

    (entry,) = trail.audit_trail(widget)

    assert entry.changed_by == "ALICE"
