"""Tests for point-in-time reconstruction and previous/next navigation.

History used throughout (StepClock, one minute per recorded version):

    v0  CREATE  at T0        snapshot: none
    v1  UPDATE  at T0+1min   snapshot: name=A
    v2  UPDATE  at T0+2min   snapshot: name=B
    live                     name=C
"""

from datetime import timedelta

import pytest

from conftest import T0, Widget
from version_trail.adapters.memory_store import InMemoryVersionStore
from version_trail.core.context import VersionContext
from version_trail.history.navigator import is_live
from version_trail.history.service import VersionTrail


@pytest.fixture()
def history(trail: VersionTrail, context: VersionContext, widget: Widget) -> Widget:
    trail.before_update(widget, widget.apply(name="B"), context)
    trail.before_update(widget, widget.apply(name="C"), context)
    return widget


def test_state_before_first_version_is_first_snapshot(trail: VersionTrail, history: Widget) -> None:
    first = trail.versions(history)[0]

    state = trail.state_at(history, T0 - timedelta(seconds=1))

    assert state.attributes == trail.codec.decode(first.snapshot) == {}
    assert state.origin == first
    assert not is_live(state)


def test_state_between_versions(trail: VersionTrail, history: Widget) -> None:
    assert trail.state_at(history, T0 + timedelta(seconds=30)).attributes["name"] == "A"
    assert trail.state_at(history, T0 + timedelta(minutes=1)).attributes["name"] == "B"
    assert trail.state_at(history, T0 + timedelta(minutes=1, seconds=59)).attributes["name"] == "B"


def test_state_at_or_after_last_version_is_live(trail: VersionTrail, history: Widget) -> None:
    for moment in (T0 + timedelta(minutes=2), T0 + timedelta(days=365)):
        state = trail.state_at(history, moment)
        assert state.is_live
        assert state.attributes == history.attributes


def test_state_at_without_history_falls_back_to_live(trail: VersionTrail) -> None:
    widget = Widget(id="w-untracked", name="solo", persisted=True)

    state = trail.state_at(widget, T0)

    assert state.is_live
    assert state.attributes["name"] == "solo"


def test_previous_walks_back_to_the_start(trail: VersionTrail, history: Widget) -> None:
    from_live = trail.previous_version(history)
    assert from_live.attributes["name"] == "B"
    assert from_live.origin.sequence_index == 2

    one_more = trail.previous_version(from_live)
    assert one_more.attributes["name"] == "A"

    creation = trail.previous_version(one_more)
    assert creation.attributes == {}
    assert creation.origin.sequence_index == 0

    assert trail.previous_version(creation) is None


def test_previous_of_live_without_versions_is_none(trail: VersionTrail) -> None:
    assert trail.previous_version(Widget(id="w-untracked", persisted=True)) is None


def test_next_walks_forward_and_stops_before_live(trail: VersionTrail, history: Widget) -> None:
    creation = trail.reify(trail.versions(history)[0])

    step = trail.next_version(creation)
    assert step.attributes["name"] == "A"

    step = trail.next_version(step)
    assert step.attributes["name"] == "B"

    assert trail.next_version(step) is None


def test_next_of_live_entity_is_none(trail: VersionTrail, history: Widget) -> None:
    assert trail.next_version(history) is None


def test_navigation_rereads_the_store(trail: VersionTrail, context: VersionContext, history: Widget) -> None:
    before = trail.previous_version(history)
    trail.before_update(history, history.apply(name="D"), context)

    after = trail.previous_version(history)

    assert before.attributes["name"] == "B"
    assert after.attributes["name"] == "C"
    assert trail.next_version(before).attributes["name"] == "C"


def test_versions_sharing_a_timestamp_keep_recording_order() -> None:
    tied = T0 + timedelta(minutes=1)
    trail = VersionTrail(InMemoryVersionStore(), clock=iter([T0, tied, tied]).__next__)
    trail.register("Widget")
    context = VersionContext(whodunnit="alice")
    widget = Widget(id="w-1", name="A", persisted=True)
    trail.after_create(widget, context)
    trail.before_update(widget, widget.apply(name="B"), context)
    trail.before_update(widget, widget.apply(name="C"), context)

    state = trail.state_at(widget, T0 + timedelta(seconds=30))

    assert state.attributes["name"] == "A"
    assert state.origin.sequence_index == 1
    assert trail.next_version(state).attributes["name"] == "B"
    assert trail.previous_version(trail.previous_version(widget)).attributes["name"] == "A"
