"""Version history engine.

Records pre-change snapshots of tracked entities, reconstructs their state
at any past timestamp, steps through history one version at a time and
builds attribute-level audit trails attributed to the acting identity.
"""

from __future__ import annotations

from version_trail.history.codec import JsonSnapshotCodec, YamlSnapshotCodec
from version_trail.history.diff import diff
from version_trail.history.lifecycle import LifecycleController
from version_trail.history.navigator import Navigator
from version_trail.history.service import VersionTrail
from version_trail.history.trail_builder import TrailBuilder

__all__ = [
    "JsonSnapshotCodec",
    "YamlSnapshotCodec",
    "diff",
    "LifecycleController",
    "Navigator",
    "VersionTrail",
    "TrailBuilder",
]
