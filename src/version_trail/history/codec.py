"""Snapshot codecs.

Snapshots are stored either as zlib-compressed JSON bytes (the default) or as
UTF-8 YAML documents. Both codecs degrade to an empty attribute map when a
payload is absent, empty or malformed, so reconstruction never fails because
of a CREATE-originated or corrupt history entry.
"""

from __future__ import annotations

import json
import zlib
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import yaml

from version_trail.errors import SnapshotDecodeError
from version_trail.observability import get_logger
from version_trail.settings import Settings

logger = get_logger(__name__)

_TYPE_KEY = "__type__"

# tag -> rebuild from the stored value
_REVIVERS: dict[str, Callable[[Any], Any]] = {
    "datetime": datetime.fromisoformat,
    "date": date.fromisoformat,
    "decimal": Decimal,
    "uuid": UUID,
    "set": set,
    "frozenset": frozenset,
}


def _json_default(value: Any) -> Any:
    # datetime before date: datetime is a date subclass
    if isinstance(value, datetime):
        return {_TYPE_KEY: "datetime", "value": value.isoformat()}
    if isinstance(value, date):
        return {_TYPE_KEY: "date", "value": value.isoformat()}
    if isinstance(value, Decimal):
        return {_TYPE_KEY: "decimal", "value": str(value)}
    if isinstance(value, UUID):
        return {_TYPE_KEY: "uuid", "value": str(value)}
    if isinstance(value, (set, frozenset)):
        tag = "frozenset" if isinstance(value, frozenset) else "set"
        return {_TYPE_KEY: tag, "value": sorted(value, key=repr)}
    raise TypeError(f"Attribute value of type {type(value).__name__} cannot be stored in a snapshot")


def _revive(document: dict[str, Any]) -> Any:
    tag = document.get(_TYPE_KEY)
    if tag in _REVIVERS and set(document) == {_TYPE_KEY, "value"}:
        return _REVIVERS[tag](document["value"])
    return document


class JsonSnapshotCodec:
    """zlib-compressed JSON snapshots.

    datetime, date, Decimal, UUID, set and frozenset values are stored as
    tagged objects and rebuilt on decode. Any other non-JSON value raises
    TypeError at encode time.

    Args:
        compression_level: zlib level, 0-9.
    """

    def __init__(self, compression_level: int = 6) -> None:
        self._level = compression_level

    def encode(self, attributes: dict[str, Any]) -> bytes:
        """Serialize and compress an attribute map.

        Args:
            attributes: The attribute map to store.

        Returns:
            zlib-compressed UTF-8 encoded JSON bytes.

        Raises:
            TypeError: If an attribute value has no JSON representation.
        """
        raw = json.dumps(attributes, default=_json_default, separators=(",", ":"), sort_keys=True)
        return zlib.compress(raw.encode("utf-8"), level=self._level)

    def decode_strict(self, payload: bytes) -> dict[str, Any]:
        """Decompress and parse a payload.

        Raises:
            SnapshotDecodeError: If decompression or JSON parsing fails, a
                tagged value cannot be rebuilt, or the document is not a mapping.
        """
        try:
            loaded = json.loads(zlib.decompress(payload).decode("utf-8"), object_hook=_revive)
        except (zlib.error, ValueError, TypeError, ArithmeticError) as exc:
            raise SnapshotDecodeError(f"Failed to decompress snapshot: {exc}") from exc
        if not isinstance(loaded, dict):
            raise SnapshotDecodeError(f"Snapshot is a {type(loaded).__name__}, not a mapping")
        return loaded

    def decode(self, payload: bytes | None) -> dict[str, Any]:
        """Return the attribute map in payload, or {} if there is none."""
        return _tolerant_decode(self, payload)


class YamlSnapshotCodec:
    """UTF-8 YAML snapshots, readable without tooling.

    Uses safe_dump/safe_load, so only plain YAML types round-trip.
    """

    def encode(self, attributes: dict[str, Any]) -> bytes:
        return yaml.safe_dump(attributes, sort_keys=True, allow_unicode=True).encode("utf-8")

    def decode_strict(self, payload: bytes) -> dict[str, Any]:
        """Parse a YAML payload.

        Raises:
            SnapshotDecodeError: If parsing fails or the document is not a mapping.
        """
        try:
            loaded = yaml.safe_load(payload.decode("utf-8"))
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise SnapshotDecodeError(f"Failed to parse snapshot: {exc}") from exc
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise SnapshotDecodeError(f"Snapshot is a {type(loaded).__name__}, not a mapping")
        return loaded

    def decode(self, payload: bytes | None) -> dict[str, Any]:
        return _tolerant_decode(self, payload)


def _tolerant_decode(codec: JsonSnapshotCodec | YamlSnapshotCodec, payload: bytes | None) -> dict[str, Any]:
    if not payload:
        return {}
    try:
        return codec.decode_strict(payload)
    except SnapshotDecodeError as exc:
        logger.warning(
            "Malformed snapshot decoded as empty state",
            codec=type(codec).__name__,
            payload_bytes=len(payload),
            error=str(exc),
        )
        return {}


def codec_from_settings(settings: Settings) -> JsonSnapshotCodec | YamlSnapshotCodec:
    """Return the codec selected by ``snapshot_format``."""
    if settings.snapshot_format == "yaml":
        return YamlSnapshotCodec()
    return JsonSnapshotCodec(compression_level=settings.snapshot_compression_level)
