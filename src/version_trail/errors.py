"""Exception hierarchy for version-trail.

Persistence failures raised by a VersionStore (for example
``sqlalchemy.exc.SQLAlchemyError``) are not wrapped here; they propagate to
the caller unmodified.
"""


class VersionTrailError(Exception):
    """Base class for all version-trail errors."""


class UnregisteredEntityError(VersionTrailError):
    """Raised when an entity type was never registered for versioning.

    Args:
        item_type: The entity type that has no TrackingConfig.
    """

    def __init__(self, item_type: str) -> None:
        self.item_type = item_type
        super().__init__(f"Entity type {item_type!r} is not registered for versioning")


class DuplicateRegistrationError(VersionTrailError):
    """Raised when an entity type is registered a second time."""

    def __init__(self, item_type: str) -> None:
        self.item_type = item_type
        super().__init__(f"Entity type {item_type!r} is already registered")


class NotFoundError(VersionTrailError):
    """Raised when a requested resource does not exist.

    Args:
        resource: Resource kind, e.g. "Entity".
        resource_id: Identifier that was looked up.
    """

    def __init__(self, resource: str, resource_id: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id!r} not found")


class SnapshotDecodeError(VersionTrailError):
    """Raised by a codec's strict decode path when a payload is malformed."""
