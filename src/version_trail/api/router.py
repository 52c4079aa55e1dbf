"""FastAPI read-side routes for entity history.

The live entity is obtained from an EntityLoader stored on app.state, so the
routes work with any host persistence. Versions are read through the
VersionTrail stored on app.state. No route records versions.

Routes:
    GET /history/{item_type}/{item_id}/versions                         - list versions
    GET /history/{item_type}/{item_id}/versions/{sequence_index}        - reify one version
    GET /history/{item_type}/{item_id}/versions/{sequence_index}/previous
    GET /history/{item_type}/{item_id}/versions/{sequence_index}/next
    GET /history/{item_type}/{item_id}/previous                         - newest snapshot
    GET /history/{item_type}/{item_id}/audit-trail                      - attribute diffs
    GET /history/{item_type}/{item_id}/state-at?timestamp=...           - point in time
    GET /history/{item_type}/{item_id}/originator                       - last whodunnit
"""

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from version_trail.api.schemas import (
    AuditTrailResponse,
    EntityStateResponse,
    OriginatorResponse,
    VersionListResponse,
    VersionResponse,
)
from version_trail.core.interfaces import Trackable
from version_trail.core.models import EntityRef, EntityState, Version
from version_trail.errors import NotFoundError
from version_trail.history.service import VersionTrail
from version_trail.observability import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/history", tags=["Version History"])

EntityLoader = Callable[[str, str], Trackable | None]


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_version_trail(request: Request) -> VersionTrail:
    """Return the VersionTrail configured on the application."""
    return request.app.state.version_trail


def get_entity_loader(request: Request) -> EntityLoader:
    """Return the host's EntityLoader configured on the application."""
    return request.app.state.entity_loader


def _load_entity(
    trail: VersionTrail,
    loader: EntityLoader,
    item_type: str,
    item_id: str,
) -> Trackable:
    """Load the live entity of a registered type.

    Raises:
        HTTPException: 404 if the type is unregistered or the entity is unknown.
    """
    try:
        if not trail.registry.is_registered(item_type):
            raise NotFoundError(resource="Entity type", resource_id=item_type)
        entity = loader(item_type, item_id)
        if entity is None:
            raise NotFoundError(resource=item_type, resource_id=item_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return entity


def _version_at_index(trail: VersionTrail, item_type: str, item_id: str, sequence_index: int) -> Version:
    ref = EntityRef(item_type=item_type, item_id=item_id)
    for version in trail.store.list(ref):
        if version.sequence_index == sequence_index:
            return version
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Version {sequence_index} of {item_type} {item_id!r} not found",
    )


def _state_or_404(state: EntityState | None, what: str) -> EntityStateResponse:
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No {what} version")
    return EntityStateResponse.from_state(state)


TrailDep = Annotated[VersionTrail, Depends(get_version_trail)]
LoaderDep = Annotated[EntityLoader, Depends(get_entity_loader)]


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


@router.get(
    "/{item_type}/{item_id}/versions",
    response_model=VersionListResponse,
    summary="List an entity's versions, oldest first",
)
def list_versions(item_type: str, item_id: str, trail: TrailDep, loader: LoaderDep) -> VersionListResponse:
    entity = _load_entity(trail, loader, item_type, item_id)
    versions = trail.versions(entity)
    return VersionListResponse(
        item_type=item_type,
        item_id=item_id,
        versions=[VersionResponse.from_version(v) for v in versions],
        total=len(versions),
    )


@router.get(
    "/{item_type}/{item_id}/versions/{sequence_index}",
    response_model=EntityStateResponse,
    summary="State captured by one version",
)
def get_version_state(
    item_type: str, item_id: str, sequence_index: int, trail: TrailDep, loader: LoaderDep
) -> EntityStateResponse:
    _load_entity(trail, loader, item_type, item_id)
    version = _version_at_index(trail, item_type, item_id, sequence_index)
    return EntityStateResponse.from_state(trail.reify(version))


@router.get(
    "/{item_type}/{item_id}/versions/{sequence_index}/previous",
    response_model=EntityStateResponse,
    summary="State captured by the version before the given one",
)
def get_previous_of_version(
    item_type: str, item_id: str, sequence_index: int, trail: TrailDep, loader: LoaderDep
) -> EntityStateResponse:
    _load_entity(trail, loader, item_type, item_id)
    version = _version_at_index(trail, item_type, item_id, sequence_index)
    return _state_or_404(trail.previous_version(trail.reify(version)), "previous")


@router.get(
    "/{item_type}/{item_id}/versions/{sequence_index}/next",
    response_model=EntityStateResponse,
    summary="State captured by the version after the given one",
)
def get_next_of_version(
    item_type: str, item_id: str, sequence_index: int, trail: TrailDep, loader: LoaderDep
) -> EntityStateResponse:
    _load_entity(trail, loader, item_type, item_id)
    version = _version_at_index(trail, item_type, item_id, sequence_index)
    return _state_or_404(trail.next_version(trail.reify(version)), "next")


@router.get(
    "/{item_type}/{item_id}/previous",
    response_model=EntityStateResponse,
    summary="State captured by the newest version",
)
def get_previous(item_type: str, item_id: str, trail: TrailDep, loader: LoaderDep) -> EntityStateResponse:
    entity = _load_entity(trail, loader, item_type, item_id)
    return _state_or_404(trail.previous_version(entity), "previous")


@router.get(
    "/{item_type}/{item_id}/audit-trail",
    response_model=AuditTrailResponse,
    summary="Attribute-level change history, newest first",
)
def get_audit_trail(
    item_type: str,
    item_id: str,
    trail: TrailDep,
    loader: LoaderDep,
    ignore: Annotated[list[str] | None, Query(description="Attributes left out of every diff")] = None,
) -> AuditTrailResponse:
    entity = _load_entity(trail, loader, item_type, item_id)
    entries = trail.audit_trail(entity, ignored_attributes=ignore)
    logger.info("Audit trail served", item_type=item_type, item_id=item_id, entries=len(entries))
    return AuditTrailResponse(item_type=item_type, item_id=item_id, entries=entries, total=len(entries))


@router.get(
    "/{item_type}/{item_id}/state-at",
    response_model=EntityStateResponse,
    summary="Entity state at a point in time",
)
def get_state_at(
    item_type: str,
    item_id: str,
    trail: TrailDep,
    loader: LoaderDep,
    timestamp: Annotated[datetime, Query(description="ISO 8601 point in time; naive values are UTC")],
) -> EntityStateResponse:
    entity = _load_entity(trail, loader, item_type, item_id)
    return EntityStateResponse.from_state(trail.state_at(entity, timestamp))


@router.get(
    "/{item_type}/{item_id}/originator",
    response_model=OriginatorResponse,
    summary="Who put the entity into its current state",
)
def get_originator(item_type: str, item_id: str, trail: TrailDep, loader: LoaderDep) -> OriginatorResponse:
    entity = _load_entity(trail, loader, item_type, item_id)
    return OriginatorResponse(item_type=item_type, item_id=item_id, whodunnit=trail.originator(entity))
