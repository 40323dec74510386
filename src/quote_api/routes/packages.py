"""Package catalog endpoints.

Provides REST endpoints for:
- Creating, listing, reading, updating and deleting packages
- Status changes and duplication
- Version history, version comparison and audit trails

All writes require an admin actor and the version the change was computed
against; a stale version returns 409 with ERR_VERSION_001.
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from quote_api.dependencies import (
    get_actor,
    get_audit_logger,
    get_package_catalog,
    get_version_history_service,
)
from quote_api.models.packages import (
    DuplicatePackageRequest,
    PackageDeleteResponse,
    PackageStatusRequest,
    PackageUpdateRequest,
)
from quote_engine.models import (
    Actor,
    AuditEvent,
    AuditTrail,
    FieldChange,
    Package,
    PackageCreate,
    PackageStatus,
    PackageUpdate,
    VersionHistoryEntry,
)
from quote_engine.services.audit_log import AuditLogger
from quote_engine.services.package_catalog import PackageCatalog
from quote_engine.services.version_history import VersionHistoryService

router = APIRouter(tags=["packages"])


@router.post(
    "/packages",
    summary="Create a package",
    description="""
Create a package at version 1.

**Validation:**
- Group size tiers ordered by `min_people` and non-overlapping
- Duration options positive and unique
- Every price entry references a valid tier index and a listed duration
- At most one price per (tier, nights) within a period
""",
    status_code=HTTP_201_CREATED,
    response_model=Package,
    responses={
        201: {"description": "Package created"},
        403: {"description": "Actor is not an admin"},
        422: {"description": "Invalid pricing definition"},
    },
)
async def create_package(
    body: PackageCreate,
    actor: Actor = Depends(get_actor),
    catalog: PackageCatalog = Depends(get_package_catalog),
) -> Package:
    """Create a draft package at version 1."""
    return catalog.create_package(body, actor)


@router.get(
    "/packages",
    summary="List packages",
    response_model=list[Package],
)
async def list_packages(
    status: PackageStatus | None = Query(default=None, description="Filter by status"),
    destination: str | None = Query(default=None, description="Filter by destination"),
    include_deleted: bool = Query(default=False, description="Include soft-deleted packages"),
    catalog: PackageCatalog = Depends(get_package_catalog),
) -> list[Package]:
    """List packages sorted by name."""
    return catalog.list_packages(
        status=status, destination=destination, include_deleted=include_deleted
    )


@router.get(
    "/packages/{package_id}",
    summary="Get a package",
    response_model=Package,
    responses={404: {"description": "Package not found"}},
)
async def get_package(
    package_id: str,
    catalog: PackageCatalog = Depends(get_package_catalog),
) -> Package:
    """Get a package by ID.

    Soft-deleted packages are returned so that linked quotes can still
    resolve them.
    """
    return catalog.get_package(package_id)


@router.patch(
    "/packages/{package_id}",
    summary="Update a package",
    description="""
Apply a partial update. Only include fields that should change.

A change bumps the version by one and records a version history entry.
An update that changes nothing returns the package unchanged.
""",
    response_model=Package,
    responses={
        404: {"description": "Package not found"},
        409: {"description": "Version conflict or package deleted"},
        422: {"description": "Invalid pricing definition"},
    },
)
async def update_package(
    package_id: str,
    body: PackageUpdateRequest,
    actor: Actor = Depends(get_actor),
    catalog: PackageCatalog = Depends(get_package_catalog),
) -> Package:
    """Update a package against the caller's expected version."""
    fields = body.model_fields_set - {"expected_version", "reason"}
    changes = PackageUpdate(**{name: getattr(body, name) for name in fields})
    return catalog.update_package(
        package_id,
        changes,
        actor,
        expected_version=body.expected_version,
        reason=body.reason,
    )


@router.post(
    "/packages/{package_id}/status",
    summary="Change package status",
    response_model=Package,
    responses={
        404: {"description": "Package not found"},
        409: {"description": "Version conflict"},
    },
)
async def set_package_status(
    package_id: str,
    body: PackageStatusRequest,
    actor: Actor = Depends(get_actor),
    catalog: PackageCatalog = Depends(get_package_catalog),
) -> Package:
    """Change a package's status."""
    return catalog.set_status(package_id, body.status, actor, body.expected_version)


@router.delete(
    "/packages/{package_id}",
    summary="Delete a package",
    description="""
Delete a package.

Packages still linked to quotes are soft-deleted (status `deleted`);
unlinked packages are removed. Version history is kept either way.
""",
    response_model=PackageDeleteResponse,
    responses={
        404: {"description": "Package not found"},
        409: {"description": "Version conflict"},
    },
)
async def delete_package(
    package_id: str,
    expected_version: int = Query(..., ge=1, description="Version last read"),
    actor: Actor = Depends(get_actor),
    catalog: PackageCatalog = Depends(get_package_catalog),
) -> PackageDeleteResponse:
    """Delete a package, softly when quotes still link to it."""
    result = catalog.delete_package(package_id, actor, expected_version)
    return PackageDeleteResponse(**result)


@router.post(
    "/packages/{package_id}/duplicate",
    summary="Duplicate a package",
    status_code=HTTP_201_CREATED,
    response_model=Package,
    responses={404: {"description": "Package not found"}},
)
async def duplicate_package(
    package_id: str,
    body: DuplicatePackageRequest,
    actor: Actor = Depends(get_actor),
    catalog: PackageCatalog = Depends(get_package_catalog),
) -> Package:
    """Copy a package into a new draft at version 1."""
    return catalog.duplicate_package(package_id, actor, name=body.name)


@router.get(
    "/packages/{package_id}/history",
    summary="Package version history",
    response_model=list[VersionHistoryEntry],
)
async def get_package_history(
    package_id: str,
    limit: int = Query(default=50, ge=1, le=100),
    history: VersionHistoryService = Depends(get_version_history_service),
) -> list[VersionHistoryEntry]:
    """Version history entries, newest first."""
    return history.get_history(package_id, limit)


@router.get(
    "/packages/{package_id}/compare",
    summary="Compare two package versions",
    response_model=list[FieldChange],
    responses={404: {"description": "Version not found"}},
)
async def compare_package_versions(
    package_id: str,
    v1: int = Query(..., ge=1, description="Older version"),
    v2: int = Query(..., ge=1, description="Newer version"),
    history: VersionHistoryService = Depends(get_version_history_service),
) -> list[FieldChange]:
    """Field-level changes between two package versions."""
    return history.compare_versions(package_id, v1, v2)


@router.get(
    "/packages/{package_id}/audit-trail",
    summary="Package audit trail",
    response_model=AuditTrail,
    responses={404: {"description": "No history for this package"}},
)
async def get_package_audit_trail(
    package_id: str,
    history: VersionHistoryService = Depends(get_version_history_service),
) -> AuditTrail:
    """Get a package's audit trail."""
    return history.get_audit_trail(package_id)


@router.get(
    "/packages/{package_id}/audit-events",
    summary="Package audit events",
    response_model=list[AuditEvent],
)
async def get_package_audit_events(
    package_id: str,
    limit: int = Query(default=50, ge=1, le=100),
    audit: AuditLogger = Depends(get_audit_logger),
) -> list[AuditEvent]:
    """Audit log events for a package, newest first."""
    return audit.get_events(package_id, limit)
