"""API models for package catalog endpoints."""

from typing import Literal

from pydantic import BaseModel, Field

from quote_engine.models import PackageStatus, PackageUpdate

from .common import VersionedRequest


class PackageUpdateRequest(PackageUpdate, VersionedRequest):
    """Partial package update. Only include fields that should change."""

    reason: str | None = Field(
        default=None,
        max_length=500,
        description="Change description recorded in version history",
        examples=["Summer 2025 prices"],
    )


class PackageStatusRequest(VersionedRequest):
    """Activate, deactivate or restore a package."""

    status: PackageStatus = Field(..., examples=["active"])


class DuplicatePackageRequest(BaseModel):
    """Copy a package into a new draft."""

    name: str | None = Field(
        default=None,
        min_length=1,
        max_length=200,
        description='Name of the copy (defaults to "<name> (Copy)")',
    )


class PackageDeleteResponse(BaseModel):
    """Outcome of a package deletion."""

    package_id: str
    deleted: Literal["soft", "hard"] = Field(
        ...,
        description="soft when quotes still link to the package, hard otherwise",
    )
    linked_quotes_count: int = Field(..., ge=0)
