"""Package catalog: versioned pricing definitions.

Every write reads the current package, computes the new document and
stores it conditionally on the version it read. A concurrent writer that
got there first makes the write fail with VERSION_CONFLICT; the caller
re-fetches and retries. Each committed write is recorded in version
history and emitted to the audit log.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Literal, TypedDict

from boto3.dynamodb.conditions import Attr
from pydantic import ValidationError

from quote_engine.models import (
    Actor,
    EntityType,
    ErrorCode,
    Package,
    PackageCreate,
    PackageStatus,
    PackageUpdate,
    QuoteEngineError,
)
from quote_engine.utils.logging import get_logger, log_package_operation

from .authorization import require_admin
from .dynamodb import from_item, to_item

if TYPE_CHECKING:
    from .audit_log import AuditLogger
    from .dynamodb import DynamoDBService
    from .version_history import VersionHistoryService

logger = get_logger(__name__)


class PackageDeletion(TypedDict):
    """Result of deleting a package."""

    package_id: str
    deleted: Literal["soft", "hard"]
    linked_quotes_count: int


def new_package_id() -> str:
    return f"PKG-{uuid.uuid4().hex[:12].upper()}"


class PackageCatalog:
    """Service owning packages and their pricing matrices."""

    TABLE = "packages"
    QUOTES_TABLE = "quotes"

    def __init__(
        self,
        db: "DynamoDBService",
        history: "VersionHistoryService",
        audit: "AuditLogger",
    ) -> None:
        """Initialize package catalog.

        Args:
            db: DynamoDB service instance
            history: Version history service
            audit: Audit log sink
        """
        self.db = db
        self.history = history
        self.audit = audit

    # Reads

    def get_package(self, package_id: str) -> Package:
        """Get a package by ID, including soft-deleted packages.

        Raises:
            QuoteEngineError: PACKAGE_NOT_FOUND
        """
        item = self.db.get_item(self.TABLE, {"package_id": package_id})
        if not item:
            raise QuoteEngineError(ErrorCode.PACKAGE_NOT_FOUND, {"package_id": package_id})
        return from_item(Package, item)

    def list_packages(
        self,
        status: PackageStatus | None = None,
        destination: str | None = None,
        include_deleted: bool = False,
    ) -> list[Package]:
        """List packages matching a filter, sorted by name.

        Args:
            status: Only packages with this status
            destination: Only packages for this destination
            include_deleted: Include soft-deleted packages when no status is given

        Returns:
            List of Package
        """
        condition = None
        if status is not None:
            condition = Attr("status").eq(status.value)
        elif not include_deleted:
            condition = Attr("status").ne(PackageStatus.DELETED.value)
        if destination:
            destination_condition = Attr("destination").eq(destination)
            condition = (
                destination_condition if condition is None else condition & destination_condition
            )

        items = self.db.scan(self.TABLE, filter_expression=condition)
        packages = [from_item(Package, item) for item in items]
        return sorted(packages, key=lambda p: (p.name.lower(), p.package_id))

    def count_linked_quotes(self, package_id: str) -> int:
        """Number of quotes currently linked to a package."""
        items = self.db.scan(
            self.QUOTES_TABLE,
            filter_expression=Attr("linked_package_id").eq(package_id),
        )
        return len(items)

    # Writes

    def create_package(self, data: PackageCreate, actor: Actor) -> Package:
        """Create a package at version 1.

        Raises:
            QuoteEngineError: UNAUTHORIZED, VALIDATION_ERROR
        """
        require_admin(actor)
        now = dt.datetime.now(dt.UTC)
        try:
            package = Package(
                **data.model_dump(),
                package_id=new_package_id(),
                version=1,
                created_by=actor.id,
                last_modified_by=actor.id,
                created_at=now,
                updated_at=now,
            )
        except ValidationError as e:
            raise QuoteEngineError.from_validation_error(e) from e

        self._commit(package, None, actor, reason="created", action="CREATE_PACKAGE")
        return package

    def update_package(
        self,
        package_id: str,
        changes: PackageUpdate,
        actor: Actor,
        expected_version: int,
        reason: str | None = None,
    ) -> Package:
        """Apply a partial update and bump the version.

        An update that changes nothing returns the package unchanged.

        Raises:
            QuoteEngineError: UNAUTHORIZED, PACKAGE_NOT_FOUND, PACKAGE_INACTIVE
                (deleted), VERSION_CONFLICT, VALIDATION_ERROR
        """
        require_admin(actor)
        current = self._get_for_write(package_id, expected_version)
        if current.status is PackageStatus.DELETED:
            raise QuoteEngineError(
                ErrorCode.PACKAGE_INACTIVE,
                {"package_id": package_id, "status": current.status.value},
            )

        # Only top-level fields the caller set; nested models are kept whole
        requested = changes.model_dump(include=set(changes.model_fields_set))
        data = current.model_dump()
        data.update({key: value for key, value in requested.items() if value is not None})
        try:
            candidate = Package.model_validate(data)
        except ValidationError as e:
            raise QuoteEngineError.from_validation_error(e) from e

        if candidate.snapshot() == current.snapshot():
            return current

        updated = candidate.model_copy(
            update={
                "version": current.version + 1,
                "last_modified_by": actor.id,
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )
        self._commit(
            updated,
            current.version,
            actor,
            reason=reason or "updated",
            action="UPDATE_PACKAGE",
        )
        return updated

    def set_status(
        self,
        package_id: str,
        status: PackageStatus,
        actor: Actor,
        expected_version: int,
    ) -> Package:
        """Change a package's status (activate, deactivate, restore).

        Raises:
            QuoteEngineError: UNAUTHORIZED, PACKAGE_NOT_FOUND, VERSION_CONFLICT
        """
        require_admin(actor)
        current = self._get_for_write(package_id, expected_version)
        if current.status is status:
            return current

        updated = current.model_copy(
            update={
                "status": status,
                "version": current.version + 1,
                "last_modified_by": actor.id,
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )
        self._commit(
            updated,
            current.version,
            actor,
            reason=f"status changed from {current.status.value} to {status.value}",
            action="STATUS_CHANGE",
        )
        return updated

    def delete_package(
        self,
        package_id: str,
        actor: Actor,
        expected_version: int,
    ) -> PackageDeletion:
        """Delete a package.

        Packages still linked to quotes are soft-deleted (status "deleted")
        so those quotes keep a resolvable reference. Unlinked packages are
        removed. Version history is kept either way.

        Raises:
            QuoteEngineError: UNAUTHORIZED, PACKAGE_NOT_FOUND, VERSION_CONFLICT
        """
        require_admin(actor)
        current = self._get_for_write(package_id, expected_version)
        linked_quotes = self.count_linked_quotes(package_id)

        if linked_quotes > 0:
            logger.warning(
                "Package %s has %d linked quote(s), performing soft delete",
                package_id,
                linked_quotes,
            )
            self.set_status(package_id, PackageStatus.DELETED, actor, expected_version)
            return PackageDeletion(
                package_id=package_id, deleted="soft", linked_quotes_count=linked_quotes
            )

        if not self.db.delete_item(
            self.TABLE, {"package_id": package_id}, expected_version=current.version
        ):
            raise self._conflict(package_id, current.version)

        final = current.model_copy(
            update={
                "status": PackageStatus.DELETED,
                "version": current.version + 1,
                "last_modified_by": actor.id,
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )
        self.history.record_version(
            package_id,
            EntityType.PACKAGE,
            final.version,
            final.snapshot(),
            actor,
            reason="permanently deleted",
        )
        self.audit.log_action(
            actor,
            "DELETE_PACKAGE",
            EntityType.PACKAGE,
            package_id,
            details={"deleted": "hard", "version": current.version},
        )
        log_package_operation(
            logger, "delete_package", package_id=package_id, actor_id=actor.id
        )
        return PackageDeletion(package_id=package_id, deleted="hard", linked_quotes_count=0)

    def duplicate_package(
        self,
        package_id: str,
        actor: Actor,
        name: str | None = None,
    ) -> Package:
        """Create a draft copy of a package at version 1.

        Raises:
            QuoteEngineError: UNAUTHORIZED, PACKAGE_NOT_FOUND, VALIDATION_ERROR
        """
        require_admin(actor)
        source = self.get_package(package_id)
        data = PackageCreate.model_validate(
            {
                **source.model_dump(include=set(PackageCreate.model_fields)),
                "name": name or f"{source.name} (Copy)",
                "status": PackageStatus.DRAFT,
            }
        )
        duplicate = self.create_package(data, actor)
        logger.info("Duplicated package %s as %s", package_id, duplicate.package_id)
        return duplicate

    # Internals

    def _get_for_write(self, package_id: str, expected_version: int) -> Package:
        current = self.get_package(package_id)
        if current.version != expected_version:
            raise self._conflict(package_id, expected_version, current.version)
        return current

    def _conflict(
        self,
        package_id: str,
        expected_version: int,
        current_version: int | None = None,
    ) -> QuoteEngineError:
        details: dict[str, object] = {
            "package_id": package_id,
            "expected_version": expected_version,
        }
        if current_version is not None:
            details["current_version"] = current_version
        log_package_operation(
            logger,
            "save_package",
            package_id=package_id,
            version=expected_version,
            error="version conflict",
        )
        return QuoteEngineError(ErrorCode.VERSION_CONFLICT, details)

    def _commit(
        self,
        package: Package,
        expected_version: int | None,
        actor: Actor,
        reason: str,
        action: str,
    ) -> None:
        """Store a package with compare-and-swap, then record and audit it."""
        if not self.db.put_versioned(
            self.TABLE, to_item(package), "package_id", expected_version
        ):
            raise self._conflict(package.package_id, expected_version or 0)

        self.history.record_version(
            package.package_id,
            EntityType.PACKAGE,
            package.version,
            package.snapshot(),
            actor,
            reason=reason,
        )
        self.audit.log_action(
            actor,
            action,
            EntityType.PACKAGE,
            package.package_id,
            details={"version": package.version, "status": package.status.value},
        )
        log_package_operation(
            logger,
            action.lower(),
            package_id=package.package_id,
            actor_id=actor.id,
            version=package.version,
        )
