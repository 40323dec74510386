"""Quote service: versioned mutations, price history and status.

Status transitions:

    draft   -> sent      email dispatched successfully
    sent    -> updated   significant field changed (version + 1)
    updated -> updated   significant field changed (version + 1)
    updated -> sent      updated quote re-sent
    sent | updated -> archived

Significant fields are total_price, whats_included, hotel_name and
arrival_date. Edits while in draft never bump the version. Archived
quotes accept no further mutation.

Price recalculation is split in two: compute_recalculation() previews the
delta without writing anything, apply_recalculation() commits a price an
operator has approved. Nothing in this service applies a recalculated
price on its own.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Attr

from quote_engine.models import (
    SIGNIFICANT_FIELDS,
    Actor,
    EmailDeliveryStatus,
    EntityType,
    ErrorCode,
    Package,
    PriceChangeReason,
    PriceHistoryEntry,
    PriceSyncReport,
    Quote,
    QuoteCreate,
    QuoteEngineError,
    QuoteStatus,
    QuoteUpdate,
    RecalculationPreview,
)
from quote_engine.utils.logging import get_logger, log_quote_operation

from .authorization import require_admin
from .dynamodb import from_item, to_item
from .pricing import resolve_price
from .quote_linker import link_package, price_sync_status, unlink_package

if TYPE_CHECKING:
    from .audit_log import AuditLogger
    from .dynamodb import DynamoDBService
    from .package_catalog import PackageCatalog
    from .version_history import VersionHistoryService

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[QuoteStatus, frozenset[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT}),
    QuoteStatus.SENT: frozenset({QuoteStatus.UPDATED, QuoteStatus.ARCHIVED}),
    QuoteStatus.UPDATED: frozenset(
        {QuoteStatus.SENT, QuoteStatus.UPDATED, QuoteStatus.ARCHIVED}
    ),
    QuoteStatus.ARCHIVED: frozenset(),
}

# Statuses in which a significant change bumps the version
VERSIONED_STATUSES = frozenset({QuoteStatus.SENT, QuoteStatus.UPDATED})


def check_transition(current: QuoteStatus, target: QuoteStatus) -> None:
    """Validate a status transition.

    Raises:
        QuoteEngineError: INVALID_STATUS_TRANSITION
    """
    if target not in ALLOWED_TRANSITIONS[current]:
        raise QuoteEngineError(
            ErrorCode.INVALID_STATUS_TRANSITION,
            {"from_status": current.value, "to_status": target.value},
        )


def percentage_change(old_price: int, new_price: int) -> float:
    """Relative price change in percent, rounded to two decimals."""
    if old_price == 0:
        return 0.0
    return round((new_price - old_price) / old_price * 100, 2)


def new_quote_id() -> str:
    return f"QTE-{uuid.uuid4().hex[:12].upper()}"


class QuoteService:
    """Service for quote mutations under optimistic versioning."""

    TABLE = "quotes"

    def __init__(
        self,
        db: "DynamoDBService",
        catalog: "PackageCatalog",
        history: "VersionHistoryService",
        audit: "AuditLogger",
    ) -> None:
        """Initialize quote service.

        Args:
            db: DynamoDB service instance
            catalog: Package catalog used for linking and recalculation
            history: Version history service
            audit: Audit log sink
        """
        self.db = db
        self.catalog = catalog
        self.history = history
        self.audit = audit

    # Reads

    def get_quote(self, quote_id: str) -> Quote:
        """Get a quote by ID.

        Raises:
            QuoteEngineError: QUOTE_NOT_FOUND
        """
        item = self.db.get_item(self.TABLE, {"quote_id": quote_id})
        if not item:
            raise QuoteEngineError(ErrorCode.QUOTE_NOT_FOUND, {"quote_id": quote_id})
        return from_item(Quote, item)

    def list_quotes(
        self,
        enquiry_id: str | None = None,
        status: QuoteStatus | None = None,
    ) -> list[Quote]:
        """List quotes, newest first.

        Args:
            enquiry_id: Only quotes for this enquiry
            status: Only quotes with this status

        Returns:
            List of Quote
        """
        condition = None
        if enquiry_id:
            condition = Attr("enquiry_id").eq(enquiry_id)
        if status is not None:
            status_condition = Attr("status").eq(status.value)
            condition = status_condition if condition is None else condition & status_condition

        items = self.db.scan(self.TABLE, filter_expression=condition)
        quotes = [from_item(Quote, item) for item in items]
        return sorted(quotes, key=lambda q: q.created_at, reverse=True)

    def get_price_sync_report(self, quote_id: str) -> PriceSyncReport:
        """Report whether a quote's price still reflects its linked package."""
        quote = self.get_quote(quote_id)
        package = self._find_linked_package(quote)
        return PriceSyncReport(
            quote_id=quote_id,
            status=price_sync_status(quote, package),
            linked_package_version=(
                quote.linked_package.package_version if quote.linked_package else None
            ),
            current_package_version=package.version if package else None,
        )

    # Writes

    def create_quote(self, data: QuoteCreate, actor: Actor) -> Quote:
        """Create a draft quote at version 1.

        Raises:
            QuoteEngineError: UNAUTHORIZED
        """
        require_admin(actor)
        now = dt.datetime.now(dt.UTC)
        quote = Quote(
            **data.model_dump(),
            quote_id=new_quote_id(),
            status=QuoteStatus.DRAFT,
            version=1,
            created_by=actor.id,
            created_at=now,
            updated_at=now,
        )
        self._commit(
            quote,
            None,
            actor,
            reason="created",
            action="CREATE_QUOTE",
            details={"enquiry_id": quote.enquiry_id},
        )
        return quote

    def update_quote(
        self,
        quote_id: str,
        changes: QuoteUpdate,
        actor: Actor,
        expected_version: int,
    ) -> Quote:
        """Apply a partial update to a quote.

        A changed total_price is a manual override: it appends a
        manual_override price history entry and marks the linked package
        price as custom. In sent/updated, a change to a significant field
        bumps the version and moves the quote to updated.

        Raises:
            QuoteEngineError: UNAUTHORIZED, QUOTE_NOT_FOUND, VERSION_CONFLICT,
                INVALID_STATUS_TRANSITION (archived)
        """
        require_admin(actor)
        try:
            current = self._get_for_write(quote_id, expected_version)

            requested = changes.model_dump(exclude_unset=True, exclude_none=True)
            updates: dict[str, Any] = {
                field: value
                for field, value in requested.items()
                if getattr(current, field) != value
            }
            if not updates:
                return current

            now = dt.datetime.now(dt.UTC)
            if "total_price" in updates:
                updates["price_history"] = [
                    *current.price_history,
                    PriceHistoryEntry(
                        price=updates["total_price"],
                        reason=PriceChangeReason.MANUAL_OVERRIDE,
                        timestamp=now,
                        actor_id=actor.id,
                    ),
                ]
                if current.linked_package is not None:
                    updates["linked_package"] = current.linked_package.model_copy(
                        update={"custom_price_applied": True}
                    )

            significant = sorted(set(updates) & set(SIGNIFICANT_FIELDS))
            updates.update(self._significant_change(current, bool(significant)))
            updates["updated_at"] = now
            updated = current.model_copy(update=updates)
        except QuoteEngineError as e:
            self._audit_failure(actor, "UPDATE_QUOTE", quote_id, e)
            raise

        self._commit(
            updated,
            current,
            actor,
            reason="significant change" if significant else "updated",
            action="UPDATE_QUOTE",
            details={
                "changed_fields": sorted(set(requested) & set(updates)),
                "significant_fields": significant,
                "version": updated.version,
            },
        )
        return updated

    def link_quote_to_package(
        self,
        quote_id: str,
        package_id: str,
        actor: Actor,
        expected_version: int,
        number_of_people: int | None = None,
        number_of_nights: int | None = None,
        arrival_date: dt.date | None = None,
        apply_price: bool = False,
    ) -> Quote:
        """Link a quote to a package price.

        Group size, nights and arrival date default to the quote's own
        values; overrides are written onto the quote so that later
        recalculations price the same selection. A changed arrival date is a
        significant change. Without apply_price only the linked package
        snapshot is stored; with it the quote's total_price is set to the
        calculated price and a package_selection entry is appended to its
        price history.

        Raises:
            QuoteEngineError: UNAUTHORIZED, QUOTE_NOT_FOUND, PACKAGE_NOT_FOUND,
                PACKAGE_INACTIVE, PRICE_ON_REQUEST, VERSION_CONFLICT,
                INVALID_STATUS_TRANSITION (archived) or any resolver error
        """
        require_admin(actor)
        try:
            current = self._get_for_write(quote_id, expected_version)
            package = self.catalog.get_package(package_id)
            now = dt.datetime.now(dt.UTC)
            selection: dict[str, Any] = {
                "number_of_people": number_of_people or current.number_of_people,
                "number_of_nights": number_of_nights or current.number_of_nights,
                "arrival_date": arrival_date or current.arrival_date,
            }
            linked = link_package(current, package, **selection, now=now)
        except QuoteEngineError as e:
            self._audit_failure(
                actor, "LINK_PACKAGE", quote_id, e, {"package_id": package_id}
            )
            raise

        # Overrides are copied onto the quote
        updates: dict[str, Any] = {
            field: value
            for field, value in selection.items()
            if getattr(current, field) != value
        }
        updates["linked_package"] = linked
        updates["updated_at"] = now
        if apply_price:
            updates["price_history"] = [
                *current.price_history,
                PriceHistoryEntry(
                    price=linked.calculated_price,
                    reason=PriceChangeReason.PACKAGE_SELECTION,
                    timestamp=now,
                    actor_id=actor.id,
                ),
            ]
            if linked.calculated_price != current.total_price:
                updates["total_price"] = linked.calculated_price
        updates.update(
            self._significant_change(current, bool(set(updates) & set(SIGNIFICANT_FIELDS)))
        )
        updated = current.model_copy(update=updates)

        self._commit(
            updated,
            current,
            actor,
            reason="package linked",
            action="LINK_PACKAGE",
            details={
                "package_id": package_id,
                "package_version": linked.package_version,
                "tier": linked.selected_tier.tier_label,
                "period": linked.selected_period,
                "calculated_price": linked.calculated_price,
                "price_applied": apply_price,
            },
        )
        return updated

    def unlink_quote_package(
        self,
        quote_id: str,
        actor: Actor,
        expected_version: int,
    ) -> Quote:
        """Remove a quote's linked package, keeping its price and history.

        Raises:
            QuoteEngineError: UNAUTHORIZED, QUOTE_NOT_FOUND, NO_LINKED_PACKAGE,
                VERSION_CONFLICT, INVALID_STATUS_TRANSITION (archived)
        """
        require_admin(actor)
        try:
            current = self._get_for_write(quote_id, expected_version)
            if current.linked_package is None:
                raise QuoteEngineError(ErrorCode.NO_LINKED_PACKAGE, {"quote_id": quote_id})
        except QuoteEngineError as e:
            self._audit_failure(actor, "UNLINK_PACKAGE", quote_id, e)
            raise

        previous_package_id = current.linked_package.package_id
        updated = unlink_package(current).model_copy(
            update={"updated_at": dt.datetime.now(dt.UTC)}
        )
        self._commit(
            updated,
            current,
            actor,
            reason="package unlinked",
            action="UNLINK_PACKAGE",
            details={"package_id": previous_package_id},
        )
        return updated

    def compute_recalculation(self, quote_id: str, actor: Actor) -> RecalculationPreview:
        """Preview a quote's price against its linked package's current pricing.

        Re-runs the resolver with the quote's current group size, nights and
        arrival date. Nothing is written except the audit event.

        Raises:
            QuoteEngineError: UNAUTHORIZED, QUOTE_NOT_FOUND, NO_LINKED_PACKAGE,
                PACKAGE_NOT_FOUND, PACKAGE_INACTIVE, PRICE_ON_REQUEST or any
                resolver error
        """
        require_admin(actor)
        try:
            quote = self.get_quote(quote_id)
            linked = quote.linked_package
            if linked is None:
                raise QuoteEngineError(ErrorCode.NO_LINKED_PACKAGE, {"quote_id": quote_id})

            package = self.catalog.get_package(linked.package_id)
            if not package.is_active:
                raise QuoteEngineError(
                    ErrorCode.PACKAGE_INACTIVE,
                    {"package_id": package.package_id, "status": package.status.value},
                )

            result = resolve_price(
                package, quote.number_of_people, quote.number_of_nights, quote.arrival_date
            )
            if result.is_on_request:
                raise QuoteEngineError(
                    ErrorCode.PRICE_ON_REQUEST,
                    {
                        "package_id": package.package_id,
                        "tier": result.tier.label,
                        "period": result.period.label,
                    },
                )
        except QuoteEngineError as e:
            self._audit_failure(actor, "RECALCULATE_PRICE", quote_id, e)
            raise

        preview = RecalculationPreview(
            quote_id=quote_id,
            old_price=quote.total_price,
            new_price=result.total_price,
            price_difference=result.total_price - quote.total_price,
            percentage_change=percentage_change(quote.total_price, result.total_price),
            currency=quote.currency,
            package_id=package.package_id,
            package_version_changed=package.version != linked.package_version,
            linked_package_version=linked.package_version,
            current_package_version=package.version,
            tier_label=result.tier.label,
            tier_index=result.tier.index,
            period_label=result.period.label,
            price_per_person=result.price_per_person,
        )
        self.audit.log_action(
            actor,
            "RECALCULATE_PRICE",
            EntityType.QUOTE,
            quote_id,
            details=preview.model_dump(mode="json", exclude={"quote_id"}),
        )
        log_quote_operation(
            logger,
            "compute_recalculation",
            quote_id=quote_id,
            actor_id=actor.id,
            old_price=preview.old_price,
            new_price=preview.new_price,
        )
        return preview

    def apply_recalculation(
        self,
        quote_id: str,
        new_price: int,
        actor: Actor,
        expected_version: int,
    ) -> Quote:
        """Commit an operator-approved recalculated price.

        Always appends exactly one recalculation price history entry and
        bumps the version by one. A sent quote moves to updated.

        Raises:
            QuoteEngineError: UNAUTHORIZED, QUOTE_NOT_FOUND, NO_LINKED_PACKAGE,
                VALIDATION_ERROR, VERSION_CONFLICT,
                INVALID_STATUS_TRANSITION (archived)
        """
        require_admin(actor)
        try:
            if new_price < 0:
                raise QuoteEngineError(
                    ErrorCode.VALIDATION_ERROR,
                    {"field": "new_price", "value": new_price},
                )
            current = self._get_for_write(quote_id, expected_version)
            linked = current.linked_package
            if linked is None:
                raise QuoteEngineError(ErrorCode.NO_LINKED_PACKAGE, {"quote_id": quote_id})
            package = self._find_linked_package(current)
        except QuoteEngineError as e:
            self._audit_failure(
                actor, "APPLY_RECALCULATED_PRICE", quote_id, e, {"new_price": new_price}
            )
            raise

        now = dt.datetime.now(dt.UTC)
        status = current.status
        if status is QuoteStatus.SENT:
            check_transition(status, QuoteStatus.UPDATED)
            status = QuoteStatus.UPDATED

        updated = current.model_copy(
            update={
                "total_price": new_price,
                "price_history": [
                    *current.price_history,
                    PriceHistoryEntry(
                        price=new_price,
                        reason=PriceChangeReason.RECALCULATION,
                        timestamp=now,
                        actor_id=actor.id,
                    ),
                ],
                "linked_package": linked.model_copy(
                    update={
                        "calculated_price": new_price,
                        "last_recalculated_at": now,
                        "custom_price_applied": False,
                        "package_version": (
                            package.version if package else linked.package_version
                        ),
                    }
                ),
                "status": status,
                "version": current.version + 1,
                "updated_at": now,
            }
        )
        self._commit(
            updated,
            current,
            actor,
            reason="recalculation",
            action="APPLY_RECALCULATED_PRICE",
            details={
                "old_price": current.total_price,
                "new_price": new_price,
                "price_difference": new_price - current.total_price,
                "package_id": linked.package_id,
                "version": updated.version,
            },
        )
        return updated

    def record_email_dispatch(
        self,
        quote_id: str,
        actor: Actor,
        success: bool,
        message_id: str | None = None,
        error: str | None = None,
    ) -> Quote:
        """Record the outcome of sending a quote email.

        On success a draft or updated quote moves to sent; a quote that is
        already sent is rejected. On failure only the delivery
        status is recorded and the quote keeps its status; the email is not
        retried here.

        Raises:
            QuoteEngineError: UNAUTHORIZED, QUOTE_NOT_FOUND, VERSION_CONFLICT,
                INVALID_STATUS_TRANSITION
        """
        require_admin(actor)
        try:
            current = self._get_for_write(quote_id, None)
            if success:
                check_transition(current.status, QuoteStatus.SENT)
        except QuoteEngineError as e:
            self._audit_failure(actor, "STATUS_CHANGE", quote_id, e)
            raise

        now = dt.datetime.now(dt.UTC)
        if success:
            updated = current.model_copy(
                update={
                    "status": QuoteStatus.SENT,
                    "email_sent": True,
                    "email_sent_at": now,
                    "email_delivery_status": EmailDeliveryStatus.DELIVERED,
                    "email_message_id": message_id,
                    "updated_at": now,
                }
            )
        else:
            updated = current.model_copy(
                update={
                    "email_delivery_status": EmailDeliveryStatus.FAILED,
                    "updated_at": now,
                }
            )

        self._commit(
            updated,
            current,
            actor,
            reason="email sent" if success else "email failed",
            action="STATUS_CHANGE",
            details={
                "from_status": current.status.value,
                "to_status": updated.status.value,
                "email_message_id": message_id,
            },
            success=success,
            error_message=error,
        )
        return updated

    def archive_quote(self, quote_id: str, actor: Actor, expected_version: int) -> Quote:
        """Archive a sent or updated quote.

        Raises:
            QuoteEngineError: UNAUTHORIZED, QUOTE_NOT_FOUND, VERSION_CONFLICT,
                INVALID_STATUS_TRANSITION
        """
        require_admin(actor)
        try:
            current = self._get_for_write(quote_id, expected_version)
            check_transition(current.status, QuoteStatus.ARCHIVED)
        except QuoteEngineError as e:
            self._audit_failure(actor, "STATUS_CHANGE", quote_id, e)
            raise

        updated = current.model_copy(
            update={"status": QuoteStatus.ARCHIVED, "updated_at": dt.datetime.now(dt.UTC)}
        )
        self._commit(
            updated,
            current,
            actor,
            reason="archived",
            action="STATUS_CHANGE",
            details={"from_status": current.status.value, "to_status": "archived"},
        )
        return updated

    # Internals

    def _get_for_write(self, quote_id: str, expected_version: int | None) -> Quote:
        current = self.get_quote(quote_id)
        if expected_version is not None and current.version != expected_version:
            raise QuoteEngineError(
                ErrorCode.VERSION_CONFLICT,
                {
                    "quote_id": quote_id,
                    "expected_version": expected_version,
                    "current_version": current.version,
                },
            )
        if current.status is QuoteStatus.ARCHIVED:
            raise QuoteEngineError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                {"quote_id": quote_id, "from_status": current.status.value},
            )
        return current

    def _significant_change(self, current: Quote, significant: bool) -> dict[str, Any]:
        """Status and version updates for a change to a quote."""
        if not significant or current.status not in VERSIONED_STATUSES:
            return {}
        check_transition(current.status, QuoteStatus.UPDATED)
        return {"status": QuoteStatus.UPDATED, "version": current.version + 1}

    def _find_linked_package(self, quote: Quote) -> Package | None:
        """Current version of the quote's linked package, if it still exists."""
        if quote.linked_package is None:
            return None
        try:
            return self.catalog.get_package(quote.linked_package.package_id)
        except QuoteEngineError as e:
            if e.code is not ErrorCode.PACKAGE_NOT_FOUND:
                raise
            return None

    def _audit_failure(
        self,
        actor: Actor,
        action: str,
        quote_id: str,
        error: QuoteEngineError,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.audit.log_action(
            actor,
            action,
            EntityType.QUOTE,
            quote_id,
            details={**(details or {}), "error_code": error.code.value},
            success=False,
            error_message=error.message,
        )
        log_quote_operation(
            logger,
            action.lower(),
            quote_id=quote_id,
            actor_id=actor.id,
            error=error.code.value,
        )

    def _commit(
        self,
        quote: Quote,
        previous: Quote | None,
        actor: Actor,
        reason: str,
        action: str,
        details: dict[str, Any],
        success: bool = True,
        error_message: str | None = None,
    ) -> None:
        """Store a quote with compare-and-swap, then record and audit it.

        Writes that keep the version also condition on the stored
        updated_at, so concurrent edits to a draft still conflict.
        """
        item = to_item(quote)
        if quote.linked_package is not None:
            item["linked_package_id"] = quote.linked_package.package_id

        expected_version = previous.version if previous else None
        expected_attributes = (
            {"updated_at": to_item(previous)["updated_at"]} if previous else None
        )
        if not self.db.put_versioned(
            self.TABLE, item, "quote_id", expected_version, expected_attributes
        ):
            error = QuoteEngineError(
                ErrorCode.VERSION_CONFLICT,
                {"quote_id": quote.quote_id, "expected_version": expected_version},
            )
            self._audit_failure(actor, action, quote.quote_id, error)
            raise error

        self.history.record_version(
            quote.quote_id,
            EntityType.QUOTE,
            quote.version,
            quote.snapshot(),
            actor,
            reason=reason,
        )
        self.audit.log_action(
            actor,
            action,
            EntityType.QUOTE,
            quote.quote_id,
            details=details,
            success=success,
            error_message=error_message,
        )
        log_quote_operation(
            logger,
            action.lower(),
            quote_id=quote.quote_id,
            actor_id=actor.id,
            version=quote.version,
            status=quote.status.value,
        )
