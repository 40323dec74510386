"""Quote endpoints.

Provides REST endpoints for:
- Creating, listing, reading and updating quotes
- Linking and unlinking a package price
- Two-phase price recalculation (preview, then apply)
- Email dispatch outcome and archiving
- Version history, comparison, audit trail and price sync status

Recalculation never applies a price on its own: POST previews the delta,
PUT commits the price an operator approved.
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from quote_api.dependencies import (
    get_actor,
    get_quote_service,
    get_version_history_service,
)
from quote_api.models.common import VersionedRequest
from quote_api.models.quotes import (
    ApplyRecalculationRequest,
    EmailDispatchRequest,
    LinkPackageRequest,
    QuoteUpdateRequest,
)
from quote_engine.models import (
    Actor,
    AuditTrail,
    FieldChange,
    PriceSyncReport,
    Quote,
    QuoteCreate,
    QuoteStatus,
    QuoteUpdate,
    RecalculationPreview,
    VersionHistoryEntry,
)
from quote_engine.services.quote_tracker import QuoteService
from quote_engine.services.version_history import VersionHistoryService

router = APIRouter(tags=["quotes"])


@router.post(
    "/quotes",
    summary="Create a quote",
    status_code=HTTP_201_CREATED,
    response_model=Quote,
    responses={403: {"description": "Actor is not an admin"}},
)
async def create_quote(
    body: QuoteCreate,
    actor: Actor = Depends(get_actor),
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    """Create a draft quote at version 1."""
    return service.create_quote(body, actor)


@router.get(
    "/quotes",
    summary="List quotes",
    response_model=list[Quote],
)
async def list_quotes(
    enquiry_id: str | None = Query(default=None, description="Filter by enquiry"),
    status: QuoteStatus | None = Query(default=None, description="Filter by status"),
    service: QuoteService = Depends(get_quote_service),
) -> list[Quote]:
    """List quotes, newest first."""
    return service.list_quotes(enquiry_id=enquiry_id, status=status)


@router.get(
    "/quotes/{quote_id}",
    summary="Get a quote",
    response_model=Quote,
    responses={404: {"description": "Quote not found"}},
)
async def get_quote(
    quote_id: str,
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    """Get a quote by ID."""
    return service.get_quote(quote_id)


@router.patch(
    "/quotes/{quote_id}",
    summary="Update a quote",
    description="""
Apply a partial update. Only include fields that should change.

**Versioning:**
- In `sent` or `updated`, a change to `total_price`, `whats_included`,
  `hotel_name` or `arrival_date` bumps the version and moves the quote to
  `updated`
- Edits in `draft` never bump the version
- A changed `total_price` is recorded as a manual override in the price history
""",
    response_model=Quote,
    responses={
        404: {"description": "Quote not found"},
        409: {"description": "Version conflict or quote archived"},
    },
)
async def update_quote(
    quote_id: str,
    body: QuoteUpdateRequest,
    actor: Actor = Depends(get_actor),
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    """Apply a partial update to a quote."""
    fields = body.model_fields_set - {"expected_version"}
    changes = QuoteUpdate(**{name: getattr(body, name) for name in fields})
    return service.update_quote(quote_id, changes, actor, body.expected_version)


@router.post(
    "/quotes/{quote_id}/link",
    summary="Link a package",
    description="""
Link the quote to a package price.

The package must be active and the price must resolve to an amount;
ON_REQUEST prices are rejected with ERR_PRICE_005 and must be entered
manually. With `apply_price` the quote's total price is set to the
calculated price.
""",
    response_model=Quote,
    responses={
        400: {"description": "No price for these parameters (see error_code)"},
        404: {"description": "Quote or package not found"},
        409: {"description": "Version conflict, package inactive or quote archived"},
    },
)
async def link_package(
    quote_id: str,
    body: LinkPackageRequest,
    actor: Actor = Depends(get_actor),
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    """Link a quote to a package price."""
    return service.link_quote_to_package(
        quote_id,
        body.package_id,
        actor,
        expected_version=body.expected_version,
        number_of_people=body.number_of_people,
        number_of_nights=body.number_of_nights,
        arrival_date=body.arrival_date,
        apply_price=body.apply_price,
    )


@router.delete(
    "/quotes/{quote_id}/link",
    summary="Unlink the package",
    response_model=Quote,
    responses={
        404: {"description": "Quote not found"},
        409: {"description": "Version conflict or quote archived"},
    },
)
async def unlink_package(
    quote_id: str,
    expected_version: int = Query(..., ge=1, description="Version last read"),
    actor: Actor = Depends(get_actor),
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    """Remove the linked package, keeping the price and price history."""
    return service.unlink_quote_package(quote_id, actor, expected_version)


@router.post(
    "/quotes/{quote_id}/recalculate-price",
    summary="Preview a recalculated price",
    description="""
Re-price the quote against its linked package's current pricing.

Nothing is changed. Review the difference, then apply it with
`PUT /quotes/{quote_id}/recalculate-price`.
""",
    response_model=RecalculationPreview,
    responses={
        400: {"description": "No linked package or no price (see error_code)"},
        404: {"description": "Quote or package not found"},
        409: {"description": "Package inactive"},
    },
)
async def compute_recalculation(
    quote_id: str,
    actor: Actor = Depends(get_actor),
    service: QuoteService = Depends(get_quote_service),
) -> RecalculationPreview:
    """Preview a quote's price against its package's current pricing.

    Nothing is written to the quote.
    """
    return service.compute_recalculation(quote_id, actor)


@router.put(
    "/quotes/{quote_id}/recalculate-price",
    summary="Apply a recalculated price",
    response_model=Quote,
    responses={
        400: {"description": "No linked package"},
        404: {"description": "Quote not found"},
        409: {"description": "Version conflict or quote archived"},
    },
)
async def apply_recalculation(
    quote_id: str,
    body: ApplyRecalculationRequest,
    actor: Actor = Depends(get_actor),
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    """Commit an approved price; bumps the version by one."""
    return service.apply_recalculation(
        quote_id, body.new_price, actor, body.expected_version
    )


@router.post(
    "/quotes/{quote_id}/email-dispatch",
    summary="Record email dispatch outcome",
    response_model=Quote,
    responses={
        404: {"description": "Quote not found"},
        409: {"description": "Quote archived"},
    },
)
async def record_email_dispatch(
    quote_id: str,
    body: EmailDispatchRequest,
    actor: Actor = Depends(get_actor),
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    """Move the quote to sent on success; record the failure otherwise."""
    return service.record_email_dispatch(
        quote_id,
        actor,
        success=body.success,
        message_id=body.message_id,
        error=body.error,
    )


@router.post(
    "/quotes/{quote_id}/archive",
    summary="Archive a quote",
    response_model=Quote,
    responses={
        404: {"description": "Quote not found"},
        409: {"description": "Version conflict or invalid status"},
    },
)
async def archive_quote(
    quote_id: str,
    body: VersionedRequest,
    actor: Actor = Depends(get_actor),
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    """Archive a sent or updated quote."""
    return service.archive_quote(quote_id, actor, body.expected_version)


@router.get(
    "/quotes/{quote_id}/price-sync",
    summary="Price sync status",
    response_model=PriceSyncReport,
    responses={404: {"description": "Quote not found"}},
)
async def get_price_sync(
    quote_id: str,
    service: QuoteService = Depends(get_quote_service),
) -> PriceSyncReport:
    """Get a quote's price sync status."""
    return service.get_price_sync_report(quote_id)


@router.get(
    "/quotes/{quote_id}/history",
    summary="Quote version history",
    response_model=list[VersionHistoryEntry],
)
async def get_quote_history(
    quote_id: str,
    limit: int = Query(default=50, ge=1, le=100),
    history: VersionHistoryService = Depends(get_version_history_service),
) -> list[VersionHistoryEntry]:
    """Version history entries, newest first."""
    return history.get_history(quote_id, limit)


@router.get(
    "/quotes/{quote_id}/compare",
    summary="Compare two quote versions",
    response_model=list[FieldChange],
    responses={404: {"description": "Version not found"}},
)
async def compare_quote_versions(
    quote_id: str,
    v1: int = Query(..., ge=1, description="Older version"),
    v2: int = Query(..., ge=1, description="Newer version"),
    history: VersionHistoryService = Depends(get_version_history_service),
) -> list[FieldChange]:
    """Field-level changes between two quote versions."""
    return history.compare_versions(quote_id, v1, v2)


@router.get(
    "/quotes/{quote_id}/audit-trail",
    summary="Quote audit trail",
    response_model=AuditTrail,
    responses={404: {"description": "No history for this quote"}},
)
async def get_quote_audit_trail(
    quote_id: str,
    history: VersionHistoryService = Depends(get_version_history_service),
) -> AuditTrail:
    """Get a quote's audit trail."""
    return history.get_audit_trail(quote_id)
