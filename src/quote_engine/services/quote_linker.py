"""Quote linker: embed a resolved package price into a quote.

These functions are pure. They compute new quote fields and leave
persistence, version bumps and price history to QuoteService.
"""

import datetime as dt

from quote_engine.models import (
    ErrorCode,
    LinkedPackage,
    Package,
    PriceSyncStatus,
    Quote,
    QuoteEngineError,
    SelectedTier,
)

from .pricing import resolve_price


def link_package(
    quote: Quote,
    package: Package,
    number_of_people: int,
    number_of_nights: int,
    arrival_date: dt.date,
    now: dt.datetime | None = None,
) -> LinkedPackage:
    """Resolve a package price and build the snapshot to store on a quote.

    Does not change the quote's total_price, price_history or version.

    Args:
        quote: Quote being linked
        package: Package snapshot to link
        number_of_people: Group size to price
        number_of_nights: Stay length to price
        arrival_date: Arrival date to price
        now: Link time (defaults to the current UTC time)

    Returns:
        LinkedPackage snapshot

    Raises:
        QuoteEngineError: PACKAGE_INACTIVE, PRICE_ON_REQUEST or any
            resolver error
    """
    if not package.is_active:
        raise QuoteEngineError(
            ErrorCode.PACKAGE_INACTIVE,
            {
                "quote_id": quote.quote_id,
                "package_id": package.package_id,
                "status": package.status.value,
            },
        )

    result = resolve_price(package, number_of_people, number_of_nights, arrival_date)
    if result.is_on_request:
        raise QuoteEngineError(
            ErrorCode.PRICE_ON_REQUEST,
            {
                "quote_id": quote.quote_id,
                "package_id": package.package_id,
                "tier": result.tier.label,
                "period": result.period.label,
                "nights": number_of_nights,
            },
        )

    return LinkedPackage(
        package_id=package.package_id,
        package_name=package.name,
        package_version=package.version,
        selected_tier=SelectedTier(
            tier_index=result.tier.index, tier_label=result.tier.label
        ),
        selected_nights=number_of_nights,
        selected_period=result.period.label,
        number_of_people=number_of_people,
        arrival_date=arrival_date,
        calculated_price=result.total_price,
        custom_price_applied=False,
        last_recalculated_at=now or dt.datetime.now(dt.UTC),
    )


def unlink_package(quote: Quote) -> Quote:
    """Copy of the quote with no linked package.

    total_price and price_history are left as they are; the quote is
    priced manually from here on.
    """
    return quote.model_copy(update={"linked_package": None})


def price_sync_status(quote: Quote, package: Package | None) -> PriceSyncStatus:
    """Whether a quote's price still reflects its linked package.

    Args:
        quote: Quote to check
        package: Current version of the linked package, or None if it
            no longer exists

    Returns:
        PriceSyncStatus
    """
    linked = quote.linked_package
    if linked is None:
        return PriceSyncStatus.NOT_LINKED
    if linked.custom_price_applied:
        return PriceSyncStatus.CUSTOM
    if package is None or package.version != linked.package_version:
        return PriceSyncStatus.OUT_OF_SYNC
    return PriceSyncStatus.SYNCED
