"""Pricing resolver: (package, people, nights, arrival date) -> price.

resolve_price() is a pure function over its arguments. It never touches
storage, so it is safe to call concurrently for any number of quotes.

Period selection for an arrival date:
1. Special periods whose date range contains the date. When several
   overlap, the narrowest range wins; equal widths go to the period
   defined last in the matrix.
2. Otherwise the month period named after the date's calendar month.
"""

import datetime as dt
from typing import TYPE_CHECKING

from quote_engine.models import (
    ErrorCode,
    GroupSizeTier,
    OnRequestResult,
    Package,
    PeriodSelection,
    PeriodType,
    PriceResolution,
    PriceResult,
    PricingPeriod,
    QuoteEngineError,
    TierSelection,
)
from quote_engine.models.package import NumericPrice, month_name, month_number

if TYPE_CHECKING:
    from .package_catalog import PackageCatalog


def select_tier(
    tiers: list[GroupSizeTier], number_of_people: int
) -> tuple[int, GroupSizeTier] | None:
    """Return the first tier (and its index) containing number_of_people."""
    for index, tier in enumerate(tiers):
        if tier.contains(number_of_people):
            return index, tier
    return None


def select_period(
    pricing_matrix: list[PricingPeriod], arrival_date: dt.date
) -> PricingPeriod | None:
    """Return the pricing period that applies to an arrival date."""
    specials = [
        (position, period)
        for position, period in enumerate(pricing_matrix)
        if period.covers(arrival_date)
    ]
    if specials:
        # Narrowest range first, then most recently defined
        _, chosen = min(specials, key=lambda item: (item[1].range_days, -item[0]))
        return chosen

    for period in pricing_matrix:
        if (
            period.period_type is PeriodType.MONTH
            and month_number(period.period) == arrival_date.month
        ):
            return period
    return None


def resolve_price(
    package: Package,
    number_of_people: int,
    number_of_nights: int,
    arrival_date: dt.date,
) -> PriceResolution:
    """Resolve the price of a package for a group, stay length and date.

    Args:
        package: Package snapshot to price from
        number_of_people: Group size (must be positive)
        number_of_nights: Stay length, one of the package's duration options
        arrival_date: Arrival date, selects the pricing period

    Returns:
        PriceResult with per-person and total price, or OnRequestResult
        when the matrix cell holds the ON_REQUEST sentinel

    Raises:
        QuoteEngineError: VALIDATION_ERROR, INVALID_DURATION,
            GROUP_SIZE_OUT_OF_RANGE, NO_PRICING_FOR_PERIOD or
            NO_PRICING_FOR_COMBINATION
    """
    if number_of_people < 1:
        raise QuoteEngineError(
            ErrorCode.VALIDATION_ERROR,
            {"field": "number_of_people", "value": number_of_people},
        )

    if number_of_nights not in package.duration_options:
        raise QuoteEngineError(
            ErrorCode.INVALID_DURATION,
            {
                "requested_nights": number_of_nights,
                "available_nights": sorted(package.duration_options),
            },
        )

    selected = select_tier(package.group_size_tiers, number_of_people)
    if selected is None:
        raise QuoteEngineError(
            ErrorCode.GROUP_SIZE_OUT_OF_RANGE,
            {
                "number_of_people": number_of_people,
                "tiers": [tier.label for tier in package.group_size_tiers],
            },
        )
    tier_index, tier = selected

    period = select_period(package.pricing_matrix, arrival_date)
    if period is None:
        raise QuoteEngineError(
            ErrorCode.NO_PRICING_FOR_PERIOD,
            {
                "arrival_date": arrival_date.isoformat(),
                "month": month_name(arrival_date),
            },
        )

    entry = period.find_entry(tier_index, number_of_nights)
    if entry is None:
        raise QuoteEngineError(
            ErrorCode.NO_PRICING_FOR_COMBINATION,
            {
                "tier": tier.label,
                "nights": number_of_nights,
                "period": period.period,
            },
        )

    tier_selection = TierSelection(
        index=tier_index,
        label=tier.label,
        min_people=tier.min_people,
        max_people=tier.max_people,
    )
    period_selection = PeriodSelection(
        label=period.period,
        period_type=period.period_type,
        start_date=period.start_date,
        end_date=period.end_date,
    )

    if not isinstance(entry.price, NumericPrice):
        return OnRequestResult(
            tier=tier_selection,
            period=period_selection,
            number_of_people=number_of_people,
            nights=number_of_nights,
            currency=package.currency,
        )

    return PriceResult(
        price_per_person=entry.price.amount,
        total_price=entry.price.amount * number_of_people,
        tier=tier_selection,
        period=period_selection,
        number_of_people=number_of_people,
        nights=number_of_nights,
        currency=package.currency,
    )


def check_pricing_available(
    package: Package,
    number_of_people: int,
    number_of_nights: int,
    arrival_date: dt.date,
) -> bool:
    """Whether a numeric price can be resolved for these parameters."""
    try:
        result = resolve_price(package, number_of_people, number_of_nights, arrival_date)
    except QuoteEngineError:
        return False
    return not result.is_on_request


class PricingService:
    """Resolves prices for stored packages."""

    def __init__(self, catalog: "PackageCatalog") -> None:
        """Initialize pricing service.

        Args:
            catalog: Package catalog to load packages from
        """
        self.catalog = catalog

    def resolve_for_package(
        self,
        package_id: str,
        number_of_people: int,
        number_of_nights: int,
        arrival_date: dt.date,
    ) -> PriceResolution:
        """Load a package and resolve its price.

        Raises:
            QuoteEngineError: PACKAGE_NOT_FOUND or any resolver error
        """
        package = self.catalog.get_package(package_id)
        return resolve_price(package, number_of_people, number_of_nights, arrival_date)
