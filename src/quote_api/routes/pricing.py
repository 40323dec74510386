"""Pricing endpoint for resolving a package price.

All amounts are in minor units of the package currency (e.g. 10000 = 100.00).
"""

from fastapi import APIRouter, Depends

from quote_api.dependencies import get_pricing_service
from quote_api.models.pricing import ResolvePriceRequest
from quote_engine.models import OnRequestResult, PriceResult
from quote_engine.services.pricing import PricingService

router = APIRouter(tags=["pricing"])


@router.post(
    "/pricing/resolve",
    summary="Resolve a package price",
    description="""
Resolve the price of a package for a group size, stay length and arrival date.

The tier is the first group size tier containing the number of people. The
period is the narrowest special period containing the arrival date (the one
defined last on equal widths), otherwise the month period of the arrival date.

**Notes:**
- `total_price` is always `price_per_person × number_of_people`
- `price` is a deprecated alias of `total_price`
- A cell priced ON_REQUEST returns `is_on_request: true` without amounts
""",
    response_description="Resolved price or on-request marker",
    response_model=PriceResult | OnRequestResult,
    responses={
        200: {
            "description": "Price resolved",
            "content": {
                "application/json": {
                    "example": {
                        "is_on_request": False,
                        "price_per_person": 10000,
                        "total_price": 80000,
                        "price": 80000,
                        "tier": {
                            "index": 0,
                            "label": "6-11 People",
                            "min_people": 6,
                            "max_people": 11,
                        },
                        "period": {
                            "label": "January",
                            "period_type": "month",
                            "start_date": None,
                            "end_date": None,
                        },
                        "number_of_people": 8,
                        "nights": 2,
                        "currency": "EUR",
                    }
                }
            },
        },
        400: {"description": "No price for these parameters (see error_code)"},
        404: {"description": "Package not found"},
    },
)
async def resolve_package_price(
    body: ResolvePriceRequest,
    service: PricingService = Depends(get_pricing_service),
) -> PriceResult | OnRequestResult:
    """Resolve a price without changing anything."""
    return service.resolve_for_package(
        body.package_id,
        body.number_of_people,
        body.number_of_nights,
        body.arrival_date,
    )
