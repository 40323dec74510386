"""API models for quote endpoints."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from quote_engine.models import QuoteUpdate

from .common import VersionedRequest


class QuoteUpdateRequest(QuoteUpdate, VersionedRequest):
    """Partial quote update. Only include fields that should change."""


class LinkPackageRequest(VersionedRequest):
    """Link a quote to a package price.

    Group size, nights and arrival date default to the quote's own values.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "package_id": "PKG-1A2B3C4D5E6F",
                    "expected_version": 1,
                    "apply_price": True,
                }
            ]
        },
    )

    package_id: str = Field(..., examples=["PKG-1A2B3C4D5E6F"])
    number_of_people: int | None = Field(default=None, ge=1, le=100)
    number_of_nights: int | None = Field(default=None, ge=1, le=30)
    arrival_date: dt.date | None = None
    apply_price: bool = Field(
        default=False,
        description="Also set the quote's total price to the calculated price",
    )


class ApplyRecalculationRequest(VersionedRequest):
    """Commit a recalculated price an operator has approved."""

    new_price: int = Field(
        ...,
        ge=0,
        description="Approved total price in minor currency units",
        examples=[65000],
    )


class EmailDispatchRequest(BaseModel):
    """Outcome of sending the quote email, reported by the mail collaborator."""

    success: bool
    message_id: str | None = Field(default=None, max_length=200)
    error: str | None = Field(default=None, max_length=1000)
