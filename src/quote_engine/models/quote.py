"""Quote models: linked package snapshot, price history and status.

A quote never holds a live reference to a package. Linking embeds a
versioned snapshot of the resolved price; it stays as-is until the quote
is explicitly recalculated or relinked.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    Currency,
    EmailDeliveryStatus,
    PriceChangeReason,
    PriceSyncStatus,
    QuoteStatus,
)

# Changing any of these on a sent quote bumps its version
SIGNIFICANT_FIELDS: tuple[str, ...] = (
    "total_price",
    "whats_included",
    "hotel_name",
    "arrival_date",
)

# Mutable fields captured in version history snapshots
QUOTE_SNAPSHOT_FIELDS: frozenset[str] = frozenset(
    {
        "lead_name",
        "hotel_name",
        "number_of_people",
        "number_of_rooms",
        "number_of_nights",
        "arrival_date",
        "whats_included",
        "transfer_included",
        "activities_included",
        "internal_notes",
        "total_price",
        "currency",
        "status",
        "linked_package",
        "price_history",
        "email_sent",
        "email_sent_at",
        "email_delivery_status",
        "email_message_id",
    }
)


class SelectedTier(BaseModel):
    """Tier recorded on a linked package."""

    tier_index: int = Field(..., ge=0)
    tier_label: str = Field(..., max_length=100)


class LinkedPackage(BaseModel):
    """Snapshot of the package price a quote was linked to."""

    package_id: str
    package_name: str = Field(..., max_length=200)
    package_version: int = Field(..., ge=1)
    selected_tier: SelectedTier
    selected_nights: int = Field(..., ge=1)
    selected_period: str = Field(..., max_length=200)
    number_of_people: int = Field(..., ge=1)
    arrival_date: dt.date
    calculated_price: int = Field(..., ge=0, description="Total price at link time")
    custom_price_applied: bool = False
    last_recalculated_at: dt.datetime | None = None


class PriceHistoryEntry(BaseModel):
    """One append-only entry in a quote's price history."""

    model_config = ConfigDict(frozen=True)

    price: int = Field(..., ge=0)
    reason: PriceChangeReason
    timestamp: dt.datetime
    actor_id: str


class QuoteCreate(BaseModel):
    """Data required to create a draft quote."""

    enquiry_id: str
    lead_name: str = Field(..., min_length=1, max_length=100)
    hotel_name: str = Field(..., min_length=1, max_length=200)
    number_of_people: int = Field(..., ge=1, le=100)
    number_of_rooms: int = Field(default=1, ge=1, le=50)
    number_of_nights: int = Field(..., ge=1, le=30)
    arrival_date: dt.date
    whats_included: str = Field(default="", max_length=2000)
    transfer_included: bool = False
    activities_included: str = Field(default="", max_length=1000)
    internal_notes: str = Field(default="", max_length=1000)
    total_price: int = Field(default=0, ge=0)
    currency: Currency = Currency.GBP


class QuoteUpdate(BaseModel):
    """Partial update of a quote. Unset fields are left unchanged."""

    lead_name: str | None = Field(default=None, min_length=1, max_length=100)
    hotel_name: str | None = Field(default=None, min_length=1, max_length=200)
    number_of_people: int | None = Field(default=None, ge=1, le=100)
    number_of_rooms: int | None = Field(default=None, ge=1, le=50)
    number_of_nights: int | None = Field(default=None, ge=1, le=30)
    arrival_date: dt.date | None = None
    whats_included: str | None = Field(default=None, max_length=2000)
    transfer_included: bool | None = None
    activities_included: str | None = Field(default=None, max_length=1000)
    internal_notes: str | None = Field(default=None, max_length=1000)
    total_price: int | None = Field(default=None, ge=0)


class Quote(QuoteCreate):
    """A customer-facing price proposal tied to an enquiry."""

    quote_id: str
    status: QuoteStatus = QuoteStatus.DRAFT
    version: int = Field(default=1, ge=1, description="Optimistic concurrency token")
    linked_package: LinkedPackage | None = None
    price_history: list[PriceHistoryEntry] = Field(default_factory=list)

    email_sent: bool = False
    email_sent_at: dt.datetime | None = None
    email_delivery_status: EmailDeliveryStatus | None = None
    email_message_id: str | None = None

    created_by: str
    created_at: dt.datetime
    updated_at: dt.datetime

    def snapshot(self) -> dict[str, Any]:
        """Mutable fields of this version, JSON-compatible."""
        return self.model_dump(mode="json", include=set(QUOTE_SNAPSHOT_FIELDS))


class RecalculationPreview(BaseModel):
    """Phase one of a recalculation: the price delta, nothing applied.

    An operator reviews this before approving the new price.
    """

    quote_id: str
    old_price: int
    new_price: int
    price_difference: int
    percentage_change: float
    currency: Currency
    package_id: str
    package_version_changed: bool
    linked_package_version: int
    current_package_version: int
    tier_label: str
    tier_index: int
    period_label: str
    price_per_person: int


class PriceSyncReport(BaseModel):
    """Whether a quote's price still reflects its linked package."""

    quote_id: str
    status: PriceSyncStatus
    linked_package_version: int | None = None
    current_package_version: int | None = None
