"""Package models: group size tiers, durations and the pricing matrix.

A package is priced along three axes: group size tier, number of nights
and calendar period. Each pricing period holds at most one price entry
per (tier index, nights) pair. A price is either a non-negative amount in
minor currency units or the ON_REQUEST sentinel.
"""

import datetime as dt
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import Currency, PackageStatus, PeriodType

MONTH_NAMES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# Legacy string form of the sentinel, still produced by spreadsheet imports
ON_REQUEST_LABEL = "ON_REQUEST"

# Mutable fields captured in version history snapshots
PACKAGE_SNAPSHOT_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "destination",
        "resort",
        "currency",
        "group_size_tiers",
        "duration_options",
        "pricing_matrix",
        "inclusions",
        "accommodation_examples",
        "sales_notes",
        "status",
    }
)


def month_number(label: str) -> int | None:
    """Return the 1-based month number for a month name, or None."""
    normalized = label.strip().lower()
    for index, name in enumerate(MONTH_NAMES, start=1):
        if name.lower() == normalized:
            return index
    return None


def month_name(day: dt.date) -> str:
    """Return the English month name of a date."""
    return MONTH_NAMES[day.month - 1]


class NumericPrice(BaseModel):
    """A published price per person, in minor currency units."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["numeric"] = "numeric"
    amount: int = Field(..., ge=0, description="Price per person in minor units")


class OnRequestPrice(BaseModel):
    """No fixed price published; the quote must be priced manually."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["on_request"] = "on_request"


Price = Annotated[Union[NumericPrice, OnRequestPrice], Field(discriminator="kind")]

ON_REQUEST = OnRequestPrice()


class GroupSizeTier(BaseModel):
    """A named group size bracket, e.g. "6-11 People"."""

    model_config = ConfigDict(strict=True)

    label: str = Field(..., min_length=1, max_length=100)
    min_people: int = Field(..., ge=1)
    max_people: int = Field(..., ge=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> "GroupSizeTier":
        if self.max_people < self.min_people:
            raise ValueError(
                f"Tier '{self.label}': max_people ({self.max_people}) "
                f"must be >= min_people ({self.min_people})"
            )
        return self

    def contains(self, number_of_people: int) -> bool:
        return self.min_people <= number_of_people <= self.max_people


class PriceEntry(BaseModel):
    """Price for one (tier, nights) cell of a pricing period."""

    group_size_tier_index: int = Field(..., ge=0)
    nights: int = Field(..., ge=1)
    price: Price

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_legacy_price(cls, value: Any) -> Any:
        """Accept the legacy "ON_REQUEST" string and bare amounts."""
        if isinstance(value, str) and value.strip().upper() == ON_REQUEST_LABEL:
            return {"kind": "on_request"}
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return {"kind": "numeric", "amount": value}
        if isinstance(value, dict) and "kind" not in value:
            kind = "numeric" if "amount" in value else "on_request"
            return {**value, "kind": kind}
        return value

    @property
    def is_on_request(self) -> bool:
        return isinstance(self.price, OnRequestPrice)


class PricingPeriod(BaseModel):
    """A calendar month or a special date range with its price entries."""

    period: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description='Month name ("January") or special label ("Easter")',
    )
    period_type: PeriodType
    start_date: dt.date | None = Field(
        default=None, description="First day of a special period (inclusive)"
    )
    end_date: dt.date | None = Field(
        default=None, description="Last day of a special period (inclusive)"
    )
    prices: list[PriceEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_period(self) -> "PricingPeriod":
        if self.period_type is PeriodType.SPECIAL:
            if self.start_date is None or self.end_date is None:
                raise ValueError(
                    f"Special period '{self.period}' requires start_date and end_date"
                )
            if self.start_date > self.end_date:
                raise ValueError(
                    f"Special period '{self.period}' ends before it starts"
                )
        elif month_number(self.period) is None:
            raise ValueError(f"Month period '{self.period}' is not a month name")

        seen: set[tuple[int, int]] = set()
        for entry in self.prices:
            key = (entry.group_size_tier_index, entry.nights)
            if key in seen:
                raise ValueError(
                    f"Period '{self.period}' has more than one price for "
                    f"tier {key[0]} / {key[1]} nights"
                )
            seen.add(key)
        return self

    def covers(self, day: dt.date) -> bool:
        """Whether a special period's date range contains the day."""
        if self.period_type is not PeriodType.SPECIAL:
            return False
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= day <= self.end_date

    @property
    def range_days(self) -> int:
        """Length of a special period in days (0 for month periods)."""
        if self.start_date is None or self.end_date is None:
            return 0
        return (self.end_date - self.start_date).days + 1

    def find_entry(self, tier_index: int, nights: int) -> PriceEntry | None:
        for entry in self.prices:
            if entry.group_size_tier_index == tier_index and entry.nights == nights:
                return entry
        return None


class Inclusion(BaseModel):
    """Something included in the package price."""

    text: str = Field(..., min_length=1)
    category: Literal["transfer", "accommodation", "activity", "service", "other"] = (
        "other"
    )


def validate_pricing_structure(
    tiers: list[GroupSizeTier],
    duration_options: list[int],
    pricing_matrix: list[PricingPeriod],
) -> None:
    """Check cross-field invariants of a pricing definition.

    Raises:
        ValueError: If tiers overlap or are out of order, or a price entry
            references an unknown tier or duration.
    """
    for previous, current in zip(tiers, tiers[1:]):
        if current.min_people <= previous.max_people:
            raise ValueError(
                f"Group size tiers '{previous.label}' and '{current.label}' "
                "overlap or are out of order"
            )

    if any(nights <= 0 for nights in duration_options):
        raise ValueError("Duration options must be positive")
    if len(set(duration_options)) != len(duration_options):
        raise ValueError("Duration options must be unique")

    durations = set(duration_options)
    for period in pricing_matrix:
        for entry in period.prices:
            if entry.group_size_tier_index >= len(tiers):
                raise ValueError(
                    f"Period '{period.period}' references unknown tier index "
                    f"{entry.group_size_tier_index}"
                )
            if entry.nights not in durations:
                raise ValueError(
                    f"Period '{period.period}' references {entry.nights} nights, "
                    f"which is not a duration option"
                )


class PackageBase(BaseModel):
    """Fields shared by package creation and stored packages."""

    name: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=200)
    resort: str = Field(..., min_length=1, max_length=200)
    currency: Currency = Currency.EUR
    group_size_tiers: list[GroupSizeTier] = Field(..., min_length=1, max_length=10)
    duration_options: list[int] = Field(..., min_length=1)
    pricing_matrix: list[PricingPeriod] = Field(..., min_length=1)
    inclusions: list[Inclusion] = Field(default_factory=list)
    accommodation_examples: list[str] = Field(default_factory=list)
    sales_notes: str = ""

    @model_validator(mode="after")
    def _check_pricing_structure(self) -> "PackageBase":
        validate_pricing_structure(
            self.group_size_tiers, self.duration_options, self.pricing_matrix
        )
        return self


class PackageCreate(PackageBase):
    """Data required to create a package."""

    status: PackageStatus = PackageStatus.DRAFT


class PackageUpdate(BaseModel):
    """Partial update of a package. Unset fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    destination: str | None = Field(default=None, min_length=1, max_length=200)
    resort: str | None = Field(default=None, min_length=1, max_length=200)
    currency: Currency | None = None
    group_size_tiers: list[GroupSizeTier] | None = None
    duration_options: list[int] | None = None
    pricing_matrix: list[PricingPeriod] | None = None
    inclusions: list[Inclusion] | None = None
    accommodation_examples: list[str] | None = None
    sales_notes: str | None = None


class Package(PackageBase):
    """A sellable destination offer with a versioned pricing matrix."""

    package_id: str = Field(..., description="Unique package ID")
    status: PackageStatus = PackageStatus.DRAFT
    version: int = Field(default=1, ge=1, description="Optimistic concurrency token")
    created_by: str
    last_modified_by: str
    created_at: dt.datetime
    updated_at: dt.datetime

    @property
    def is_active(self) -> bool:
        return self.status is PackageStatus.ACTIVE

    def snapshot(self) -> dict[str, Any]:
        """Mutable fields of this version, JSON-compatible."""
        return self.model_dump(mode="json", include=set(PACKAGE_SNAPSHOT_FIELDS))
