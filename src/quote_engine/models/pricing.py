"""Results of resolving a price from a package's pricing matrix."""

import datetime as dt
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .enums import Currency, PeriodType


class TierSelection(BaseModel):
    """The group size tier chosen for a number of people."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    label: str
    min_people: int
    max_people: int


class PeriodSelection(BaseModel):
    """The pricing period chosen for an arrival date."""

    model_config = ConfigDict(frozen=True)

    label: str
    period_type: PeriodType
    start_date: dt.date | None = None
    end_date: dt.date | None = None


class PriceResult(BaseModel):
    """A resolved numeric price.

    All amounts are in minor units of the package currency.
    total_price is always price_per_person * number_of_people.
    """

    model_config = ConfigDict(frozen=True)

    is_on_request: Literal[False] = False
    price_per_person: int = Field(..., ge=0)
    total_price: int = Field(..., ge=0)
    tier: TierSelection
    period: PeriodSelection
    number_of_people: int = Field(..., ge=1)
    nights: int = Field(..., ge=1)
    currency: Currency

    @computed_field  # type: ignore[prop-decorator]
    @property
    def price(self) -> int:
        """Deprecated alias of total_price, kept for old consumers."""
        return self.total_price


class OnRequestResult(BaseModel):
    """The matrix cell exists but holds the ON_REQUEST sentinel."""

    model_config = ConfigDict(frozen=True)

    is_on_request: Literal[True] = True
    tier: TierSelection
    period: PeriodSelection
    number_of_people: int = Field(..., ge=1)
    nights: int = Field(..., ge=1)
    currency: Currency


PriceResolution = Union[PriceResult, OnRequestResult]
