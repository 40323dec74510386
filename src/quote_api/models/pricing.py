"""API models for price resolution."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class ResolvePriceRequest(BaseModel):
    """Resolve a package price for a group, stay length and arrival date."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "package_id": "PKG-1A2B3C4D5E6F",
                    "number_of_people": 8,
                    "number_of_nights": 2,
                    "arrival_date": "2025-01-15",
                }
            ]
        },
    )

    package_id: str = Field(..., description="Package to price", examples=["PKG-1A2B3C4D5E6F"])
    number_of_people: int = Field(
        ...,
        ge=1,
        description="Group size, selects the tier",
        examples=[8],
    )
    number_of_nights: int = Field(
        ...,
        ge=1,
        description="Stay length, must be one of the package's duration options",
        examples=[2],
    )
    arrival_date: dt.date = Field(
        ...,
        description="Arrival date (YYYY-MM-DD), selects the pricing period",
        examples=["2025-01-15"],
    )
