"""Unit tests for package model validation.

Tests verify the pricing definition invariants:
- Tiers ordered and non-overlapping
- Price entries reference a valid tier and a listed duration
- At most one entry per (tier, nights) within a period
- Special periods carry a valid date range; month periods a month name
- Legacy price inputs coerce to the tagged price variant
"""

import copy
import datetime as dt
from typing import Any

import pytest
from pydantic import ValidationError

from quote_engine.models import (
    ErrorCode,
    GroupSizeTier,
    NumericPrice,
    OnRequestPrice,
    PackageCreate,
    PeriodType,
    PriceEntry,
    PricingPeriod,
    QuoteEngineError,
)


class TestPackageValidation:
    """Cross-field validation of a package's pricing definition."""

    def test_valid_definition(self, package_data: dict[str, Any]) -> None:
        package = PackageCreate.model_validate(package_data)

        assert len(package.group_size_tiers) == 2
        assert package.duration_options == [2, 3, 4]

    def test_overlapping_tiers_rejected(self, package_data: dict[str, Any]) -> None:
        data = copy.deepcopy(package_data)
        data["group_size_tiers"][1]["min_people"] = 11

        with pytest.raises(ValidationError, match="overlap or are out of order"):
            PackageCreate.model_validate(data)

    def test_unordered_tiers_rejected(self, package_data: dict[str, Any]) -> None:
        data = copy.deepcopy(package_data)
        data["group_size_tiers"].reverse()

        with pytest.raises(ValidationError):
            PackageCreate.model_validate(data)

    def test_unknown_tier_index_rejected(self, package_data: dict[str, Any]) -> None:
        data = copy.deepcopy(package_data)
        data["pricing_matrix"][0]["prices"].append(
            {"group_size_tier_index": 5, "nights": 2, "price": 100}
        )

        with pytest.raises(ValidationError, match="unknown tier index 5"):
            PackageCreate.model_validate(data)

    def test_nights_not_in_duration_options_rejected(
        self, package_data: dict[str, Any]
    ) -> None:
        data = copy.deepcopy(package_data)
        data["pricing_matrix"][1]["prices"].append(
            {"group_size_tier_index": 0, "nights": 7, "price": 100}
        )

        with pytest.raises(ValidationError, match="not a duration option"):
            PackageCreate.model_validate(data)

    def test_duplicate_entry_rejected(self, package_data: dict[str, Any]) -> None:
        data = copy.deepcopy(package_data)
        data["pricing_matrix"][1]["prices"].append(
            {"group_size_tier_index": 0, "nights": 2, "price": 999}
        )

        with pytest.raises(ValidationError, match="more than one price"):
            PackageCreate.model_validate(data)

    def test_duplicate_durations_rejected(self, package_data: dict[str, Any]) -> None:
        data = copy.deepcopy(package_data)
        data["duration_options"] = [2, 2, 3, 4]

        with pytest.raises(ValidationError, match="unique"):
            PackageCreate.model_validate(data)

    def test_special_period_requires_dates(self, package_data: dict[str, Any]) -> None:
        data = copy.deepcopy(package_data)
        del data["pricing_matrix"][2]["end_date"]

        with pytest.raises(ValidationError, match="requires start_date and end_date"):
            PackageCreate.model_validate(data)

    def test_special_period_must_not_end_before_start(
        self, package_data: dict[str, Any]
    ) -> None:
        data = copy.deepcopy(package_data)
        data["pricing_matrix"][2]["end_date"] = "2025-04-01"

        with pytest.raises(ValidationError, match="ends before it starts"):
            PackageCreate.model_validate(data)

    def test_month_period_requires_month_name(self, package_data: dict[str, Any]) -> None:
        data = copy.deepcopy(package_data)
        data["pricing_matrix"][0]["period"] = "Winter"

        with pytest.raises(ValidationError, match="not a month name"):
            PackageCreate.model_validate(data)

    def test_at_most_ten_tiers(self, package_data: dict[str, Any]) -> None:
        data = copy.deepcopy(package_data)
        data["group_size_tiers"] = [
            {"label": f"{n} People", "min_people": n, "max_people": n}
            for n in range(1, 12)
        ]

        with pytest.raises(ValidationError):
            PackageCreate.model_validate(data)

    def test_validation_error_wraps_as_typed_error(
        self, package_data: dict[str, Any]
    ) -> None:
        data = copy.deepcopy(package_data)
        data["duration_options"] = []

        with pytest.raises(ValidationError) as exc_info:
            PackageCreate.model_validate(data)
        error = QuoteEngineError.from_validation_error(exc_info.value)

        assert error.code is ErrorCode.VALIDATION_ERROR
        assert error.details is not None
        assert error.details["errors"][0]["loc"] == "duration_options"


class TestGroupSizeTier:
    """Tests for GroupSizeTier bounds."""

    def test_max_below_min_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be >= min_people"):
            GroupSizeTier(label="Broken", min_people=10, max_people=5)

    def test_contains_is_inclusive(self) -> None:
        tier = GroupSizeTier(label="6-11 People", min_people=6, max_people=11)

        assert tier.contains(6)
        assert tier.contains(11)
        assert not tier.contains(12)


class TestPeriodCoverage:
    """Tests for PricingPeriod.covers()."""

    def test_special_period_is_inclusive(self, package_data: dict[str, Any]) -> None:
        easter = PackageCreate.model_validate(package_data).pricing_matrix[2]

        assert easter.covers(dt.date(2025, 4, 14))
        assert easter.covers(dt.date(2025, 4, 21))
        assert not easter.covers(dt.date(2025, 4, 22))

    def test_month_period_never_covers(self, package_data: dict[str, Any]) -> None:
        january = PackageCreate.model_validate(package_data).pricing_matrix[0]

        assert not january.covers(dt.date(2025, 1, 15))

    def test_special_period_without_range_covers_nothing(self) -> None:
        period = PricingPeriod.model_construct(
            period="Unbounded",
            period_type=PeriodType.SPECIAL,
            start_date=None,
            end_date=None,
            prices=[],
        )

        assert not period.covers(dt.date(2025, 4, 15))


class TestPriceCoercion:
    """Tests for the tagged price variant and its legacy inputs."""

    def test_legacy_on_request_string(self) -> None:
        entry = PriceEntry.model_validate(
            {"group_size_tier_index": 0, "nights": 2, "price": "on_request"}
        )

        assert isinstance(entry.price, OnRequestPrice)
        assert entry.is_on_request

    def test_bare_number(self) -> None:
        entry = PriceEntry.model_validate(
            {"group_size_tier_index": 0, "nights": 2, "price": 125}
        )

        assert entry.price == NumericPrice(amount=125)
        assert not entry.is_on_request

    def test_tagged_dict(self) -> None:
        entry = PriceEntry.model_validate(
            {"group_size_tier_index": 0, "nights": 2, "price": {"kind": "on_request"}}
        )

        assert isinstance(entry.price, OnRequestPrice)

    def test_untagged_amount_dict(self) -> None:
        entry = PriceEntry.model_validate(
            {"group_size_tier_index": 0, "nights": 2, "price": {"amount": 75}}
        )

        assert entry.price == NumericPrice(amount=75)

    def test_negative_amount_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PriceEntry.model_validate(
                {"group_size_tier_index": 0, "nights": 2, "price": -1}
            )

    def test_unknown_string_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PriceEntry.model_validate(
                {"group_size_tier_index": 0, "nights": 2, "price": "POA"}
            )
