"""Pydantic models for packages, quotes and version history."""

from .actor import Actor, ActorSummary
from .audit import AuditEvent
from .enums import (
    ActorRole,
    ChangeType,
    Currency,
    EmailDeliveryStatus,
    EntityType,
    PackageStatus,
    PeriodType,
    PriceChangeReason,
    PriceSyncStatus,
    QuoteStatus,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ErrorCode,
    QuoteEngineError,
    ServiceError,
    is_retryable,
)
from .history import (
    AuditTrail,
    AuditTrailEntry,
    FieldChange,
    LineChange,
    VersionHistoryEntry,
)
from .package import (
    ON_REQUEST,
    GroupSizeTier,
    Inclusion,
    NumericPrice,
    OnRequestPrice,
    Package,
    PackageCreate,
    PackageUpdate,
    PriceEntry,
    PricingPeriod,
)
from .pricing import (
    OnRequestResult,
    PeriodSelection,
    PriceResolution,
    PriceResult,
    TierSelection,
)
from .quote import (
    SIGNIFICANT_FIELDS,
    LinkedPackage,
    PriceHistoryEntry,
    PriceSyncReport,
    Quote,
    QuoteCreate,
    QuoteUpdate,
    RecalculationPreview,
    SelectedTier,
)

__all__ = [
    # Enums
    "ActorRole",
    "ChangeType",
    "Currency",
    "EmailDeliveryStatus",
    "EntityType",
    "PackageStatus",
    "PeriodType",
    "PriceChangeReason",
    "PriceSyncStatus",
    "QuoteStatus",
    # Actors and audit
    "Actor",
    "ActorSummary",
    "AuditEvent",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "QuoteEngineError",
    "ServiceError",
    "is_retryable",
    # History
    "AuditTrail",
    "AuditTrailEntry",
    "FieldChange",
    "LineChange",
    "VersionHistoryEntry",
    # Package
    "ON_REQUEST",
    "GroupSizeTier",
    "Inclusion",
    "NumericPrice",
    "OnRequestPrice",
    "Package",
    "PackageCreate",
    "PackageUpdate",
    "PriceEntry",
    "PricingPeriod",
    # Pricing
    "OnRequestResult",
    "PeriodSelection",
    "PriceResolution",
    "PriceResult",
    "TierSelection",
    # Quote
    "SIGNIFICANT_FIELDS",
    "LinkedPackage",
    "PriceHistoryEntry",
    "PriceSyncReport",
    "Quote",
    "QuoteCreate",
    "QuoteUpdate",
    "RecalculationPreview",
    "SelectedTier",
]
