"""Enumeration types for package and quote data models."""

from enum import Enum


class PackageStatus(str, Enum):
    """Lifecycle status of a package."""

    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class PeriodType(str, Enum):
    """Kind of pricing period."""

    MONTH = "month"  # Calendar month, label is the month name
    SPECIAL = "special"  # Named date range override, e.g. "Easter"


class Currency(str, Enum):
    """Supported package and quote currencies."""

    EUR = "EUR"
    GBP = "GBP"
    USD = "USD"


class QuoteStatus(str, Enum):
    """Status of a customer-facing quote."""

    DRAFT = "draft"
    SENT = "sent"
    UPDATED = "updated"
    ARCHIVED = "archived"


class PriceChangeReason(str, Enum):
    """Why a quote's price history grew."""

    PACKAGE_SELECTION = "package_selection"
    RECALCULATION = "recalculation"
    MANUAL_OVERRIDE = "manual_override"


class EmailDeliveryStatus(str, Enum):
    """Delivery status of the last quote email."""

    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class PriceSyncStatus(str, Enum):
    """Whether a quote's price still matches its linked package."""

    NOT_LINKED = "not_linked"
    SYNCED = "synced"
    CUSTOM = "custom"  # Price manually overridden
    OUT_OF_SYNC = "out_of_sync"  # Package changed since link, needs recalculation


class EntityType(str, Enum):
    """Entities tracked by version history."""

    PACKAGE = "package"
    QUOTE = "quote"


class ChangeType(str, Enum):
    """Kind of change in a version comparison."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class ActorRole(str, Enum):
    """Role of an authenticated back-office user."""

    ADMIN = "admin"
    AGENT = "agent"
