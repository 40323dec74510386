"""Services for package pricing, quote linking and version history."""

from .audit_log import AuditLogger
from .authorization import require_admin
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .package_catalog import PackageCatalog, PackageDeletion
from .pricing import PricingService, check_pricing_available, resolve_price
from .quote_linker import link_package, price_sync_status, unlink_package
from .quote_tracker import QuoteService, check_transition
from .user_directory import UserDirectory
from .version_history import VersionHistoryService

__all__ = [
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "AuditLogger",
    "PackageCatalog",
    "PackageDeletion",
    "PricingService",
    "QuoteService",
    "UserDirectory",
    "VersionHistoryService",
    "check_pricing_available",
    "check_transition",
    "link_package",
    "price_sync_status",
    "require_admin",
    "resolve_price",
    "unlink_package",
]
