"""FastAPI dependency injection providers for engine services.

Services are created lazily and cached with @lru_cache, so each process
shares one instance per service.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── UserDirectory
        │       └── VersionHistoryService
        ├── AuditLogger
        └── PackageCatalog (VersionHistoryService, AuditLogger)
                ├── PricingService
                └── QuoteService (VersionHistoryService, AuditLogger)

The acting user is read from the X-User-Id / X-User-Role headers that the
gateway authorizer sets after authenticating the request.

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fastapi import Request
from pydantic import ValidationError

from quote_engine.models import Actor, ErrorCode, QuoteEngineError
from quote_engine.services.audit_log import AuditLogger
from quote_engine.services.dynamodb import get_dynamodb_service
from quote_engine.services.package_catalog import PackageCatalog
from quote_engine.services.pricing import PricingService
from quote_engine.services.quote_tracker import QuoteService
from quote_engine.services.user_directory import UserDirectory
from quote_engine.services.version_history import VersionHistoryService

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"
USER_NAME_HEADER = "X-User-Name"
USER_EMAIL_HEADER = "X-User-Email"


@lru_cache
def get_user_directory() -> UserDirectory:
    return UserDirectory(db=get_dynamodb_service())


@lru_cache
def get_audit_logger() -> AuditLogger:
    return AuditLogger(db=get_dynamodb_service())


@lru_cache
def get_version_history_service() -> VersionHistoryService:
    """Get cached VersionHistoryService instance."""
    return VersionHistoryService(db=get_dynamodb_service(), users=get_user_directory())


@lru_cache
def get_package_catalog() -> PackageCatalog:
    """Get cached PackageCatalog instance."""
    return PackageCatalog(
        db=get_dynamodb_service(),
        history=get_version_history_service(),
        audit=get_audit_logger(),
    )


@lru_cache
def get_pricing_service() -> PricingService:
    """Get cached PricingService instance."""
    return PricingService(catalog=get_package_catalog())


@lru_cache
def get_quote_service() -> QuoteService:
    """Get cached QuoteService instance."""
    return QuoteService(
        db=get_dynamodb_service(),
        catalog=get_package_catalog(),
        history=get_version_history_service(),
        audit=get_audit_logger(),
    )


def get_actor(request: Request) -> Actor:
    """Build the acting user from the authorizer headers.

    Raises:
        QuoteEngineError: UNAUTHORIZED if the headers are missing or invalid
    """
    user_id = request.headers.get(USER_ID_HEADER)
    role = request.headers.get(USER_ROLE_HEADER)
    if not user_id or not role:
        raise QuoteEngineError(ErrorCode.UNAUTHORIZED, {"reason": "missing identity"})

    try:
        return Actor(
            id=user_id,
            role=role.lower(),
            name=request.headers.get(USER_NAME_HEADER),
            email=request.headers.get(USER_EMAIL_HEADER),
        )
    except ValidationError as e:
        raise QuoteEngineError(ErrorCode.UNAUTHORIZED, {"reason": "invalid role"}) from e


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets the underlying DynamoDB singleton.
    """
    from quote_engine.services.dynamodb import reset_dynamodb_service

    get_user_directory.cache_clear()
    get_audit_logger.cache_clear()
    get_version_history_service.cache_clear()
    get_package_catalog.cache_clear()
    get_pricing_service.cache_clear()
    get_quote_service.cache_clear()

    reset_dynamodb_service()
