"""Admin authorization for mutating operations."""

from quote_engine.models import Actor, ErrorCode, QuoteEngineError


def require_admin(actor: Actor | None) -> Actor:
    """Ensure the actor is an authenticated administrator.

    Args:
        actor: Actor supplied by the authentication collaborator

    Returns:
        The same actor, for chaining

    Raises:
        QuoteEngineError: UNAUTHORIZED if missing or not an admin
    """
    if actor is None or not actor.is_admin:
        raise QuoteEngineError(
            ErrorCode.UNAUTHORIZED,
            {"actor_id": actor.id if actor else None},
        )
    return actor
