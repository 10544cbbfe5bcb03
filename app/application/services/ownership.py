"""Ownership guard — only a place's creator may change it."""

import structlog

from app.core.exceptions import AuthException

logger = structlog.get_logger(__name__)


def authorize_owner(user_id: str, owner_id: str, action: str = "modify") -> None:
    """Allow when ``user_id`` is the recorded owner, otherwise raise a 403."""
    if user_id != owner_id:
        logger.warning("Ownership check denied", user_id=user_id, owner_id=owner_id, action=action)
        raise AuthException(f"You are not allowed to {action} this place.")
