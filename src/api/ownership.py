import logging
import uuid

from api.errors import AuthorizationError

logger = logging.getLogger("ownership")


def is_owner(identity: uuid.UUID, *owner_ids: uuid.UUID | None) -> bool:
    """Allow when ``identity`` matches any of the given owner references.

    Most mutations pass a single owner. Comment deletion passes both the
    comment owner and the parent video owner.
    """
    return any(owner_id is not None and owner_id == identity for owner_id in owner_ids)


def require_owner(identity: uuid.UUID, *owner_ids: uuid.UUID | None, action: str = "modify this resource") -> None:
    if not is_owner(identity, *owner_ids):
        logger.warning(f"User {identity} denied: {action}")
        raise AuthorizationError(f"You are not allowed to {action}")
