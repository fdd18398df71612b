import uuid

from api.errors import ValidationError


def is_valid_id(value: str | None) -> bool:
    """Whether ``value`` is a well-formed entity identifier. Existence is not checked."""
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def parse_id(value: str | None, entity: str) -> uuid.UUID:
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {entity} id")
    return uuid.UUID(str(value))


def require_text(value: str | None, message: str) -> str:
    """Return ``value`` stripped, rejecting missing or whitespace-only input."""
    if value is None or not value.strip():
        raise ValidationError(message)
    return value.strip()
