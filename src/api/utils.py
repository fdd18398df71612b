from typing import Any


def parse_int_or_fallback(value: Any, fallback: int, minimum: int | None = None) -> int:
    """Coerce ``value`` to int, returning ``fallback`` when it is missing,
    non-numeric, or below ``minimum``."""
    if value is None or isinstance(value, bool):
        return fallback
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return fallback
    if minimum is not None and parsed < minimum:
        return fallback
    return parsed
