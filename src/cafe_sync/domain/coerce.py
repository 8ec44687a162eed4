"""Field-by-field defaults for rows coming from the remote store or the push channel."""
import enum
from typing import Any, Type, TypeVar

E = TypeVar("E", bound=enum.Enum)


def as_str(value: Any, default: str = "") -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    return str(value)


def as_int(value: Any, default: int = 0, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        return default
    try:
        result = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if minimum is not None and result < minimum:
        return minimum
    return result


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "t"}
    return bool(value)


def as_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        return default
