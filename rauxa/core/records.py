"""Field checks shared by the record decoders."""

from __future__ import annotations

from typing import Any

from rauxa.errors import ValidationError

_MISSING = object()


def require(data: dict[str, Any], field: str, kind: type | tuple, source: str) -> Any:
    """Return ``data[field]``, which must be present and of type ``kind``."""
    value = data.get(field, _MISSING)
    if value is _MISSING or value is None:
        raise ValidationError(f"{source} is missing '{field}'.")
    if not isinstance(value, kind):
        raise ValidationError(f"{source} has an invalid '{field}'.")
    return value


def optional(
    data: dict[str, Any],
    field: str,
    kind: type | tuple,
    source: str,
    default: Any = None,
) -> Any:
    """Return ``data[field]`` if set, checking its type, else ``default``."""
    value = data.get(field)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ValidationError(f"{source} has an invalid '{field}'.")
    return value

