"""Value helpers shared by the renderer and condition evaluator."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Sequence


def to_text(value: Any) -> str:
    """Stringify a bound value the way prompt authors expect to see it.

    Booleans print as ``true``/``false``, integral floats drop the ``.0``,
    sequences are comma-joined and mappings are rendered as JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def resolve_path(value: Any, path: Optional[str]) -> Any:
    """Drill into ``value`` along a dotted path.

    Mappings are walked by key, sequences by integer index. Any missing or
    empty intermediate yields None.
    """
    if not path or value is None:
        return value
    for part in path.split("."):
        if not value:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        elif isinstance(value, Sequence) and not isinstance(value, str):
            if not part.isdigit() or int(part) >= len(value):
                return None
            value = value[int(part)]
        else:
            return None
    return value


def strict_equals(left: Any, right: Any) -> bool:
    """Equality that never treats booleans as numbers."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if is_number(left) and is_number(right):
        return left == right
    if type(left) is not type(right) and not (isinstance(left, str) and isinstance(right, str)):
        return False
    return left == right
