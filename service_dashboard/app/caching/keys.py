"""
Cache key derivation.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional
from urllib.parse import quote

ALL_SENTINEL = "all"
PAIR_SEPARATOR = "|"
ARRAY_DELIMITER = ","


class EntityKind(str, Enum):
    """Categories of cached data; each has its own store."""
    SERVICES = "services"
    SERVICE = "service"
    GROUPS = "groups"
    GROUP = "group"


def _kind_name(entity_kind: Any) -> str:
    if isinstance(entity_kind, Enum):
        return str(entity_kind.value)
    return str(entity_kind)


def _escape(text: str) -> str:
    # Separators inside values must not read as structure
    return quote(text, safe="")


def _render_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return _escape(str(value.value))
    return _escape(str(value))


def _render_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ARRAY_DELIMITER.join(_render_scalar(item) for item in value)
    return _render_scalar(value)


def derive_key(entity_kind: Any, params: Optional[Mapping] = None) -> str:
    """Derive a canonical key for a query.

    Parameter names are sorted so that ``{"a": 1, "b": 2}`` and
    ``{"b": 2, "a": 1}`` produce the same key. Parameters set to ``None``
    count as absent. Names and values are percent-encoded, so a value
    holding ``:``, ``|`` or ``,`` cannot pass for another combination.
    Missing, empty or non-mapping params collapse to ``"<kind>:all"``.
    """
    kind = _kind_name(entity_kind)

    if not isinstance(params, Mapping):
        return f"{kind}:{ALL_SENTINEL}"

    pairs = [
        f"{_escape(str(name))}:{_render_value(params[name])}"
        for name in sorted(params, key=str)
        if params[name] is not None
    ]
    if not pairs:
        return f"{kind}:{ALL_SENTINEL}"

    return f"{kind}:{PAIR_SEPARATOR.join(pairs)}"


def entity_key(entity_kind: Any, entity_id: str) -> str:
    """Key for a single entity looked up by id."""
    return f"{_kind_name(entity_kind)}:{_escape(str(entity_id))}"
