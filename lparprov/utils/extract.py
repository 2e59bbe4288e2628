"""Pick identifiers out of JSON documents whose shape varies."""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Sequence, Union

PathPart = Union[str, int]
KeyPath = Sequence[PathPart]


def parse_json(text: Optional[str]) -> Any:
    """Parse ``text`` as JSON, returning ``None`` when it is not JSON."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def dig(document: Any, path: KeyPath) -> Any:
    """Follow ``path`` through nested dicts and lists; ``None`` on a miss."""
    current = document
    for part in path:
        if isinstance(part, int):
            if not isinstance(current, list) or not -len(current) <= part < len(current):
                return None
            current = current[part]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(part)
        if current is None:
            return None
    return current


def _usable(value: Any) -> bool:
    if value is None or isinstance(value, (dict, list, bool)):
        return False
    text = str(value).strip()
    return bool(text) and text != "null"


def extract_first(document: Any, strategies: Iterable[KeyPath]) -> Optional[str]:
    """Try each key path in order; the first present, non-null value wins."""
    for path in strategies:
        value = dig(document, path)
        if _usable(value):
            return str(value)
    return None


INSTANCE_ID_PATHS: tuple[KeyPath, ...] = (
    ("pvmInstanceID",),
    (0, "pvmInstanceID"),
    ("pvmInstance", "pvmInstanceID"),
)

NETWORK_ID_PATHS: tuple[KeyPath, ...] = (("id",), ("networkID",))

JOBRUN_NAME_PATHS: tuple[KeyPath, ...] = (("metadata", "name"), ("name",))
